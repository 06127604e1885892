"""
FastAPI application for the PDF RAG Backend.
"""

from contextlib import asynccontextmanager
from typing import Any, Optional
from fastapi import Body, Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from langchain_core.embeddings import Embeddings
import logging

from .config import Settings, settings, validate_required_settings
from .errors import InvalidInput, NoDocumentLoaded, RagError
from .models import (
    UploadResponse, ChatResponse, SessionInfoResponse, HealthResponse, ErrorResponse
)
from .services import ChatService, DocumentService, EmbeddingService, PDFProcessor, SlidingWindowTextSplitter
from .services.chat_service import create_google_chat_model
from .services.embedding_service import create_google_embeddings
from .utils import format_timestamp, handle_processing_error

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


def build_document_service(app_settings: Settings, embeddings: Embeddings = None, chat_model=None) -> DocumentService:
    """Create the pipeline, building the Google providers unless fakes are supplied."""
    if embeddings is None or chat_model is None:
        validate_required_settings(app_settings)
    if embeddings is None:
        embeddings = create_google_embeddings(app_settings)
    if chat_model is None:
        chat_model = create_google_chat_model(app_settings)

    return DocumentService(
        embedding_service=EmbeddingService(embeddings, app_settings.provider_timeout_seconds),
        chat_service=ChatService(chat_model, app_settings.provider_timeout_seconds),
        pdf_processor=PDFProcessor(),
        text_splitter=SlidingWindowTextSplitter(app_settings.chunk_size, app_settings.chunk_overlap),
        retrieval_k=app_settings.retrieval_k
    )


def get_document_service(request: Request) -> DocumentService:
    return request.app.state.document_service


def error_response(status_code: int, error: str, details: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    )


def create_app(app_settings: Settings = None, embeddings: Embeddings = None, chat_model=None) -> FastAPI:
    """
    Build the FastAPI application.

    Providers are created once during startup. Pass ``embeddings`` and
    ``chat_model`` to substitute fakes in tests.
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {app_settings.app_name} v{app_settings.app_version}...")
        app.state.document_service = build_document_service(app_settings, embeddings, chat_model)
        yield
        logger.info(f"Shutting down {app_settings.app_name}...")

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        description="Upload a PDF and chat with its content",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RagError)
    async def rag_error_handler(request: Request, exc: RagError):
        """Render pipeline errors with the status they declare."""
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message} ({exc.details})")
        else:
            logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed request bodies are client errors."""
        return error_response(400, "Invalid request data", [err.get("msg") for err in exc.errors()])

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        handle_processing_error("request", exc, {"path": request.url.path})
        return error_response(
            500,
            "Internal server error",
            str(exc) if app_settings.debug else "An unexpected error occurred"
        )

    @app.get("/", response_model=dict)
    async def root():
        """Root endpoint."""
        return {
            "message": "PDF RAG API is running",
            "version": app_settings.app_version,
            "timestamp": format_timestamp()
        }

    @app.get("/health", response_model=HealthResponse)
    async def health_check(document_service: DocumentService = Depends(get_document_service)):
        """Liveness check; reports whether a document is loaded."""
        return HealthResponse(
            status="healthy",
            message="Service health check completed",
            version=app_settings.app_version,
            timestamp=format_timestamp(),
            document_loaded=document_service.has_document()
        )

    @app.post("/api/upload", response_model=UploadResponse, response_model_exclude_none=True)
    async def upload_pdf(
        pdf: Optional[UploadFile] = File(None),
        document_service: DocumentService = Depends(get_document_service)
    ):
        """
        Upload a PDF and make it the active document.

        The PDF is processed in memory and replaces any previously loaded one.
        """
        if pdf is None:
            raise InvalidInput("No PDF file uploaded")

        filename = pdf.filename or "document.pdf"
        document_service.pdf_processor.validate_mime_type(pdf.content_type, filename)

        content = await pdf.read()
        if not content:
            raise InvalidInput("Uploaded file is empty")

        file_size_mb = len(content) / (1024 * 1024)
        if len(content) > app_settings.max_file_size_mb * 1024 * 1024:
            raise InvalidInput(
                f"File {filename} is too large: {file_size_mb:.1f}MB. "
                f"Maximum size is {app_settings.max_file_size_mb}MB."
            )

        result = await document_service.process_upload(content, pdf.content_type, filename)

        return UploadResponse(
            message="PDF processed successfully",
            filename=result.filename,
            pages=result.pages,
            chunks=result.chunks
        )

    @app.post("/api/chat", response_model=ChatResponse)
    async def chat_with_pdf(
        payload: Any = Body(None),
        document_service: DocumentService = Depends(get_document_service)
    ):
        """Answer a question from the active document."""
        question = payload.get("question") if isinstance(payload, dict) else None
        answer = await document_service.chat_with_document(question)
        return ChatResponse(answer=answer.answer_text, sources=answer.cited_sources)

    @app.get("/api/session", response_model=SessionInfoResponse)
    async def get_session_info(document_service: DocumentService = Depends(get_document_service)):
        """Get information about the active document session."""
        session_info = document_service.get_session_info()
        if session_info is None:
            return error_response(404, NoDocumentLoaded().message)
        return session_info

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "pdf_rag.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
