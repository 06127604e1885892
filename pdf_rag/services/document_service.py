"""
Main document service that orchestrates PDF ingestion, indexing and chat.
"""

from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from .pdf_processor import PDFProcessor
from .chunker import SlidingWindowTextSplitter
from .embedding_service import EmbeddingService
from .vector_index import VectorIndex
from .chat_service import ChatService
from .session_state import SessionStore
from ..config import settings
from ..errors import InvalidInput, NoDocumentLoaded
from ..models import ChatAnswer, ChatRequest, Passage, Session, UploadResult
from ..utils import (
    generate_passage_id,
    format_timestamp,
    measure_time,
    log_processing_info
)
import logging

logger = logging.getLogger(__name__)


class DocumentService:
    """Upload and chat flows over a single replaceable document session."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        chat_service: ChatService,
        pdf_processor: PDFProcessor = None,
        text_splitter: SlidingWindowTextSplitter = None,
        session_store: SessionStore = None,
        retrieval_k: int = None
    ):
        """Wire the pipeline; providers are passed in once at startup."""
        self.embedding_service = embedding_service
        self.chat_service = chat_service
        self.pdf_processor = pdf_processor or PDFProcessor()
        self.text_splitter = text_splitter or SlidingWindowTextSplitter()
        self.session_store = session_store or SessionStore()
        self.retrieval_k = retrieval_k or settings.retrieval_k

    def _ingest_and_split(self, file_content: bytes, content_type: str, filename: str):
        pages = self.pdf_processor.ingest(file_content, content_type, filename)
        return pages, self.text_splitter.split_pages(pages)

    @measure_time
    async def process_upload(self, file_content: bytes, content_type: str, filename: str) -> UploadResult:
        """
        Ingest, chunk, embed and index one PDF, then make it the active session.

        Nothing is committed unless every stage succeeds, so a failed upload
        leaves the previous session in place.
        """
        log_processing_info("Document processing started", {
            "filename": filename,
            "content_type": content_type,
            "file_size": len(file_content)
        })

        self.pdf_processor.validate_mime_type(content_type, filename)

        pages, chunks = await run_in_threadpool(self._ingest_and_split, file_content, content_type, filename)
        del file_content

        vectors = await self.embedding_service.embed_passages([chunk.page_content for chunk in chunks])

        passages = [
            Passage(
                id=generate_passage_id(),
                text=chunk.page_content,
                source_label=chunk.metadata.get("source", filename),
                page_label=chunk.metadata.get("page_label"),
                chunk_index=chunk.metadata.get("chunk_index", i),
                vector=vector
            )
            for i, (chunk, vector) in enumerate(zip(chunks, vectors))
        ]
        index = VectorIndex.build(passages)

        session = Session(
            source_label=filename,
            page_count=len(pages),
            passages=passages,
            index=index
        )
        await self.session_store.commit(session)

        log_processing_info("Document processing completed", {
            "session_id": session.session_id,
            "filename": filename,
            "pages": len(pages),
            "chunks_created": len(passages)
        })

        return UploadResult(
            session_id=session.session_id,
            filename=filename,
            pages=len(pages),
            chunks=len(passages)
        )

    @staticmethod
    def validate_question(question: Any) -> str:
        """Return the stripped question or raise InvalidInput."""
        try:
            return ChatRequest(question=question).question
        except ValidationError as e:
            raise InvalidInput(
                "Invalid question format",
                details=[err["msg"] for err in e.errors()]
            ) from e

    @measure_time
    async def chat_with_document(self, question: Any) -> ChatAnswer:
        """
        Answer a question against the active session.

        The whole request works on one session snapshot, even if an upload
        commits while it is running.

        Raises:
            NoDocumentLoaded: no upload has succeeded yet
            InvalidInput: the question is not a non-empty string
            ProviderError: embedding or generation failed
        """
        session = self.session_store.snapshot()
        if session is None:
            raise NoDocumentLoaded()

        question = self.validate_question(question)

        log_processing_info("Chat query started", {
            "session_id": session.session_id,
            "question_length": len(question)
        })

        query_vector = await self.embedding_service.embed_query(question, session.index.dimension)
        retrieved = session.index.retrieve(query_vector, self.retrieval_k)
        generated = await self.chat_service.generate_answer(question, retrieved)

        used_ids = set(generated.used_passage_ids)
        sources: List[str] = []
        for passage in retrieved:
            if passage.id in used_ids and passage.source_label not in sources:
                sources.append(passage.source_label)

        log_processing_info("Chat query completed", {
            "session_id": session.session_id,
            "answer_length": len(generated.text),
            "sources_count": len(sources)
        })

        return ChatAnswer(answer_text=generated.text, cited_sources=sources)

    def get_session_info(self) -> Optional[Dict[str, Any]]:
        """Describe the active session, or None when nothing is loaded."""
        session = self.session_store.snapshot()
        if session is None:
            return None
        return {
            "session_id": session.session_id,
            "source": session.source_label,
            "pages": session.page_count,
            "chunks": len(session.passages),
            "created_at": format_timestamp(session.created_at)
        }

    def has_document(self) -> bool:
        return self.session_store.snapshot() is not None
