"""
Pydantic models for the retrieval pipeline and the HTTP surface.
"""

from datetime import datetime
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from .utils import generate_session_id, utc_now


class Passage(BaseModel):
    """A bounded chunk of source text together with its embedding."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque token unique within a session")
    text: str = Field(..., description="Chunk content")
    source_label: str = Field(..., description="Name of the uploaded file")
    page_label: Optional[str] = Field(default=None, description="Page the chunk came from")
    chunk_index: int = Field(default=0, description="Position of the chunk within the document")
    vector: Tuple[float, ...] = Field(..., description="Embedding vector")


class Session(BaseModel):
    """The single active document: its passages and the index built over them."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    session_id: str = Field(default_factory=generate_session_id)
    source_label: str
    page_count: int = 0
    passages: Tuple[Passage, ...]
    index: Any = Field(..., description="VectorIndex built over the passages", exclude=True, repr=False)
    created_at: datetime = Field(default_factory=utc_now)


class GeneratedAnswer(BaseModel):
    """Output of the answer generator."""

    text: str
    used_passage_ids: List[str] = Field(default_factory=list)


class ChatAnswer(BaseModel):
    """Answer plus the sources it drew on."""

    answer_text: str
    cited_sources: List[str] = Field(default_factory=list)


class UploadResult(BaseModel):
    """Summary of a committed upload."""

    session_id: str
    filename: str
    pages: int
    chunks: int


class UploadResponse(BaseModel):
    """Response model for PDF upload."""
    message: str = Field(..., description="Success message")
    filename: Optional[str] = Field(default=None, description="Name of the processed file")
    pages: Optional[int] = Field(default=None, description="Number of pages with text")
    chunks: Optional[int] = Field(default=None, description="Number of passages indexed")


class ChatRequest(BaseModel):
    """Request model for chat queries."""
    question: StrictStr = Field(..., max_length=4000, description="User's question")

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("question must be a non-empty string")
        return v


class ChatResponse(BaseModel):
    """Response model for chat queries."""
    answer: str = Field(..., description="Generated answer")
    sources: List[str] = Field(default_factory=list, description="Source documents used")


class SessionInfoResponse(BaseModel):
    """Response model for the active session."""
    session_id: str
    source: str
    pages: int
    chunks: int
    created_at: str


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str = Field(..., description="Health status")
    message: str = Field(..., description="Status message")
    version: str = Field(..., description="Application version")
    timestamp: str = Field(..., description="Current timestamp")
    document_loaded: bool = Field(default=False, description="Whether a PDF is currently indexed")


class ErrorResponse(BaseModel):
    """Response model for errors."""
    error: str = Field(..., description="Error message")
    details: Optional[Any] = Field(default=None, description="Detailed error information")
