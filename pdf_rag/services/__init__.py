"""
Services package for the PDF RAG Backend.
"""

from .pdf_processor import PDFProcessor
from .chunker import SlidingWindowTextSplitter
from .embedding_service import EmbeddingService
from .vector_index import VectorIndex
from .chat_service import ChatService
from .session_state import SessionStore
from .document_service import DocumentService

__all__ = [
    "PDFProcessor",
    "SlidingWindowTextSplitter",
    "EmbeddingService",
    "VectorIndex",
    "ChatService",
    "SessionStore",
    "DocumentService"
]
