"""
Error taxonomy for the PDF RAG backend.

Every error carries the HTTP status it maps to so the API layer can render
it without knowing where it was raised.
"""

from typing import Any, Optional


class RagError(Exception):
    """Base class for all expected pipeline failures."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidInput(RagError):
    """Raised when a request carries a bad file or a malformed question."""

    status_code = 400


class UnsupportedFormat(InvalidInput):
    """Raised when the declared MIME type is not the accepted PDF type."""


class NoDocumentLoaded(RagError):
    """Raised when chat is attempted before any successful upload."""

    status_code = 400

    def __init__(self, message: str = "No PDF loaded. Please upload a PDF first.", details: Optional[Any] = None):
        super().__init__(message, details)


class EmptyIndex(RagError):
    """Raised when retrieval runs against an index with no passages."""

    status_code = 400

    def __init__(self, message: str = "The vector index contains no passages.", details: Optional[Any] = None):
        super().__init__(message, details)


class ParseFailure(RagError):
    """Raised when uploaded bytes cannot be parsed as a PDF with text."""

    status_code = 500


class ProviderError(RagError):
    """Raised when the embedding or chat provider fails."""

    status_code = 500


class ProviderTimeout(ProviderError):
    """Raised when a provider call exceeds its time budget."""
