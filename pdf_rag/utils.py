"""
Utility functions for the PDF RAG Backend.
"""

import inspect
import functools
import re
import time
import uuid
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """Generate a unique session ID."""
    return str(uuid.uuid4())


def generate_passage_id() -> str:
    """Generate an opaque passage token."""
    return uuid.uuid4().hex


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Get a timestamp in ISO format."""
    return (moment or utc_now()).isoformat()


def measure_time(func):
    """Decorator to measure function execution time. Works for sync and async callables."""
    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                execution_time = time.perf_counter() - start_time
                logger.info(f"{func.__name__} executed in {execution_time:.2f} seconds")
        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            execution_time = time.perf_counter() - start_time
            logger.info(f"{func.__name__} executed in {execution_time:.2f} seconds")
    return wrapper


def clean_text(text: str) -> str:
    """Collapse runs of whitespace and trim."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def create_document_metadata(filename: str, page_num: int, total_pages: int,
                             additional_metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Create metadata for a single extracted page."""
    base_metadata = {
        'source': filename,
        'page': page_num,
        'page_label': f"page {page_num}",
        'total_pages': total_pages,
    }

    if additional_metadata:
        base_metadata.update(additional_metadata)

    return base_metadata


def log_processing_info(operation: str, details: Dict[str, Any]) -> None:
    """Log processing information."""
    logger.info(f"{operation}: {details}")


def handle_processing_error(operation: str, error: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
    """Handle and log processing errors."""
    error_info = {
        'operation': operation,
        'error_type': type(error).__name__,
        'error_message': str(error),
        'timestamp': format_timestamp()
    }

    if context:
        error_info.update(context)

    logger.error(f"Processing error: {error_info}")
    return error_info
