"""
Fixed-window text splitting with exact overlap between neighbouring chunks.
"""

from typing import Any, List

from langchain_core.documents import Document
from langchain_text_splitters import TextSplitter

from ..config import settings
from ..utils import log_processing_info
import logging

logger = logging.getLogger(__name__)


class SlidingWindowTextSplitter(TextSplitter):
    """
    Split text into windows of at most ``chunk_size`` characters.

    Consecutive windows start ``chunk_size - chunk_overlap`` characters apart,
    so neighbours share exactly ``chunk_overlap`` characters. Only the final
    window of a text may be shorter.
    """

    def __init__(self, chunk_size: int = None, chunk_overlap: int = None, **kwargs: Any):
        chunk_size = settings.chunk_size if chunk_size is None else chunk_size
        chunk_overlap = settings.chunk_overlap if chunk_overlap is None else chunk_overlap
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap must be in [0, chunk_size), got {chunk_overlap} for chunk_size {chunk_size}"
            )
        kwargs.setdefault("strip_whitespace", False)
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap, **kwargs)

    @property
    def step(self) -> int:
        return self._chunk_size - self._chunk_overlap

    def window_starts(self, text: str) -> List[int]:
        """Start offsets of every window over ``text``."""
        if not text:
            return []
        starts = [0]
        while starts[-1] + self._chunk_size < len(text):
            starts.append(starts[-1] + self.step)
        return starts

    def split_text(self, text: str) -> List[str]:
        return [text[start:start + self._chunk_size] for start in self.window_starts(text)]

    def split_pages(self, pages: List[Document]) -> List[Document]:
        """
        Split every page on its own; chunks never cross a page boundary.

        Each chunk keeps its page metadata and gains ``chunk_index`` (position
        across the whole document) and ``start_index`` (offset within the page).
        """
        chunks = []
        for page in pages:
            for start in self.window_starts(page.page_content):
                metadata = dict(page.metadata)
                metadata.update({
                    "chunk_index": len(chunks),
                    "start_index": start,
                })
                chunks.append(Document(
                    page_content=page.page_content[start:start + self._chunk_size],
                    metadata=metadata
                ))

        log_processing_info("Document chunking completed", {
            "original_documents": len(pages),
            "chunks_created": len(chunks),
            "chunk_size": self._chunk_size,
            "chunk_overlap": self._chunk_overlap
        })
        return chunks


def split(pages: List[Document], max_chunk_chars: int = None, overlap_chars: int = None) -> List[str]:
    """Split pages into ordered passage texts."""
    splitter = SlidingWindowTextSplitter(chunk_size=max_chunk_chars, chunk_overlap=overlap_chars)
    return [chunk.page_content for chunk in splitter.split_pages(pages)]
