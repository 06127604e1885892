"""
Embedding provider wrapper: timeouts, error mapping and vector shape checks.
"""

import asyncio
from typing import List

from langchain_core.embeddings import Embeddings
from langchain_google_genai import GoogleGenerativeAIEmbeddings

from ..config import Settings, settings
from ..errors import ProviderError, ProviderTimeout
from ..utils import (
    measure_time,
    log_processing_info,
    handle_processing_error
)
import logging

logger = logging.getLogger(__name__)


def create_google_embeddings(app_settings: Settings = None) -> GoogleGenerativeAIEmbeddings:
    """Initialize Google Generative AI embeddings."""
    app_settings = app_settings or settings
    try:
        embeddings = GoogleGenerativeAIEmbeddings(
            model=app_settings.google_embedding_model,
            google_api_key=app_settings.google_api_key
        )

        log_processing_info("Embeddings initialized", {
            "model": app_settings.google_embedding_model
        })

        return embeddings

    except Exception as e:
        error_info = handle_processing_error("embeddings_init", e)
        raise ProviderError("Failed to initialize embeddings", details=error_info["error_message"]) from e


class EmbeddingService:
    """Maps text to vectors through an injected LangChain Embeddings capability."""

    def __init__(self, embeddings: Embeddings, timeout_seconds: float = None):
        self.embeddings = embeddings
        self.timeout_seconds = timeout_seconds or settings.provider_timeout_seconds

    async def _call(self, operation: str, coro, context: dict):
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            handle_processing_error(operation, e, context)
            raise ProviderTimeout(
                "Embedding provider timed out",
                details=f"No response within {self.timeout_seconds} seconds"
            ) from e
        except Exception as e:
            error_info = handle_processing_error(operation, e, context)
            raise ProviderError("Embedding provider failed", details=error_info["error_message"]) from e

    @measure_time
    async def embed_passages(self, texts: List[str]) -> List[List[float]]:
        """
        Embed passage texts in one batch.

        Raises:
            ProviderError: the provider failed or returned malformed vectors
        """
        if not texts:
            return []

        vectors = await self._call(
            "passage_embedding",
            self.embeddings.aembed_documents(texts),
            {"passages": len(texts)}
        )

        if len(vectors) != len(texts):
            raise ProviderError(
                "Embedding provider returned the wrong number of vectors",
                details=f"expected {len(texts)}, got {len(vectors)}"
            )
        dimensions = {len(v) for v in vectors}
        if len(dimensions) != 1 or 0 in dimensions:
            raise ProviderError(
                "Embedding provider returned vectors of inconsistent length",
                details=sorted(dimensions)
            )

        log_processing_info("Passages embedded", {
            "passages": len(texts),
            "dimension": dimensions.pop()
        })
        return [list(v) for v in vectors]

    async def embed_query(self, text: str, expected_dimension: int = None) -> List[float]:
        """Embed a question. Checks the length against the index when given."""
        vector = await self._call(
            "query_embedding",
            self.embeddings.aembed_query(text),
            {"question_length": len(text)}
        )

        if not vector:
            raise ProviderError(
                "Embedding provider returned an empty vector",
                details=f"zero-length embedding for a question of {len(text)} characters"
            )
        if expected_dimension is not None and len(vector) != expected_dimension:
            raise ProviderError(
                "Query embedding does not match the indexed document",
                details=f"expected dimension {expected_dimension}, got {len(vector)}"
            )
        return list(vector)
