"""
In-memory vector index with cosine-similarity retrieval.
"""

from typing import List, Sequence

import numpy as np

from ..errors import EmptyIndex
from ..models import Passage
from ..utils import log_processing_info
import logging

logger = logging.getLogger(__name__)


class VectorIndex:
    """
    Immutable index over a fixed list of passages.

    A new index is built for every upload; nothing ever mutates one after
    construction, so readers holding a reference always see a complete index.
    """

    def __init__(self, passages: Sequence[Passage] = ()):
        self._passages = tuple(passages)

        if not self._passages:
            self._matrix = np.empty((0, 0), dtype=np.float64)
            self._norms = np.empty(0, dtype=np.float64)
        else:
            dimensions = {len(p.vector) for p in self._passages}
            if len(dimensions) != 1:
                raise ValueError(f"All passage vectors must share one length, got {sorted(dimensions)}")
            self._matrix = np.array([p.vector for p in self._passages], dtype=np.float64)
            self._norms = np.linalg.norm(self._matrix, axis=1)

        self._matrix.setflags(write=False)
        self._norms.setflags(write=False)

    @classmethod
    def build(cls, passages: Sequence[Passage]) -> "VectorIndex":
        """Build a new index from passages that already carry vectors."""
        index = cls(passages)
        log_processing_info("Vector index built", {
            "passages": len(index),
            "dimension": index.dimension
        })
        return index

    def __len__(self) -> int:
        return len(self._passages)

    @property
    def dimension(self) -> int:
        return self._matrix.shape[1] if len(self) else 0

    @property
    def passages(self) -> tuple:
        return self._passages

    def score(self, query_vector: Sequence[float]) -> np.ndarray:
        """
        Cosine similarity of ``query_vector`` against every stored vector.

        Zero-norm vectors on either side score 0.
        """
        if not len(self):
            raise EmptyIndex()

        query = np.asarray(query_vector, dtype=np.float64)
        if query.ndim != 1 or query.shape[0] != self.dimension:
            raise ValueError(
                f"Query vector has dimension {query.shape[-1] if query.ndim else 0}, index expects {self.dimension}"
            )

        denominators = self._norms * np.linalg.norm(query)
        dots = self._matrix @ query
        scores = np.zeros(len(self), dtype=np.float64)
        np.divide(dots, denominators, out=scores, where=denominators > 0)
        return scores

    def retrieve(self, query_vector: Sequence[float], k: int) -> List[Passage]:
        """
        Return up to ``k`` passages ranked by descending similarity.

        Equal scores keep insertion order.
        """
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")

        scores = self.score(query_vector)
        order = np.argsort(-scores, kind="stable")[:k]
        results = [self._passages[i] for i in order]

        log_processing_info("Similarity search completed", {
            "results_count": len(results),
            "k": k,
            "top_score": round(float(scores[order[0]]), 4)
        })
        return results
