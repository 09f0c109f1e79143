"""
Retrieval Search - Rank stored passages by relatedness to a query.

Implements:
- Cosine similarity scoring (higher = more related)
- Full-scan ranking of every stored passage, descending by score
- Stable ordering for equal scores (store insertion order)

Similarity that cannot be ordered (zero-magnitude or non-finite vectors) is
an error rather than a silent default.
"""

import logging
import math
import time
from typing import List, Optional, Sequence

from ..contracts.retrieval_contracts import RankedPassage
from ..core.exceptions import (
    DegenerateSimilarityError,
    EmbeddingDimensionError,
    EmbeddingServiceError,
    ProviderError,
)
from ..core.types import RagConfig
from ..providers.base import EmbeddingProvider
from ..utils.retry import call_with_retry
from .store import EmbeddingStore

logger = logging.getLogger(__name__)


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Compute cosine similarity between two vectors.

    Args:
        vec_a: First vector
        vec_b: Second vector

    Returns:
        Cosine similarity score between -1 and 1

    Raises:
        EmbeddingDimensionError: If vectors have different dimensions
        DegenerateSimilarityError: If a vector is empty, zero, or non-finite
    """
    if not vec_a or not vec_b:
        raise DegenerateSimilarityError("Vectors cannot be empty")

    if len(vec_a) != len(vec_b):
        raise EmbeddingDimensionError(expected=len(vec_a), actual=len(vec_b))

    dot_product = sum(a * b for a, b in zip(vec_a, vec_b))
    magnitude_a = math.sqrt(sum(a * a for a in vec_a))
    magnitude_b = math.sqrt(sum(b * b for b in vec_b))

    if magnitude_a == 0 or magnitude_b == 0:
        raise DegenerateSimilarityError("Cosine similarity is undefined for a zero vector")

    similarity = dot_product / (magnitude_a * magnitude_b)
    if not math.isfinite(similarity):
        raise DegenerateSimilarityError(f"Cosine similarity is not comparable: {similarity}")

    return similarity


def rank_passages(query_embedding: Sequence[float], store: EmbeddingStore) -> List[RankedPassage]:
    """
    Score every stored passage against a query vector and sort descending.

    Equal scores keep their store order (the sort is stable).

    Args:
        query_embedding: Embedding vector for the query
        store: Embedding store to scan

    Returns:
        One RankedPassage per stored record, best first
    """
    start_time = time.time()

    scored = []
    for index, record in enumerate(store):
        try:
            score = cosine_similarity(query_embedding, record.vector)
        except DegenerateSimilarityError as e:
            raise DegenerateSimilarityError(f"Passage {index}: {e}") from e
        scored.append((score, record.text))

    scored.sort(key=lambda item: item[0], reverse=True)

    ranked = [
        RankedPassage(text=text, score=score, rank=rank)
        for rank, (score, text) in enumerate(scored, start=1)
    ]

    execution_ms = int((time.time() - start_time) * 1000)
    logger.debug(f"Ranked {len(ranked)} passages in {execution_ms}ms")

    return ranked


class RelatednessRanker:
    """
    Orders stored passages by relatedness to a query string.

    Example:
        >>> ranker = RelatednessRanker(provider, config)
        >>> passages = ranker.rank("Why was treatment delayed?", store)
    """

    def __init__(self, embedder: EmbeddingProvider, config: Optional[RagConfig] = None):
        self.embedder = embedder
        self.config = config or RagConfig()

    def embed_query(self, query: str, dimension: Optional[int] = None) -> List[float]:
        """
        Request a single embedding for the query.

        Raises:
            EmbeddingServiceError: If the request fails or does not return one vector
            EmbeddingDimensionError: If the vector does not match ``dimension``
        """
        try:
            vectors = call_with_retry(
                lambda: self.embedder.embed([query], model=self.config.embedding_model),
                self.config.retry,
                retry_on=(ProviderError,),
                should_retry=lambda e: e.retryable,
                operation_name="embed query",
            )
        except ProviderError as e:
            raise EmbeddingServiceError(f"Query embedding failed: {e}") from e

        if len(vectors) != 1:
            raise EmbeddingServiceError(
                f"Query embedding returned {len(vectors)} vectors, expected 1"
            )

        vector = vectors[0]
        if dimension is not None and len(vector) != dimension:
            raise EmbeddingDimensionError(expected=dimension, actual=len(vector), context="query")

        return vector

    def rank_with_scores(self, query: str, store: EmbeddingStore) -> List[RankedPassage]:
        """Rank every stored passage, keeping the scores."""
        logger.info(f"Ranking {len(store)} passages (query: {query[:50]}...)")
        query_embedding = self.embed_query(query, dimension=store.dimension)
        return rank_passages(query_embedding, store)

    def rank(self, query: str, store: EmbeddingStore) -> List[str]:
        """
        Return the stored passages ordered by descending relatedness.

        The result is a permutation of the store's passages.
        """
        return [passage.text for passage in self.rank_with_scores(query, store)]
