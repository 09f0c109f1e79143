"""
Embedding Store - passages paired with their embedding vectors.

Implements:
- An ordered in-memory collection of (passage, vector) records
- A builder that embeds passages in batches through the embedding provider

The store is only mutated while it is being built; ranking reads a snapshot
of its records, so one store can serve concurrent queries once built.
"""

import logging
import math
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from ..contracts.retrieval_contracts import PassageRecord
from ..core.exceptions import EmbeddingDimensionError, EmbeddingServiceError, ProviderError
from ..core.logging import CorrelationContext, log_with_context
from ..core.types import RagConfig
from ..providers.base import EmbeddingProvider
from ..utils.retry import call_with_retry

logger = logging.getLogger(__name__)


class EmbeddingStore:
    """
    Ordered collection of PassageRecord entries with a fixed vector dimension.

    Every record has non-empty text and a vector of ``dimension`` floats. When
    no dimension is given, the first appended vector fixes it.
    """

    def __init__(
        self,
        dimension: Optional[int] = None,
        records: Iterable[PassageRecord] = (),
    ):
        self.dimension = dimension
        self._records: List[PassageRecord] = []
        for record in records:
            self.append(record.text, record.vector)

    def append(self, text: str, vector: Sequence[float]) -> PassageRecord:
        """
        Add a passage and its vector.

        Raises:
            ValueError: If the text is empty
            EmbeddingDimensionError: If the vector length differs from the store's
        """
        if not text:
            raise ValueError("Passage text cannot be empty")

        values = tuple(float(v) for v in vector)
        if self.dimension is None:
            if not values:
                raise EmbeddingDimensionError(expected=1, actual=0, context="first vector")
            self.dimension = len(values)
        elif len(values) != self.dimension:
            raise EmbeddingDimensionError(
                expected=self.dimension,
                actual=len(values),
                context=f"passage {len(self._records)}",
            )

        record = PassageRecord(text=text, vector=values)
        self._records.append(record)
        return record

    @property
    def records(self) -> Tuple[PassageRecord, ...]:
        """Immutable snapshot of the current records."""
        return tuple(self._records)

    def texts(self) -> List[str]:
        return [record.text for record in self._records]

    def __iter__(self) -> Iterator[PassageRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"EmbeddingStore(passages={len(self._records)}, dimension={self.dimension})"


class EmbeddingStoreBuilder:
    """
    Builds an EmbeddingStore by embedding passages in batches.

    Workflow:
    1. Split passages into batches of ``batch_size``
    2. Embed each batch (sequentially, or with bounded concurrency)
    3. Pair vectors back to passages in submission order
    4. Return the store only if every batch succeeded

    Example:
        >>> builder = EmbeddingStoreBuilder(provider, RagConfig(batch_size=100))
        >>> store = builder.build(passages)
    """

    def __init__(self, embedder: EmbeddingProvider, config: Optional[RagConfig] = None):
        """
        Initialize the builder.

        Args:
            embedder: Embedding provider
            config: Pipeline configuration (batch size, model, retry, concurrency)
        """
        self.embedder = embedder
        self.config = config or RagConfig()

    def build(self, passages: Sequence[str]) -> EmbeddingStore:
        """
        Embed all passages and return the populated store.

        Args:
            passages: Passage texts in corpus order

        Returns:
            EmbeddingStore with one record per passage, in input order

        Raises:
            EmbeddingServiceError: If any batch request fails or returns the wrong count
            EmbeddingDimensionError: If any vector has the wrong dimensionality
        """
        batches = make_batches(passages, self.config.batch_size)
        run_id = CorrelationContext.get_current().get("run_id") or str(uuid.uuid4())

        with CorrelationContext(run_id=run_id, stage="embedding"):
            log_with_context(
                logger,
                logging.INFO,
                f"Embedding {len(passages)} passages in {len(batches)} batches "
                f"with {self.config.embedding_model}",
            )

            results = self._embed_all(batches)

            store = EmbeddingStore(dimension=self.config.embedding_dimension)
            for batch, vectors in zip(batches, results):
                for text, vector in zip(batch, vectors):
                    store.append(text, vector)

            log_with_context(
                logger,
                logging.INFO,
                f"Built embedding store with {len(store)} passages (dimension={store.dimension})",
            )

        return store

    def _embed_all(self, batches: List[List[str]]) -> List[List[List[float]]]:
        """Embed every batch, returning results in batch order."""
        concurrency = max(1, self.config.embed_concurrency)
        if concurrency == 1 or len(batches) <= 1:
            return [self._embed_batch(i, batch, len(batches)) for i, batch in enumerate(batches)]

        with ThreadPoolExecutor(max_workers=concurrency) as executor:
            futures = [
                executor.submit(self._embed_batch, i, batch, len(batches))
                for i, batch in enumerate(batches)
            ]
            try:
                return [future.result() for future in futures]
            except Exception:
                for future in futures:
                    future.cancel()
                raise

    def _embed_batch(self, index: int, batch: List[str], total: int) -> List[List[float]]:
        """
        Embed one batch with retry.

        Raises:
            EmbeddingServiceError: If the request fails or the vector count differs
        """
        label = f"embed batch {index + 1}/{total}"
        logger.debug(f"{label}: {len(batch)} passages")

        try:
            vectors = call_with_retry(
                lambda: self.embedder.embed(batch, model=self.config.embedding_model),
                self.config.retry,
                retry_on=(ProviderError,),
                should_retry=lambda e: e.retryable,
                operation_name=label,
            )
        except ProviderError as e:
            raise EmbeddingServiceError(f"Embedding batch {index + 1}/{total} failed: {e}") from e

        if len(vectors) != len(batch):
            raise EmbeddingServiceError(
                f"Embedding batch {index + 1}/{total} returned {len(vectors)} vectors "
                f"for {len(batch)} passages"
            )

        for vector in vectors:
            if not vector:
                raise EmbeddingServiceError(f"Embedding batch {index + 1}/{total} returned an empty vector")
            if not all(math.isfinite(v) for v in vector):
                raise EmbeddingServiceError(
                    f"Embedding batch {index + 1}/{total} returned a non-finite vector"
                )

        return vectors


def make_batches(items: Sequence[str], batch_size: int) -> List[List[str]]:
    """
    Split items into consecutive batches of at most ``batch_size``.

    Raises:
        ValueError: If batch_size is not positive
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    return [list(items[i:i + batch_size]) for i in range(0, len(items), batch_size)]
