"""
Pipeline - orchestrate the build and query phases.

Build:  documents → segmenter → embedding store builder → table (+ manifest)
Query:  question → relatedness ranker → context assembler → answerer

Stages run one after another; any error propagates to the caller and no
partial store or answer is produced.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..contracts.retrieval_contracts import (
    Answer,
    AssembledContext,
    PromptTemplate,
    RankedPassage,
    SegmentationPolicy,
)
from ..core.logging import CorrelationContext, log_with_context
from ..core.types import RagConfig
from ..providers import TiktokenTokenizer, create_provider
from ..providers.base import Tokenizer
from ..retrieval.context import ContextAssembler
from ..retrieval.documents import load_documents
from ..retrieval.search import RelatednessRanker
from ..retrieval.segmenter import Segmenter
from ..retrieval.store import EmbeddingStore, EmbeddingStoreBuilder
from ..storage.table_store import load_store, save_store, write_manifest
from .answerer import Answerer

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Summary of a build run."""
    run_id: str
    store: EmbeddingStore
    document_count: int
    passage_count: int
    duration_seconds: float = 0.0
    table_path: Optional[str] = None
    manifest_path: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "document_count": self.document_count,
            "passage_count": self.passage_count,
            "dimension": self.store.dimension,
            "duration_seconds": self.duration_seconds,
            "table_path": self.table_path,
            "manifest_path": self.manifest_path,
            **self.extra,
        }


class RagPipeline:
    """
    Wires the pipeline components together from one RagConfig.

    The provider and tokenizer may be injected; otherwise they are created
    from the configuration on first use.

    Example:
        >>> pipeline = RagPipeline(config)
        >>> pipeline.build_to_table("files", "df.csv")
        >>> answer = pipeline.ask_from_table("df.csv", "Why were the gaps irrelevant?")
    """

    def __init__(
        self,
        config: Optional[RagConfig] = None,
        provider=None,
        tokenizer: Optional[Tokenizer] = None,
        template: Optional[PromptTemplate] = None,
    ):
        self.config = config or RagConfig()
        self.template = template or PromptTemplate()
        self._provider = provider
        self._tokenizer = tokenizer

    @property
    def provider(self):
        if self._provider is None:
            self._provider = create_provider(self.config.provider)
        return self._provider

    @property
    def tokenizer(self) -> Tokenizer:
        if self._tokenizer is None:
            self._tokenizer = TiktokenTokenizer(self.config.tokenizer_encoding)
        return self._tokenizer

    @property
    def segmentation_policy(self) -> SegmentationPolicy:
        return SegmentationPolicy(
            min_passage_length=self.config.min_passage_length,
            min_line_length=self.config.min_line_length,
            split_on_multiple_spaces=self.config.split_on_multiple_spaces,
        )

    # ------------------------------------------------------------------
    # Build phase
    # ------------------------------------------------------------------

    def build(self, source_dir: Union[str, Path]) -> BuildResult:
        """
        Ingest, segment, and embed a directory of documents.

        Raises:
            IngestionError: If any document cannot be read
            EmbeddingServiceError: If any embedding batch fails
            EmbeddingDimensionError: If a vector has the wrong dimensionality
        """
        run_id = str(uuid.uuid4())
        start_time = time.time()

        with CorrelationContext(run_id=run_id, stage="ingestion"):
            log_with_context(logger, logging.INFO, f"Starting build from {source_dir}")
            documents = load_documents(source_dir)

        with CorrelationContext(run_id=run_id, stage="segmentation"):
            passages = Segmenter(self.segmentation_policy).segment_documents(documents)

        with CorrelationContext(run_id=run_id, stage="embedding"):
            store = EmbeddingStoreBuilder(self.provider, self.config).build(passages)

        duration = round(time.time() - start_time, 2)
        log_with_context(
            logger,
            logging.INFO,
            f"Build complete: {len(documents)} documents, {len(store)} passages in {duration}s",
            run_id=run_id,
        )

        return BuildResult(
            run_id=run_id,
            store=store,
            document_count=len(documents),
            passage_count=len(store),
            duration_seconds=duration,
        )

    def build_to_table(
        self,
        source_dir: Union[str, Path],
        table_path: Union[str, Path],
    ) -> BuildResult:
        """Build the store and persist it with a manifest."""
        result = self.build(source_dir)

        with CorrelationContext(run_id=result.run_id, stage="storage"):
            saved = save_store(result.store, table_path)
            manifest = write_manifest(saved, {
                "run_id": result.run_id,
                "source_dir": str(source_dir),
                "embedding_model": self.config.embedding_model,
                "dimension": result.store.dimension,
                "document_count": result.document_count,
                "passage_count": result.passage_count,
                "segmentation_policy": self.segmentation_policy.to_dict(),
                "batch_size": self.config.batch_size,
            })

        result.table_path = str(saved)
        result.manifest_path = str(manifest)
        return result

    # ------------------------------------------------------------------
    # Query phase
    # ------------------------------------------------------------------

    def search(
        self,
        query: str,
        store: EmbeddingStore,
        k: Optional[int] = None,
    ) -> List[RankedPassage]:
        """Rank stored passages for a query; ``k`` limits the result."""
        if k is not None and k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        ranked = RelatednessRanker(self.provider, self.config).rank_with_scores(query, store)
        return ranked if k is None else ranked[:k]

    def assemble(self, question: str, store: EmbeddingStore) -> AssembledContext:
        """Rank passages and pack them into the token budget."""
        with CorrelationContext(stage="ranking"):
            ranked = RelatednessRanker(self.provider, self.config).rank(question, store)

        with CorrelationContext(stage="assembly"):
            assembler = ContextAssembler(
                self.tokenizer,
                token_budget=self.config.token_budget,
                corpus_name=self.config.corpus_name,
                template=self.template,
            )
            return assembler.assemble(question, ranked)

    def ask(self, question: str, store: EmbeddingStore) -> Answer:
        """
        Answer a question from an in-memory store.

        Raises:
            EmbeddingServiceError: If the query cannot be embedded
            DegenerateSimilarityError: If a similarity cannot be ordered
            CompletionServiceError: If the completion fails or is empty
        """
        run_id = str(uuid.uuid4())
        with CorrelationContext(run_id=run_id):
            log_with_context(logger, logging.INFO, f"Answering question: {question[:80]}")
            context = self.assemble(question, store)

            with CorrelationContext(stage="completion"):
                answer = Answerer(self.provider, self.config, self.template).answer(question, context)

            log_with_context(
                logger,
                logging.INFO,
                f"Answered with {len(context.passages)} passages using {answer.model}",
            )
        return answer

    def ask_from_table(self, table_path: Union[str, Path], question: str) -> Answer:
        """Load a persisted table and answer a question from it."""
        store = load_store(table_path)
        return self.ask(question, store)
