"""
Retrieval module for question answering over a document corpus.

This module provides:
- Ingestion: Read source documents from a directory
- Segmentation: Split documents into passages
- Embedding store: Pair passages with vectors, built in batches
- Search: Rank passages by cosine similarity to a query
- Context assembly: Pack ranked passages under a token budget
"""

from .context import ContextAssembler
from .documents import load_documents
from .search import RelatednessRanker, cosine_similarity, rank_passages
from .segmenter import Segmenter, segment_text
from .store import EmbeddingStore, EmbeddingStoreBuilder, make_batches

__all__ = [
    "ContextAssembler",
    "EmbeddingStore",
    "EmbeddingStoreBuilder",
    "RelatednessRanker",
    "Segmenter",
    "cosine_similarity",
    "load_documents",
    "make_batches",
    "rank_passages",
    "segment_text",
]
