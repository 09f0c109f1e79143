"""
Core subpackage for the question-answering pipeline.

Contains configuration types, exceptions, and logging utilities.
"""

from .types import (
    ProviderConfig,
    RagConfig,
)
from .exceptions import (
    RagError,
    ConfigError,
    IngestionError,
    ProviderError,
    EmbeddingServiceError,
    EmbeddingDimensionError,
    DegenerateSimilarityError,
    CompletionServiceError,
    NoCompletionReturnedError,
    NoCompletionMessageError,
    SerializationError,
)

__all__ = [
    # Types
    "ProviderConfig",
    "RagConfig",
    # Exceptions
    "RagError",
    "ConfigError",
    "IngestionError",
    "ProviderError",
    "EmbeddingServiceError",
    "EmbeddingDimensionError",
    "DegenerateSimilarityError",
    "CompletionServiceError",
    "NoCompletionReturnedError",
    "NoCompletionMessageError",
    "SerializationError",
]
