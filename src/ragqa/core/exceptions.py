"""
Custom exceptions for the question-answering pipeline.

Every error carries a ``stage`` label naming the part of the pipeline that
failed, so the command line can report it without inspecting types.
"""

from typing import Optional


class RagError(Exception):
    """Base exception for all pipeline errors."""
    stage = "pipeline"


class ConfigError(RagError):
    """
    Error in pipeline configuration.

    Raised when:
    - Configuration file is missing or invalid
    - Required configuration values are not set (e.g. API key)
    - Configuration values are out of valid range
    """
    stage = "config"


class IngestionError(RagError):
    """
    Error reading source documents.

    Raised when:
    - Source directory does not exist
    - A document file cannot be read
    - A document is not valid UTF-8
    """
    stage = "ingestion"

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ProviderError(RagError):
    """
    Error communicating with an embedding or completion provider.

    Raised when:
    - Provider is unreachable
    - Request times out
    - Provider returns an error response
    """
    stage = "provider"

    RETRYABLE_STATUS_CODES = (408, 429, 500, 502, 503, 504)

    def __init__(self, message: str, provider: str = None, status_code: int = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Connection failures and throttling/server errors are transient."""
        if self.status_code is None:
            return True
        return self.status_code in self.RETRYABLE_STATUS_CODES


class EmbeddingServiceError(RagError):
    """
    An embedding request failed or broke the service contract.

    Raised when a batch (build) or the query (search) could not be embedded,
    or the service returned a different number of vectors than requested.
    """
    stage = "embedding"


class EmbeddingDimensionError(RagError):
    """A vector does not have the expected dimensionality."""
    stage = "embedding"

    def __init__(self, expected: int, actual: int, context: str = ""):
        where = f" ({context})" if context else ""
        super().__init__(
            f"Embedding dimension mismatch{where}: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class DegenerateSimilarityError(RagError):
    """
    A similarity score could not be ordered.

    Raised for zero-magnitude or non-finite vectors, whose cosine similarity
    is undefined (NaN).
    """
    stage = "ranking"


class CompletionServiceError(RagError):
    """The completion request failed or broke the service contract."""
    stage = "completion"


class NoCompletionReturnedError(CompletionServiceError):
    """The completion service returned zero choices."""

    def __init__(self, message: str = "No completion returned"):
        super().__init__(message)


class NoCompletionMessageError(CompletionServiceError):
    """The first completion choice carried no text content."""

    def __init__(self, message: str = "No completion message"):
        super().__init__(message)


class SerializationError(RagError):
    """
    Error reading or writing the persisted passage table.

    Raised when:
    - The table is missing the ``text`` or ``embedding`` column
    - A vector cell is not a JSON array of finite numbers
    - Rows disagree on vector dimensionality
    - The table or manifest cannot be written
    """
    stage = "storage"
