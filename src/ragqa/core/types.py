"""
Core configuration types for the question-answering pipeline.

Configuration is an explicit structure handed to each component at
construction; nothing reads module-level settings at call time.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..utils.retry import RetryConfig


SUPPORTED_PROVIDERS = ("openai", "ollama")

DEFAULT_EMBEDDING_MODEL = "text-embedding-ada-002"
DEFAULT_COMPLETION_MODEL = "gpt-3.5-turbo"
DEFAULT_TOKEN_BUDGET = 4000
DEFAULT_MIN_PASSAGE_LENGTH = 128
DEFAULT_BATCH_SIZE = 1000
DEFAULT_EMBEDDING_DIMENSION = 1536


@dataclass
class ProviderConfig:
    """
    Connection settings for the embedding/completion provider.

    Attributes:
        provider: Provider name ('openai' or 'ollama')
        base_url: Base URL for the provider API (None = provider default)
        api_key: API key (required for 'openai')
        timeout_seconds: Request timeout in seconds
        extra_params: Additional provider-specific parameters
            (e.g. {"api_mode": "openai"} for Ollama's compatible endpoint)
    """
    provider: str = "openai"
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_seconds: int = 120
    extra_params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging; the API key is masked."""
        return {
            "provider": self.provider,
            "base_url": self.base_url,
            "api_key": "***" if self.api_key else None,
            "timeout_seconds": self.timeout_seconds,
            "extra_params": self.extra_params,
        }


@dataclass
class RagConfig:
    """
    Tunables for the build and query pipelines.

    Attributes:
        embedding_model: Embedding model identifier
        completion_model: Completion model identifier
        token_budget: Maximum tokens for preamble + context + question
        min_passage_length: Passages must be strictly longer than this (characters)
        min_line_length: Lines shorter than this are dropped inside a block
        split_on_multiple_spaces: Re-split passages on runs of 2+ spaces
        batch_size: Passages per embedding request
        embedding_dimension: Expected vector length (None = taken from first vector)
        tokenizer_encoding: tiktoken encoding used to count prompt tokens
        corpus_name: Name of the document collection, used in prompts
        embed_concurrency: Embedding batches in flight at once (1 = sequential)
        retry: Retry policy for external-service calls
        provider: Provider connection settings
    """
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    completion_model: str = DEFAULT_COMPLETION_MODEL
    token_budget: int = DEFAULT_TOKEN_BUDGET
    min_passage_length: int = DEFAULT_MIN_PASSAGE_LENGTH
    min_line_length: int = 0
    split_on_multiple_spaces: bool = False
    batch_size: int = DEFAULT_BATCH_SIZE
    embedding_dimension: Optional[int] = DEFAULT_EMBEDDING_DIMENSION
    tokenizer_encoding: str = "cl100k_base"
    corpus_name: str = "reference"
    embed_concurrency: int = 1
    retry: RetryConfig = field(default_factory=RetryConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for manifests and logging."""
        return {
            "embedding_model": self.embedding_model,
            "completion_model": self.completion_model,
            "token_budget": self.token_budget,
            "min_passage_length": self.min_passage_length,
            "min_line_length": self.min_line_length,
            "split_on_multiple_spaces": self.split_on_multiple_spaces,
            "batch_size": self.batch_size,
            "embedding_dimension": self.embedding_dimension,
            "tokenizer_encoding": self.tokenizer_encoding,
            "corpus_name": self.corpus_name,
            "embed_concurrency": self.embed_concurrency,
            "provider": self.provider.to_dict(),
        }
