"""
Embedding, completion, and tokenizer providers.
"""

from ..core.exceptions import ConfigError
from ..core.types import ProviderConfig
from .base import CompletionProvider, EmbeddingProvider, Tokenizer
from .ollama_client import OllamaClient
from .openai_client import OpenAIClient
from .tokenizer import TiktokenTokenizer


def create_provider(config: ProviderConfig):
    """
    Create the client named by ``config.provider``.

    The returned client implements both EmbeddingProvider and CompletionProvider.

    Raises:
        ConfigError: If the provider is unknown or misconfigured
    """
    if config.provider == "openai":
        return OpenAIClient(config)
    if config.provider == "ollama":
        return OllamaClient(config)
    raise ConfigError(f"Unknown provider: {config.provider}")


__all__ = [
    "CompletionProvider",
    "EmbeddingProvider",
    "OllamaClient",
    "OpenAIClient",
    "TiktokenTokenizer",
    "Tokenizer",
    "create_provider",
]
