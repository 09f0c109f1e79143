"""
Shared test fixtures and configuration for pytest.
"""

import logging
import sys
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ragqa.contracts.retrieval_contracts import ChatChoice, ChatCompletion
from ragqa.core.types import RagConfig
from ragqa.utils.retry import RetryConfig


logger = logging.getLogger(__name__)


# ============================================================================
# Fakes for external collaborators
# ============================================================================

class FakeEmbedder:
    """
    Embedding provider returning fixed vectors.

    Texts found in ``vectors`` get that vector; others get a deterministic
    three-dimensional vector derived from the text. Every call is recorded.
    """

    def __init__(self, vectors: Optional[Dict[str, Sequence[float]]] = None, errors=None):
        self.vectors = dict(vectors or {})
        self.errors = list(errors or [])
        self.calls: List[List[str]] = []
        self.models: List[Optional[str]] = []
        self._lock = threading.Lock()

    def embed(self, texts: List[str], model: Optional[str] = None) -> List[List[float]]:
        with self._lock:
            self.calls.append(list(texts))
            self.models.append(model)
            if self.errors:
                error = self.errors.pop(0)
                if error is not None:
                    raise error
        return [list(self.vectors.get(text, default_vector(text))) for text in texts]


def default_vector(text: str) -> List[float]:
    return [float(len(text)), float(sum(map(ord, text)) % 97 + 1), 1.0]


class WordTokenizer:
    """Counts whitespace-separated words."""

    def count_tokens(self, text: str) -> int:
        return len(text.split())


class FakeCompleter:
    """Completion provider returning queued responses."""

    def __init__(self, responses=None):
        self.responses = list(responses or [completion("The answer.")])
        self.requests: List[dict] = []

    def chat(self, messages, model=None, temperature=0.0) -> ChatCompletion:
        self.requests.append({"messages": messages, "model": model, "temperature": temperature})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def completion(*contents, model: str = "test-model") -> ChatCompletion:
    return ChatCompletion(choices=[ChatChoice(content=c) for c in contents], model=model)


class FakeProvider(FakeEmbedder, FakeCompleter):
    """Provider implementing both embedding and completion."""

    def __init__(self, vectors=None, responses=None):
        FakeEmbedder.__init__(self, vectors)
        FakeCompleter.__init__(self, responses)


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def fast_config() -> RagConfig:
    """Config with no expected dimension and no retry delays."""
    return RagConfig(
        embedding_dimension=None,
        retry=RetryConfig(max_attempts=3, initial_delay_ms=0.0, max_delay_ms=0.0, jitter=False),
    )


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def word_tokenizer() -> WordTokenizer:
    return WordTokenizer()


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()
