"""
Provider interfaces required by the pipeline.

The pipeline depends only on these capabilities, so any client (or a test
fake) that implements them can be plugged in.
"""

from typing import Dict, List, Optional, Protocol

from ..contracts.retrieval_contracts import ChatCompletion


class EmbeddingProvider(Protocol):
    """Returns one vector per input text, in input order."""

    def embed(self, texts: List[str], model: Optional[str] = None) -> List[List[float]]:
        ...


class CompletionProvider(Protocol):
    """Generates a completion for a role-tagged list of messages."""

    def chat(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: float = 0.0,
    ) -> ChatCompletion:
        ...


class Tokenizer(Protocol):
    """Counts model-specific tokens."""

    def count_tokens(self, text: str) -> int:
        ...
