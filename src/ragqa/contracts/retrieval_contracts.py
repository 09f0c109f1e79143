"""
Retrieval Contracts - data records shared across the pipeline.

These models define the segmentation policy, passage/vector records, ranked
results, the assembled prompt, and the completion/answer shapes exchanged
with providers.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class SegmentationPolicy:
    """
    Policy for splitting documents into passages.

    The thresholds are tuned to line-oriented extracted text and are
    configurable rather than load-bearing.

    Attributes:
        min_passage_length: Passages must be strictly longer than this (characters)
        min_line_length: Lines shorter than this are dropped inside a block
        split_on_multiple_spaces: Re-split on runs of two or more spaces
        normalize_nbsp: Replace non-breaking spaces with regular spaces
    """
    min_passage_length: int = 128
    min_line_length: int = 0
    split_on_multiple_spaces: bool = False
    normalize_nbsp: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "min_passage_length": self.min_passage_length,
            "min_line_length": self.min_line_length,
            "split_on_multiple_spaces": self.split_on_multiple_spaces,
            "normalize_nbsp": self.normalize_nbsp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SegmentationPolicy":
        """Create from dictionary."""
        return cls(
            min_passage_length=data.get("min_passage_length", 128),
            min_line_length=data.get("min_line_length", 0),
            split_on_multiple_spaces=data.get("split_on_multiple_spaces", False),
            normalize_nbsp=data.get("normalize_nbsp", True),
        )


@dataclass(frozen=True)
class SourceDocument:
    """A document read from the source directory."""
    path: str
    text: str


@dataclass(frozen=True)
class PassageRecord:
    """
    A passage paired with its embedding vector.

    Records are created only once the vector is known, so a passage is never
    stored without one.

    Attributes:
        text: Passage text
        vector: Embedding vector
    """
    text: str
    vector: Tuple[float, ...]

    @property
    def dimension(self) -> int:
        return len(self.vector)


@dataclass(frozen=True)
class RankedPassage:
    """A passage with its relatedness score to a query."""
    text: str
    score: float
    rank: int


@dataclass
class PromptTemplate:
    """
    Text fragments used to assemble the user prompt and system instruction.

    ``{corpus}`` is replaced by the configured corpus name; ``{text}`` and
    ``{question}`` by the passage and question.
    """
    preamble: str = (
        "Use the below {corpus} documents to answer the subsequent question. "
        "If the answer cannot be found in the documents, "
        "write \"I could not find an answer.\""
    )
    document_block: str = '\n\n{corpus} document:\n"""\n{text}\n"""'
    question_block: str = "Question: {question}"
    question_separator: str = "\n\n"
    system_instruction: str = "You answer questions about {corpus} documents."

    def render_preamble(self, corpus: str) -> str:
        return self.preamble.format(corpus=corpus)

    def render_document(self, text: str, corpus: str) -> str:
        return self.document_block.format(corpus=corpus, text=text)

    def render_question(self, question: str) -> str:
        return self.question_block.format(question=question)

    def render_system(self, corpus: str) -> str:
        return self.system_instruction.format(corpus=corpus)


@dataclass
class AssembledContext:
    """
    Prompt built from a preamble, a prefix of the ranked passages, and the question.

    Attributes:
        message: Final user message (preamble + documents + question)
        passages: Passages included, in ranked order
        token_count: Token count of the final message
        token_budget: Budget the message was packed against
        candidates: Number of ranked passages offered to the assembler
    """
    message: str
    passages: List[str] = field(default_factory=list)
    token_count: int = 0
    token_budget: int = 0
    candidates: int = 0

    @property
    def within_budget(self) -> bool:
        return self.token_count <= self.token_budget


@dataclass(frozen=True)
class ChatChoice:
    """One generated alternative returned by a completion provider."""
    content: Optional[str]


@dataclass
class ChatCompletion:
    """
    Provider-neutral completion response.

    Attributes:
        choices: Generated alternatives in provider order
        model: Model that produced the completion
        prompt_tokens: Number of prompt tokens (if available)
        completion_tokens: Number of completion tokens (if available)
        raw_response: Full provider response (if available)
    """
    choices: List[ChatChoice] = field(default_factory=list)
    model: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    raw_response: Optional[Dict[str, Any]] = None


@dataclass
class Answer:
    """Answer text along with the context it was generated from."""
    question: str
    text: str
    context: AssembledContext
    model: Optional[str] = None
