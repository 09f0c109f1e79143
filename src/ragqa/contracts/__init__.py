"""
Data contracts exchanged between pipeline stages and providers.
"""

from .retrieval_contracts import (
    Answer,
    AssembledContext,
    ChatChoice,
    ChatCompletion,
    PassageRecord,
    PromptTemplate,
    RankedPassage,
    SegmentationPolicy,
    SourceDocument,
)

__all__ = [
    "Answer",
    "AssembledContext",
    "ChatChoice",
    "ChatCompletion",
    "PassageRecord",
    "PromptTemplate",
    "RankedPassage",
    "SegmentationPolicy",
    "SourceDocument",
]
