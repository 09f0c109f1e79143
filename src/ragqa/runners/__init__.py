"""
Orchestration for answering questions and building the passage table.
"""

from .answerer import Answerer
from .pipeline import BuildResult, RagPipeline

__all__ = [
    "Answerer",
    "BuildResult",
    "RagPipeline",
]
