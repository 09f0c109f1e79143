"""
Segmenter - Split documents into passages for retrieval.

Passages are paragraph-like blocks separated by blank lines. Inside a block,
short noise lines (headers, footers, page numbers) are dropped and the rest
are joined with single spaces. Text extracted from PDFs or OCR often keeps
column gaps as runs of spaces, so blocks can optionally be re-split there.
"""

import logging
import re
from typing import Iterable, List, Optional

from ..contracts.retrieval_contracts import SegmentationPolicy, SourceDocument

logger = logging.getLogger(__name__)

BLOCK_BOUNDARY_RE = re.compile(r"\n[ \t\r\f\v\u00a0]*\n")
MULTI_SPACE_RE = re.compile(r" {2,}")
NBSP = "\u00a0"
ASCII_WHITESPACE = " \t\r\f\v"


class Segmenter:
    """
    Splits text content into passages.

    Output is deterministic for a given policy; duplicates are kept since a
    passage's identity is its text.

    Example:
        >>> segmenter = Segmenter(SegmentationPolicy(min_passage_length=64))
        >>> passages = segmenter.segment("First paragraph...\\n\\nSecond paragraph...")
    """

    def __init__(self, policy: Optional[SegmentationPolicy] = None):
        """
        Initialize the segmenter.

        Args:
            policy: Segmentation policy (uses default if not provided)
        """
        self.policy = policy or SegmentationPolicy()

    def segment(self, text: str) -> List[str]:
        """
        Split one document into passages.

        Args:
            text: Raw document text

        Returns:
            Passages strictly longer than the policy's minimum length
        """
        return segment_text(
            text,
            min_passage_length=self.policy.min_passage_length,
            min_line_length=self.policy.min_line_length,
            split_on_multiple_spaces=self.policy.split_on_multiple_spaces,
            normalize_nbsp=self.policy.normalize_nbsp,
        )

    def segment_documents(self, documents: Iterable[SourceDocument]) -> List[str]:
        """
        Split a corpus into passages, preserving document order.

        A document that yields no passages contributes nothing.
        """
        passages: List[str] = []
        document_count = 0
        for document in documents:
            document_count += 1
            found = self.segment(document.text)
            if not found:
                logger.debug(f"No passages in {document.path}")
            passages.extend(found)

        logger.info(f"Segmented {document_count} documents into {len(passages)} passages")
        return passages


def segment_text(
    text: str,
    min_passage_length: int = 128,
    min_line_length: int = 0,
    split_on_multiple_spaces: bool = False,
    normalize_nbsp: bool = True,
) -> List[str]:
    """
    Split text into passages.

    A block long enough to be a passage always yields at least one: when
    re-splitting on runs of spaces leaves no piece over the minimum, the
    whole block is kept instead.

    Args:
        text: Raw document text
        min_passage_length: Passages must be strictly longer than this
        min_line_length: Lines shorter than this are discarded
        split_on_multiple_spaces: Re-split blocks on runs of 2+ spaces
        normalize_nbsp: Replace non-breaking spaces with regular spaces;
            when False they are kept, including at line ends

    Returns:
        List of passage strings
    """
    if not text:
        return []

    if min_passage_length < 0:
        raise ValueError("min_passage_length must be non-negative")

    if min_line_length < 0:
        raise ValueError("min_line_length must be non-negative")

    # str.strip() with no argument also removes U+00A0
    strip_chars = None if normalize_nbsp else ASCII_WHITESPACE

    passages = []
    for block in BLOCK_BOUNDARY_RE.split(text):
        lines = []
        for line in block.splitlines():
            if normalize_nbsp:
                line = line.replace(NBSP, " ")
            line = line.strip(strip_chars)
            if line and len(line) >= min_line_length:
                lines.append(line)

        if not lines:
            continue

        joined = " ".join(lines)
        if len(joined) <= min_passage_length:
            continue

        if not split_on_multiple_spaces:
            passages.append(joined)
            continue

        pieces = [piece.strip(strip_chars) for piece in MULTI_SPACE_RE.split(joined)]
        kept = [piece for piece in pieces if len(piece) > min_passage_length]
        passages.extend(kept or [joined])

    return passages
