"""
Token counting for prompt budgets, backed by tiktoken.
"""

import logging

import tiktoken

logger = logging.getLogger(__name__)


class TiktokenTokenizer:
    """
    Counts tokens with a tiktoken encoding.

    Special-token text in documents (e.g. ``<|endoftext|>``) is counted as the
    special token it encodes to rather than rejected.
    """

    def __init__(self, encoding_name: str = "cl100k_base"):
        self.encoding_name = encoding_name
        self.encoding = tiktoken.get_encoding(encoding_name)

    def count_tokens(self, text: str) -> int:
        return len(self.encoding.encode(text, allowed_special="all"))
