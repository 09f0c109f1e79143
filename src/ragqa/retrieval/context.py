"""
Context Assembler - pack ranked passages into a token-budgeted prompt.

Passages are appended in rank order until the next one would push the
tokenized message (preamble + accepted passages + candidate + question) over
the budget. Packing stops at that passage: the result is always a prefix of
the ranking, never a size-optimized selection.
"""

import logging
from typing import Optional, Sequence

from ..contracts.retrieval_contracts import AssembledContext, PromptTemplate
from ..providers.base import Tokenizer

logger = logging.getLogger(__name__)


class ContextAssembler:
    """
    Builds the user message for a question from ranked passages.

    Example:
        >>> assembler = ContextAssembler(tokenizer, token_budget=4000)
        >>> context = assembler.assemble("What changed?", ranked_passages)
        >>> print(context.message)
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        token_budget: int = 4000,
        corpus_name: str = "reference",
        template: Optional[PromptTemplate] = None,
    ):
        """
        Initialize the assembler.

        Args:
            tokenizer: Token counter for the completion model
            token_budget: Maximum tokens for the whole message
            corpus_name: Document collection name used in the preamble and blocks
            template: Prompt fragments (uses default if not provided)
        """
        if token_budget <= 0:
            raise ValueError("token_budget must be positive")

        self.tokenizer = tokenizer
        self.token_budget = token_budget
        self.corpus_name = corpus_name
        self.template = template or PromptTemplate()

    def assemble(self, question: str, passages: Sequence[str]) -> AssembledContext:
        """
        Greedily pack a prefix of ``passages`` under the token budget.

        If not even one passage fits, the message is just the preamble and the
        question; deciding whether that is acceptable is left to the caller.

        Args:
            question: The user's question
            passages: Passages in descending relatedness

        Returns:
            AssembledContext with the final message and the included passages
        """
        message = self.template.render_preamble(self.corpus_name)
        suffix = self.template.question_separator + self.template.render_question(question)

        included = []
        for text in passages:
            block = self.template.render_document(text, self.corpus_name)
            tokens = self.tokenizer.count_tokens(message + block + suffix)
            if tokens > self.token_budget:
                logger.debug(
                    f"Passage {len(included) + 1} would use {tokens} tokens "
                    f"(budget {self.token_budget}), stopping"
                )
                break
            message += block
            included.append(text)

        final_message = message + suffix
        token_count = self.tokenizer.count_tokens(final_message)

        logger.info(
            f"Packed {len(included)} of {len(passages)} passages "
            f"({token_count}/{self.token_budget} tokens)"
        )

        return AssembledContext(
            message=final_message,
            passages=included,
            token_count=token_count,
            token_budget=self.token_budget,
            candidates=len(passages),
        )
