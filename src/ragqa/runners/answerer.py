"""
Answerer - send the assembled prompt to the completion model.

The request is a two-message exchange: a fixed system instruction followed by
the assembled user message. Sampling is fixed at temperature 0
so identical context yields reproducible answers.
"""

import logging
from typing import Dict, List, Optional

from ..contracts.retrieval_contracts import Answer, AssembledContext, PromptTemplate
from ..core.exceptions import (
    CompletionServiceError,
    NoCompletionMessageError,
    NoCompletionReturnedError,
    ProviderError,
)
from ..core.types import RagConfig
from ..providers.base import CompletionProvider
from ..utils.retry import call_with_retry

logger = logging.getLogger(__name__)


class Answerer:
    """
    Produces an answer from an assembled context.

    Example:
        >>> answerer = Answerer(provider, config)
        >>> answer = answerer.answer(question, context)
        >>> print(answer.text)
    """

    def __init__(
        self,
        completer: CompletionProvider,
        config: Optional[RagConfig] = None,
        template: Optional[PromptTemplate] = None,
    ):
        self.completer = completer
        self.config = config or RagConfig()
        self.template = template or PromptTemplate()

    def build_messages(self, context: AssembledContext) -> List[Dict[str, str]]:
        """Build the system + user message pair."""
        return [
            {"role": "system", "content": self.template.render_system(self.config.corpus_name)},
            {"role": "user", "content": context.message},
        ]

    def answer(self, question: str, context: AssembledContext) -> Answer:
        """
        Request a completion and return the first choice's text.

        Args:
            question: The user's question
            context: Assembled prompt for the question

        Returns:
            Answer with the generated text

        Raises:
            CompletionServiceError: If the request fails
            NoCompletionReturnedError: If no choices were returned
            NoCompletionMessageError: If the first choice has no content
        """
        messages = self.build_messages(context)
        model = self.config.completion_model

        logger.info(f"Requesting completion from {model} ({context.token_count} prompt tokens)")

        try:
            completion = call_with_retry(
                lambda: self.completer.chat(
                    messages,
                    model=model,
                    temperature=0.0,
                ),
                self.config.retry,
                retry_on=(ProviderError,),
                should_retry=lambda e: e.retryable,
                operation_name="chat completion",
            )
        except ProviderError as e:
            raise CompletionServiceError(f"Completion request failed: {e}") from e

        if not completion.choices:
            raise NoCompletionReturnedError()

        content = completion.choices[0].content
        if not content:
            raise NoCompletionMessageError()

        return Answer(
            question=question,
            text=content,
            context=context,
            model=completion.model or model,
        )
