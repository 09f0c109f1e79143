"""
Unit tests for the answerer.

Tests for:
- Message shape and sampling settings
- Distinct errors for missing choices and missing content
- Retry of transient completion failures
"""

import pytest

from conftest import FakeCompleter, completion
from ragqa.contracts.retrieval_contracts import AssembledContext, ChatChoice, ChatCompletion
from ragqa.core.exceptions import (
    CompletionServiceError,
    NoCompletionMessageError,
    NoCompletionReturnedError,
    ProviderError,
)
from ragqa.runners.answerer import Answerer


@pytest.fixture
def context():
    return AssembledContext(
        message="Use the below documents...\n\nQuestion: Why?",
        passages=["passage"],
        token_count=12,
        token_budget=4000,
        candidates=3,
    )


class TestAnswerer:
    """Tests for Answerer."""

    def test_returns_first_choice(self, fast_config, context):
        completer = FakeCompleter([completion("First answer.", "Second answer.")])

        answer = Answerer(completer, fast_config).answer("Why?", context)

        assert answer.text == "First answer."
        assert answer.question == "Why?"
        assert answer.context is context
        assert answer.model == "test-model"

    def test_message_shape(self, fast_config, context):
        completer = FakeCompleter()
        fast_config.corpus_name = "Forthright"

        Answerer(completer, fast_config).answer("Why?", context)

        messages = completer.requests[0]["messages"]
        assert messages == [
            {"role": "system", "content": "You answer questions about Forthright documents."},
            {"role": "user", "content": context.message},
        ]

    def test_deterministic_sampling(self, fast_config, context):
        completer = FakeCompleter()

        Answerer(completer, fast_config).answer("Why?", context)

        assert completer.requests[0]["temperature"] == 0.0
        assert completer.requests[0]["model"] == fast_config.completion_model

    def test_no_choices(self, fast_config, context):
        completer = FakeCompleter([ChatCompletion(choices=[])])

        with pytest.raises(NoCompletionReturnedError) as exc_info:
            Answerer(completer, fast_config).answer("Why?", context)

        assert str(exc_info.value) == "No completion returned"

    def test_no_message_content(self, fast_config, context):
        completer = FakeCompleter([ChatCompletion(choices=[ChatChoice(content=None)])])

        with pytest.raises(NoCompletionMessageError) as exc_info:
            Answerer(completer, fast_config).answer("Why?", context)

        assert str(exc_info.value) == "No completion message"

    def test_empty_message_content(self, fast_config, context):
        completer = FakeCompleter([ChatCompletion(choices=[ChatChoice(content="")])])

        with pytest.raises(NoCompletionMessageError):
            Answerer(completer, fast_config).answer("Why?", context)

    def test_errors_are_distinct(self):
        assert not issubclass(NoCompletionReturnedError, NoCompletionMessageError)
        assert not issubclass(NoCompletionMessageError, NoCompletionReturnedError)
        assert issubclass(NoCompletionReturnedError, CompletionServiceError)
        assert issubclass(NoCompletionMessageError, CompletionServiceError)

    def test_transient_failure_retried(self, fast_config, context):
        completer = FakeCompleter([ProviderError("rate limited", status_code=429), completion("ok")])

        answer = Answerer(completer, fast_config).answer("Why?", context)

        assert answer.text == "ok"
        assert len(completer.requests) == 2

    def test_permanent_failure(self, fast_config, context):
        completer = FakeCompleter([ProviderError("bad request", status_code=400), completion("ok")])

        with pytest.raises(CompletionServiceError):
            Answerer(completer, fast_config).answer("Why?", context)

        assert len(completer.requests) == 1
