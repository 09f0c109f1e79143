"""
Unit tests for logging utilities.
"""

import json
import logging

from ragqa.core.logging import (
    CorrelationContext,
    HumanReadableFormatter,
    StructuredFormatter,
    log_with_context,
)


def make_record(message="Embedding batch", **extra):
    record = logging.LogRecord("ragqa.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Tests for log formatters."""

    def test_structured(self):
        line = StructuredFormatter(include_timestamp=False).format(
            make_record(run_id="abc", stage="embedding")
        )

        assert json.loads(line) == {
            "level": "INFO",
            "logger": "ragqa.test",
            "message": "Embedding batch",
            "run_id": "abc",
            "stage": "embedding",
        }

    def test_human_readable_suffix(self):
        line = HumanReadableFormatter(include_timestamp=False).format(
            make_record(run_id="abc", stage="ranking")
        )

        assert line == "ragqa.test - INFO - Embedding batch [run_id=abc stage=ranking]"

    def test_human_readable_without_context(self):
        line = HumanReadableFormatter(include_timestamp=False).format(make_record())

        assert line == "ragqa.test - INFO - Embedding batch"


class TestCorrelationContext:
    """Tests for CorrelationContext."""

    def test_nested_contexts_merge(self):
        with CorrelationContext(run_id="run-1", stage="ingestion"):
            with CorrelationContext(stage="embedding", batch=2):
                assert CorrelationContext.get_current() == {
                    "run_id": "run-1",
                    "stage": "embedding",
                    "batch": 2,
                }
            assert CorrelationContext.get_current()["stage"] == "ingestion"

        assert CorrelationContext.get_current() == {}

    def test_log_with_context(self, caplog):
        logger = logging.getLogger("ragqa.test")

        with caplog.at_level(logging.INFO, logger="ragqa.test"):
            with CorrelationContext(run_id="run-2", stage="assembly"):
                log_with_context(logger, logging.INFO, "Packed passages")

        record = caplog.records[-1]
        assert record.run_id == "run-2"
        assert record.stage == "assembly"
