"""Shared utilities."""

from .retry import RetryConfig, RetryResult, call_with_retry, retry_with_backoff

__all__ = [
    "RetryConfig",
    "RetryResult",
    "call_with_retry",
    "retry_with_backoff",
]
