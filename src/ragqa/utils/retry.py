"""
Retry logic with exponential backoff for external-service calls.

Embedding and completion requests may fail transiently (connection resets,
throttling, server errors). These helpers retry such calls without changing
what the caller does with the result.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional


logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (including first try)
        initial_delay_ms: Initial delay in milliseconds
        max_delay_ms: Maximum delay in milliseconds
        backoff_multiplier: Multiplier for exponential backoff
        jitter: Whether to add random jitter to delay
    """
    max_attempts: int = 3
    initial_delay_ms: float = 250.0
    max_delay_ms: float = 1000.0
    backoff_multiplier: float = 2.0
    jitter: bool = True


@dataclass
class RetryResult:
    """
    Result of a retry operation.

    Attributes:
        success: Whether the operation succeeded
        result: The result value if successful
        attempts: Number of attempts made
        error: The last error if failed
        error_history: List of errors from each attempt
    """
    success: bool
    result: Any = None
    attempts: int = 0
    error: Optional[Exception] = None
    error_history: List[str] = field(default_factory=list)


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate delay for a given attempt with exponential backoff.

    Args:
        attempt: Attempt number (0-based)
        config: Retry configuration

    Returns:
        Delay in seconds
    """
    delay_ms = min(
        config.initial_delay_ms * (config.backoff_multiplier ** attempt),
        config.max_delay_ms
    )

    # ±25% random variation
    if config.jitter:
        jitter_factor = 0.75 + (random.random() * 0.5)
        delay_ms *= jitter_factor

    return delay_ms / 1000.0


def retry_with_backoff(
    operation: Callable[[], Any],
    config: RetryConfig,
    retry_on: tuple = (Exception,),
    should_retry: Optional[Callable[[Exception], bool]] = None,
    operation_name: str = "operation",
) -> RetryResult:
    """
    Execute an operation with retry and exponential backoff.

    Args:
        operation: Callable to execute (should take no arguments)
        config: Retry configuration
        retry_on: Tuple of exception types to retry on
        should_retry: Optional predicate; a matching error for which it
            returns False is treated as non-retryable
        operation_name: Name for logging

    Returns:
        RetryResult with success/failure info

    Example:
        >>> config = RetryConfig(max_attempts=3)
        >>> result = retry_with_backoff(lambda: client.embed(["text"]), config)
        >>> if result.success:
        ...     print(f"Success after {result.attempts} attempts")
    """
    error_history: List[str] = []
    last_error: Optional[Exception] = None

    for attempt in range(config.max_attempts):
        try:
            logger.debug(f"{operation_name}: attempt {attempt + 1}/{config.max_attempts}")
            result = operation()

            if attempt > 0:
                logger.info(f"{operation_name} succeeded after {attempt + 1} attempts")

            return RetryResult(
                success=True,
                result=result,
                attempts=attempt + 1,
                error_history=error_history,
            )

        except retry_on as e:
            error_history.append(str(e))
            last_error = e

            if should_retry is not None and not should_retry(e):
                logger.error(f"{operation_name} failed with non-retryable error: {e}")
                return RetryResult(
                    success=False,
                    attempts=attempt + 1,
                    error=e,
                    error_history=error_history,
                )

            logger.warning(
                f"{operation_name} failed on attempt {attempt + 1}/{config.max_attempts}: {e}"
            )

            # Don't sleep after the last attempt
            if attempt < config.max_attempts - 1:
                delay = calculate_delay(attempt, config)
                logger.debug(f"Backing off for {delay:.3f}s before retry")
                time.sleep(delay)

        except Exception as e:
            logger.error(f"{operation_name} failed with non-retryable error: {e}")
            error_history.append(str(e))
            return RetryResult(
                success=False,
                attempts=attempt + 1,
                error=e,
                error_history=error_history,
            )

    logger.error(f"{operation_name} exhausted all {config.max_attempts} attempts")

    return RetryResult(
        success=False,
        attempts=config.max_attempts,
        error=last_error,
        error_history=error_history,
    )


def call_with_retry(
    operation: Callable[[], Any],
    config: RetryConfig,
    retry_on: tuple = (Exception,),
    should_retry: Optional[Callable[[Exception], bool]] = None,
    operation_name: str = "operation",
) -> Any:
    """
    Like retry_with_backoff, but return the value or raise the last error.
    """
    outcome = retry_with_backoff(
        operation,
        config,
        retry_on=retry_on,
        should_retry=should_retry,
        operation_name=operation_name,
    )
    if outcome.success:
        return outcome.result
    raise outcome.error
