"""Bounded retries with backoff for model calls."""
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from tenacity import AsyncRetrying, before_sleep_log, retry_if_not_exception_type, stop_after_attempt
from tenacity.wait import wait_base

from utils.errors import ContentPolicyError, GenerationValidationError, InvalidInputError, RateLimitError
from utils.logger import setup_logger
import config

logger = setup_logger(__name__)

T = TypeVar("T")

NON_RETRYABLE = (ContentPolicyError, GenerationValidationError, InvalidInputError)


class wait_doubling_on_rate_limit(wait_base):
    """Fixed delay between attempts, doubled each time a rate limit is hit.

    Holds the current delay, so a fresh instance is needed per retried call.
    """

    def __init__(self, initial_delay: float):
        self.delay = initial_delay

    def __call__(self, retry_state) -> float:
        if isinstance(retry_state.outcome.exception(), RateLimitError):
            self.delay *= 2
        return self.delay


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = config.MAX_RETRY_ATTEMPTS,
    initial_delay: float = config.INITIAL_RETRY_DELAY_MS / 1000,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
) -> T:
    """Run an async operation, retrying transient failures.

    Content-policy and validation errors are re-raised at once. Anything
    else is retried up to max_attempts in total, after which the last error
    is re-raised unchanged.

    Args:
        operation: Zero-argument coroutine function
        max_attempts: Total attempts including the first
        initial_delay: Seconds to wait before the first retry
        sleep: Awaitable sleep, injectable for tests

    Returns:
        The operation's result
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_doubling_on_rate_limit(initial_delay),
        retry=retry_if_not_exception_type(NON_RETRYABLE),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
    return await retrying(operation)
