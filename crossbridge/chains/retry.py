"""
Provider Retry Policy

Transient provider failures are retried locally with bounded exponential
backoff before ProviderError reaches the caller. Bounds come from
BridgeSettings so tests and deployments can tune them without code changes.
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import BridgeSettings
from ..exceptions import ProviderError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Retry configuration for transient errors
RETRYABLE_EXCEPTIONS = (ProviderError,)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "provider_call_retrying",
        attempt=retry_state.attempt_number,
        error=str(exc) if exc else None,
    )


def provider_retrying(settings: BridgeSettings) -> AsyncRetrying:
    """Build the retry controller for a provider call."""
    return AsyncRetrying(
        stop=stop_after_attempt(settings.provider_max_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=settings.provider_retry_min_seconds,
            max=settings.provider_retry_max_seconds,
        ),
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        before_sleep=_log_retry,
        reraise=True,
    )


async def call_with_retry(
    settings: BridgeSettings,
    func: Callable[[], Awaitable[T]],
) -> T:
    """
    Await func(), retrying on ProviderError.

    Raises:
        ProviderError: After provider_max_attempts consecutive failures
    """
    async for attempt in provider_retrying(settings):
        with attempt:
            result = await func()
    return result
