import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
)

from cheersearch.config import settings

logger = logging.getLogger("cheersearch.http.resilient")

DEFAULT_RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})

# Failures worth another attempt: transport problems and the per-attempt timer.
RETRYABLE_ERRORS = (httpx.TransportError, asyncio.TimeoutError)


@dataclass(frozen=True)
class RetryPolicy:
    timeout_ms: int = 15_000
    retries: int = 2
    backoff_ms: int = 500
    retryable_statuses: frozenset[int] = DEFAULT_RETRYABLE_STATUSES

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            timeout_ms=settings.http_timeout_ms,
            retries=settings.http_retries,
            backoff_ms=settings.http_backoff_ms,
        )


def backoff_duration(attempt: int, backoff_ms: float) -> float:
    """Delay in ms before the retry that follows ``attempt`` (0-based).

    Doubles with each attempt: backoff_ms, 2*backoff_ms, 4*backoff_ms, ...
    """
    return backoff_ms * (2**attempt)


def backoff_wait(policy: RetryPolicy) -> Callable[[RetryCallState], float]:
    """Tenacity wait strategy (seconds) built on :func:`backoff_duration`."""

    def wait(retry_state: RetryCallState) -> float:
        # attempt_number starts at 1
        return backoff_duration(retry_state.attempt_number - 1, policy.backoff_ms) / 1000

    return wait


def build_http_client(**kwargs) -> httpx.AsyncClient:
    """Shared outbound client whose own timeout matches the per-attempt timeout."""
    kwargs.setdefault("timeout", settings.http_timeout_ms / 1000)
    return httpx.AsyncClient(**kwargs)


def _log_retry(method: str, url: str):
    def before_sleep(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        if outcome.failed:
            reason = repr(outcome.exception())
        else:
            reason = f"status {outcome.result().status_code}"
        logger.warning(
            "%s %s attempt %d failed (%s), retrying in %.0fms",
            method, url, retry_state.attempt_number, reason,
            retry_state.next_action.sleep * 1000,
        )

    return before_sleep


def _give_up(method: str, url: str):
    def retry_error_callback(retry_state: RetryCallState) -> httpx.Response:
        outcome = retry_state.outcome
        if outcome.failed:
            logger.error(
                "%s %s failed after %d attempts: %r",
                method, url, retry_state.attempt_number, outcome.exception(),
            )
        # Re-raises the last error, or hands back the last retryable response
        return outcome.result()

    return retry_error_callback


async def resilient_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    policy: RetryPolicy | None = None,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    **request_kwargs,
) -> httpx.Response:
    """Issue an HTTP request with a per-attempt timeout and exponential backoff.

    Responses with a retryable status are retried while attempts remain; any
    other response (including non-2xx) is returned for the caller to inspect.
    Transport errors and timeouts are retried the same way and the last one is
    re-raised once ``policy.retries`` retries have been spent. Other exceptions
    propagate immediately.
    """
    policy = policy or RetryPolicy()
    timeout_s = policy.timeout_ms / 1000

    async def attempt() -> httpx.Response:
        return await asyncio.wait_for(
            client.request(method, url, **request_kwargs), timeout=timeout_s
        )

    retrying = AsyncRetrying(
        retry=retry_if_exception_type(RETRYABLE_ERRORS)
        | retry_if_result(lambda r: r.status_code in policy.retryable_statuses),
        stop=stop_after_attempt(policy.retries + 1),
        wait=backoff_wait(policy),
        sleep=sleep,
        before_sleep=_log_retry(method, url),
        retry_error_callback=_give_up(method, url),
    )
    return await retrying(attempt)
