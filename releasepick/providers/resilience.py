"""Retry provider calls through transient failures and report each outcome to the registry."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from aiohttp import ClientConnectionError, ClientResponseError, ServerTimeoutError

from releasepick import logger
from releasepick.providers.registry import ProviderEntry, ProviderRegistry

RETRYABLE_HTTP_STATUSES = frozenset({429, 500, 502, 503, 504})

# Failure kinds
TRANSIENT = "transient"
REJECTED = "rejected"
MALFORMED = "malformed"
ERROR = "error"

_T = TypeVar("_T")


def classify_failure(exc: BaseException) -> str:
    """Name the kind of a provider failure. Only TRANSIENT failures are retried."""
    if isinstance(exc, (asyncio.TimeoutError, ClientConnectionError, ServerTimeoutError)):
        return TRANSIENT
    if isinstance(exc, ClientResponseError):
        return TRANSIENT if exc.status in RETRYABLE_HTTP_STATUSES else REJECTED
    if isinstance(exc, (ValueError, KeyError, TypeError)):
        return MALFORMED
    return ERROR


def is_retryable_exception(exc: BaseException) -> bool:
    return classify_failure(exc) == TRANSIENT


async def call_provider(
    registry: ProviderRegistry[Any],
    entry: ProviderEntry[Any],
    operation: Callable[[], Awaitable[_T]],
    *,
    max_attempts: int,
) -> _T:
    """
    Run one provider call, backing off 2s, 4s, ... between transient failures.

    Only the final outcome reaches the registry: a success clears the
    provider's failure count, and a give-up counts one failure towards its
    cooldown before the error is re-raised.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    log = logger.get_logger()
    for attempt in range(1, max_attempts + 1):
        try:
            result = await operation()
        except Exception as exc:
            kind = classify_failure(exc)
            if kind == TRANSIENT and attempt < max_attempts:
                delay = 2 ** attempt
                log.provider_retry(registry.category, entry.id, attempt, max_attempts, delay, exc)
                await asyncio.sleep(delay)
                continue
            registry.record_failure(entry.id)
            log.provider_failure(registry.category, entry.id, exc, kind=kind)
            raise
        registry.record_success(entry.id)
        return result
    raise RuntimeError("Unreachable retry exit")
