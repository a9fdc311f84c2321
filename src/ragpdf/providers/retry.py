"""Retry policy for provider calls."""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ragpdf.errors import ProviderError

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    return isinstance(exc, ProviderError) and exc.transient


def call_with_retry(
    fn: Callable[[], T],
    *,
    max_attempts: int = 3,
    initial_wait: float = 1.0,
    max_wait: float = 20.0,
    description: str = "provider call",
) -> T:
    """Run ``fn``, retrying transient :class:`ProviderError`s with exponential backoff.

    Fatal errors propagate immediately. When the attempts are used up the last
    transient error is escalated to a fatal one.
    """

    def _log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        LOGGER.warning(
            "%s failed (attempt %d/%d): %s",
            description,
            retry_state.attempt_number,
            max_attempts,
            exc,
        )

    retrying = Retrying(
        retry=retry_if_exception(is_transient),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=initial_wait, max=max_wait),
        before_sleep=_log_retry,
        reraise=True,
    )
    try:
        return retrying(fn)
    except ProviderError as exc:
        if not exc.transient:
            raise
        raise ProviderError(
            f"{description} failed after {max_attempts} attempts: {exc}", transient=False
        ) from exc
