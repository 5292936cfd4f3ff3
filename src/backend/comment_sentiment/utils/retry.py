"""Retry helpers for calls against the external sentiment service.

Both helpers count *attempts*: ``max_retries=3`` runs ``fn`` at most three
times. The final error is re-raised as-is once attempts are exhausted.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, TypeVar

from tenacity import RetryCallState, Retrying, before_sleep_log, retry_if_exception, stop_after_attempt, wait_fixed

logger = logging.getLogger(__name__)

T = TypeVar("T")

JITTER_RATIO = 0.3


def exponential_jitter_wait(base_delay: float, rng: random.Random | None = None) -> Callable[[RetryCallState], float]:
    """Wait ``base_delay * 2**n`` seconds plus up to 30% jitter after failed attempt ``n`` (0-indexed)."""
    uniform = (rng or random).uniform

    def _wait(retry_state: RetryCallState) -> float:
        attempt = retry_state.attempt_number - 1
        exponential = base_delay * (2**attempt)
        return exponential + uniform(0.0, JITTER_RATIO * exponential)

    return _wait


def _check_attempts(max_retries: int) -> None:
    if max_retries < 1:
        raise ValueError(f"max_retries must be at least 1, got {max_retries}")


def retry_with_backoff(
    fn: Callable[[], T],
    max_retries: int = 3,
    base_delay: float = 1.0,
    is_retryable: Callable[[BaseException], bool] | None = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
    rng: random.Random | None = None,
) -> T:
    """Call ``fn`` with exponential backoff and jitter.

    Args:
        fn: Zero-argument callable to invoke.
        max_retries: Maximum number of attempts.
        base_delay: Delay in seconds before the first retry.
        is_retryable: Optional predicate; an error it rejects is re-raised
            immediately without sleeping.
        sleep: Sleep function, replaceable in tests.
        rng: Source of jitter, replaceable in tests.
    """
    _check_attempts(max_retries)
    predicate = is_retryable or (lambda exc: isinstance(exc, Exception))
    retrying = Retrying(
        stop=stop_after_attempt(max_retries),
        wait=exponential_jitter_wait(base_delay, rng),
        retry=retry_if_exception(predicate),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
    return retrying(fn)


def retry_with_fixed_delay(
    fn: Callable[[], T],
    max_retries: int = 3,
    delay: float = 2.0,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``fn`` retrying on any error with a constant ``delay`` in seconds."""
    _check_attempts(max_retries)
    retrying = Retrying(
        stop=stop_after_attempt(max_retries),
        wait=wait_fixed(delay),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
    return retrying(fn)
