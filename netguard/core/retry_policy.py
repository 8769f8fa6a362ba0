"""Retry Policy - pure decisions on retry eligibility and backoff timing.

Invariants:
    - classify() inspects error TYPE and ErrorKind only, never message text
    - base_delay() is non-decreasing in attempt and never exceeds cap
    - next_delay() with jitter lies in [0.5 * base, base]
    - No state, no IO, no sleeping: the executor owns the suspension

Design Decisions:
    - Unknown exception types are PERMANENT: retrying business errors hides bugs
    - rng injectable: tests pin jitter with random.Random(seed)
"""

import random

from netguard.core.domain_types import ErrorClass
from netguard.core.errors import (
    AttemptTimeoutError,
    ErrorKind,
    OperationCancelledError,
    PermanentClientError,
    TransientServerError,
    TransportError,
)

JITTER_FLOOR = 0.5

_TRANSIENT_KINDS = frozenset({
    ErrorKind.TIMEOUT,
    ErrorKind.CONNECTION_RESET,
    ErrorKind.CONNECTION_FAILED,
    ErrorKind.SERVER_ERROR,
})


def classify(error: BaseException) -> ErrorClass:
    """Decide whether another attempt could plausibly succeed."""
    if isinstance(error, TransportError):
        return ErrorClass.TRANSIENT if error.kind in _TRANSIENT_KINDS else ErrorClass.PERMANENT
    if isinstance(error, (AttemptTimeoutError, TransientServerError)):
        return ErrorClass.TRANSIENT
    if isinstance(error, (PermanentClientError, OperationCancelledError)):
        return ErrorClass.PERMANENT
    # TimeoutError covers asyncio.TimeoutError; ConnectionError covers reset/refused
    if isinstance(error, (TimeoutError, ConnectionError)):
        return ErrorClass.TRANSIENT
    return ErrorClass.PERMANENT


def is_transient(error: BaseException) -> bool:
    return classify(error) is ErrorClass.TRANSIENT


def base_delay(
    attempt: int, initial_delay: float, backoff_factor: float, cap: float,
) -> float:
    """Unjittered exponential delay for a zero-based attempt index."""
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    try:
        return min(initial_delay * (backoff_factor ** attempt), cap)
    except OverflowError:
        return cap


def next_delay(
    attempt: int,
    initial_delay: float,
    backoff_factor: float,
    cap: float,
    jitter: bool = True,
    rng: random.Random | None = None,
) -> float:
    """Seconds to wait after the given attempt failed."""
    delay = base_delay(attempt, initial_delay, backoff_factor, cap)
    if not jitter or delay == 0:
        return delay
    source = rng or random
    return source.uniform(JITTER_FLOOR * delay, delay)  # nosec B311


def backoff_schedule(
    max_retries: int, initial_delay: float, backoff_factor: float, cap: float,
) -> list[float]:
    """Base delays slept between attempts 0..max_retries (one per retry)."""
    return [
        base_delay(attempt, initial_delay, backoff_factor, cap)
        for attempt in range(max_retries)
    ]
