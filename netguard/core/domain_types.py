"""Domain Types - immutable value objects shared by every layer.

Invariants:
    - ConnectivityState is replaced wholesale, never mutated
    - OperationSpec is frozen: execute() never alters what the caller submitted
    - ExecutionResult is produced once per execute() call and is frozen
    - Reachability is tri-state; UNKNOWN is not the same as UNREACHABLE

Design Decisions:
    - Frozen dataclasses over pydantic models: core stays dependency-free
    - str Enums: serialize to JSON without custom encoders (SSE + REST payloads)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")


# --- Enums ---------------------------------------------------------------------

class Reachability(str, Enum):
    """Whether the internet is reachable over the current link."""
    UNKNOWN = "unknown"
    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"

    @classmethod
    def from_optional(cls, value: bool | None) -> "Reachability":
        if value is None:
            return cls.UNKNOWN
        return cls.REACHABLE if value else cls.UNREACHABLE

    def as_optional(self) -> bool | None:
        if self is Reachability.UNKNOWN:
            return None
        return self is Reachability.REACHABLE


class ErrorClass(str, Enum):
    """Retry eligibility of a failure."""
    TRANSIENT = "transient"
    PERMANENT = "permanent"


class AlertCategory(str, Enum):
    """User-facing alert flavours for alert_on_failure results."""
    TIMEOUT = "timeout"
    SERVER = "server"
    NETWORK = "network"


# --- Connectivity --------------------------------------------------------------

@dataclass(frozen=True)
class ConnectivityState:
    """Snapshot of the current link as last reported by the platform."""
    connected: bool = True
    internet_reachable: Reachability = Reachability.UNKNOWN
    transport_kind: str = "unknown"
    details: Any = None

    @property
    def available(self) -> bool:
        """Unknown reachability counts as available."""
        return self.connected and self.internet_reachable is not Reachability.UNREACHABLE

    def differs_from(self, other: "ConnectivityState") -> bool:
        """True when a field that listeners care about changed."""
        return (
            self.connected != other.connected
            or self.internet_reachable != other.internet_reachable
        )

    def to_dict(self) -> dict:
        return {
            "connected": self.connected,
            "internet_reachable": self.internet_reachable.as_optional(),
            "transport_kind": self.transport_kind,
            "details": self.details,
            "available": self.available,
        }


# --- Operations ----------------------------------------------------------------

@dataclass(frozen=True)
class OperationSpec(Generic[T]):
    """What to run and how hard to try.

    Delays and timeouts are in seconds. ``run`` must be a coroutine
    function; ``fallback`` may be sync or async.
    """
    run: Callable[[], Awaitable[T]]
    max_retries: int = 3
    initial_delay: float = 1.0
    backoff_factor: float = 2.0
    timeout_per_attempt: float = 30.0
    fallback: Callable[[], T | Awaitable[T]] | None = None
    critical: bool = False
    alert_on_failure: bool = True
    name: str = "operation"

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be >= 0")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")
        if self.timeout_per_attempt <= 0:
            raise ValueError("timeout_per_attempt must be > 0")


@dataclass(frozen=True)
class ExecutionResult(Generic[T]):
    """Outcome of one execute() call."""
    success: bool
    data: T | None = None
    error: BaseException | None = None
    from_fallback: bool = False
    retries_used: int = 0
    queued: bool = False

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "data": self.data,
            "error": _error_payload(self.error),
            "from_fallback": self.from_fallback,
            "retries_used": self.retries_used,
            "queued": self.queued,
        }


def _error_payload(error: BaseException | None) -> dict | None:
    """Domain errors use their REST envelope; anything else gets type and message."""
    if error is None:
        return None
    to_response = getattr(error, "to_response", None)
    if to_response is not None:
        return to_response()["error"]
    return {"code": type(error).__name__, "message": str(error)}


@dataclass(frozen=True)
class QueueEntry:
    """A critical operation waiting for connectivity to return."""
    id: str
    spec: OperationSpec
    enqueued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    replay_count: int = 0

    def summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.spec.name,
            "enqueued_at": self.enqueued_at.isoformat(),
            "replay_count": self.replay_count,
        }
