"""Error Hierarchy - typed, categorized exceptions for every resilient-execution failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Transport failures carry an ErrorKind assigned where the failure happened,
      never re-derived from message text downstream
    - to_response() produces the REST envelope used by the API error handlers
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with NetguardError base: FastAPI global handler catches all
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and alerting."""
    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVER = "server"
    CLIENT = "client"
    FALLBACK = "fallback"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


class ErrorKind(str, Enum):
    """Failure kind reported by the transport layer itself."""
    TIMEOUT = "timeout"
    CONNECTION_RESET = "connection_reset"
    CONNECTION_FAILED = "connection_failed"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    OTHER = "other"


@dataclass
class ErrorContext:
    """Context attached to an error for observability."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    operation: str | None = None
    attempt: int | None = None
    status_code: int | None = None
    debug_info: dict[str, Any] | None = None


class NetguardError(Exception):
    """Base exception for all netguard errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "operation": self.context.operation,
                    "attempt": self.context.attempt,
                    "status_code": self.context.status_code,
                },
            }
        }


# --- Connectivity / execution errors -----------------------------------------

class NetworkUnavailableError(NetguardError):
    """No connectivity and no fallback to substitute."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Network unavailable", "NETWORK_UNAVAILABLE", ErrorCategory.NETWORK,
            ErrorSeverity.WARNING, context, 503,
        )


class AttemptTimeoutError(NetguardError):
    """A single attempt exceeded its deadline."""
    def __init__(self, timeout_seconds: float, context: ErrorContext | None = None):
        super().__init__(
            f"Attempt timed out after {timeout_seconds:g}s",
            "ATTEMPT_TIMEOUT", ErrorCategory.TIMEOUT,
            ErrorSeverity.WARNING, context, 504,
        )
        self.timeout_seconds = timeout_seconds


class TransientServerError(NetguardError):
    """5xx-class failure reported by the remote side."""
    def __init__(
        self, status_code: int = 503, message: str | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.status_code = status_code
        super().__init__(
            message or f"Server error ({status_code})",
            "TRANSIENT_SERVER_ERROR", ErrorCategory.SERVER,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.status_code = status_code


class PermanentClientError(NetguardError):
    """4xx-class or validation failure; retrying cannot help."""
    def __init__(
        self, status_code: int = 400, message: str | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.status_code = status_code
        super().__init__(
            message or f"Client error ({status_code})",
            "PERMANENT_CLIENT_ERROR", ErrorCategory.CLIENT,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.status_code = status_code


class FallbackFailureError(NetguardError):
    """The caller-supplied fallback itself raised."""
    def __init__(self, cause: BaseException, context: ErrorContext | None = None):
        super().__init__(
            f"Network unavailable and fallback failed: {cause}",
            "FALLBACK_FAILURE", ErrorCategory.FALLBACK,
            ErrorSeverity.ERROR, context, 503,
        )
        self.cause = cause


class OperationCancelledError(NetguardError):
    """An in-flight attempt was aborted by cancel_all()."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Operation cancelled", "OPERATION_CANCELLED", ErrorCategory.CANCELLED,
            ErrorSeverity.INFO, context, 499,
        )


class TransportError(NetguardError):
    """Failure raised by a transport with its kind already classified."""

    _CATEGORY_BY_KIND = {
        ErrorKind.TIMEOUT: ErrorCategory.TIMEOUT,
        ErrorKind.CONNECTION_RESET: ErrorCategory.NETWORK,
        ErrorKind.CONNECTION_FAILED: ErrorCategory.NETWORK,
        ErrorKind.SERVER_ERROR: ErrorCategory.SERVER,
        ErrorKind.CLIENT_ERROR: ErrorCategory.CLIENT,
        ErrorKind.OTHER: ErrorCategory.INTERNAL,
    }

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.status_code = status_code
        super().__init__(
            f"Transport error ({kind.value}): {message}",
            "TRANSPORT_ERROR", self._CATEGORY_BY_KIND[kind],
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.kind = kind
        self.status_code = status_code

    @classmethod
    def from_status(cls, status_code: int, message: str = "") -> "TransportError":
        """Build from an HTTP status: 5xx is SERVER_ERROR, 4xx CLIENT_ERROR."""
        if 500 <= status_code <= 599:
            kind = ErrorKind.SERVER_ERROR
        elif 400 <= status_code <= 499:
            kind = ErrorKind.CLIENT_ERROR
        else:
            kind = ErrorKind.OTHER
        return cls(message or f"HTTP {status_code}", kind, status_code)


# --- API-facing errors ---------------------------------------------------------

class ReplayEntryNotFoundError(NetguardError):
    """No pending replay entry with the requested id."""
    def __init__(self, entry_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Replay entry not found: {entry_id}", "REPLAY_ENTRY_NOT_FOUND",
            ErrorCategory.CLIENT, ErrorSeverity.WARNING, context, 404,
        )
        self.entry_id = entry_id


class LayerUnavailableError(NetguardError):
    """The application has no ResilienceLayer (startup has not run)."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Resilience layer not initialised", "LAYER_UNAVAILABLE",
            ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL, context, 503,
        )
