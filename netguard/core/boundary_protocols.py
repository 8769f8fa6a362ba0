"""Boundary Protocols - contracts between the execution core and its collaborators.

Invariants:
    - Core NEVER imports from shell: dependency arrows point inward only
    - The raw event source and the alert surface are reached only through these types
    - Implementations provided by the shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no base class
"""

from typing import Any, Callable, Protocol

from netguard.core.domain_types import ConnectivityState


ConnectivityListener = Callable[[ConnectivityState], None]
Unsubscribe = Callable[[], None]


class RawConnectivityEvent(Protocol):
    """Shape of a platform connectivity report (NetInfo-style).

    is_connected=None means the platform could not tell; treated as offline.
    is_internet_reachable=None means reachability is unknown.
    """
    is_connected: bool | None
    is_internet_reachable: bool | None
    type: str
    details: Any


class AlertSurface(Protocol):
    """User-facing notification sink for alert_on_failure results."""
    def show_alert(self, title: str, message: str) -> None: ...
