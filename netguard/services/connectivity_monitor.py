"""Connectivity Monitor - single owner of ConnectivityState, edge-triggered notifications.

Invariants:
    - Only on_raw_event() writes the state; every other component reads
    - Listeners fire only when `connected` or `internet_reachable` changes value
    - transport_kind/details are refreshed on every event, silently
    - An unavailable -> available transition drains the attached replay queue
    - Never raises into the raw event source

Design Decisions:
    - Explicit instance passed by reference (no module-level singleton)
    - Replay queue attached after construction: the queue needs an executor,
      the executor needs the monitor
"""

import logging
from typing import Protocol

from netguard.core.boundary_protocols import (
    ConnectivityListener,
    RawConnectivityEvent,
    Unsubscribe,
)
from netguard.core.domain_types import ConnectivityState, Reachability
from netguard.services.subscription_registry import SubscriptionRegistry

logger = logging.getLogger(__name__)


class DrainTarget(Protocol):
    def drain(self) -> list: ...


def state_from_event(event: RawConnectivityEvent) -> ConnectivityState:
    """Build a ConnectivityState from a platform report."""
    return ConnectivityState(
        connected=bool(event.is_connected),
        internet_reachable=Reachability.from_optional(event.is_internet_reachable),
        transport_kind=event.type or "unknown",
        details=event.details,
    )


class ConnectivityMonitor:
    """Tracks reachability and relays transitions to subscribers and the replay queue."""

    def __init__(
        self,
        registry: SubscriptionRegistry | None = None,
        initial_state: ConnectivityState | None = None,
    ):
        self._registry = registry if registry is not None else SubscriptionRegistry()
        self._state = initial_state or ConnectivityState()
        self._replay_queue: DrainTarget | None = None

    def attach_replay_queue(self, queue: DrainTarget) -> None:
        self._replay_queue = queue

    def get_state(self) -> ConnectivityState:
        return self._state

    def is_available(self) -> bool:
        return self._state.available

    def subscribe(self, listener: ConnectivityListener) -> Unsubscribe:
        return self._registry.subscribe(listener, self._state)

    def on_raw_event(self, event: RawConnectivityEvent) -> None:
        self.apply_state(state_from_event(event))

    def apply_state(self, new_state: ConnectivityState) -> None:
        """Replace the stored state and fire notifications on a real change."""
        previous = self._state
        self._state = new_state
        if not new_state.differs_from(previous):
            return

        if previous.available and not new_state.available:
            logger.warning(
                "Connection lost, switching to offline mode",
                extra={"transport_kind": new_state.transport_kind},
            )
        elif not previous.available and new_state.available:
            logger.info(
                "Connection restored",
                extra={"transport_kind": new_state.transport_kind},
            )

        self._registry.notify(new_state)

        if not previous.available and new_state.available:
            self._drain_replay_queue()

    def _drain_replay_queue(self) -> None:
        if self._replay_queue is None:
            return
        try:
            self._replay_queue.drain()
        except Exception:
            logger.exception("Replay queue drain failed")
