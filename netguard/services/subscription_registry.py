"""Subscription Registry - fan-out of ConnectivityState to listeners.

Invariants:
    - subscribe() calls the new listener once, synchronously, with the current state
    - notify() calls listeners in registration order over a snapshot of the registry
    - A listener that raises is logged; the remaining listeners still run
    - unsubscribe is idempotent and removes only its own registration
"""

import itertools
import logging

from netguard.core.boundary_protocols import ConnectivityListener, Unsubscribe
from netguard.core.domain_types import ConnectivityState

logger = logging.getLogger(__name__)


class SubscriptionRegistry:
    """Ordered set of connectivity listeners."""

    def __init__(self) -> None:
        # dicts keep insertion order; the key is a per-registration handle
        self._listeners: dict[int, ConnectivityListener] = {}
        self._handles = itertools.count()

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(
        self, listener: ConnectivityListener, current: ConnectivityState,
    ) -> Unsubscribe:
        handle = next(self._handles)
        self._listeners[handle] = listener
        self._invoke(listener, current)

        def unsubscribe() -> None:
            self._listeners.pop(handle, None)

        return unsubscribe

    def notify(self, state: ConnectivityState) -> None:
        for listener in list(self._listeners.values()):
            self._invoke(listener, state)

    def _invoke(self, listener: ConnectivityListener, state: ConnectivityState) -> None:
        try:
            listener(state)
        except Exception:
            logger.exception("Connectivity listener failed: %r", listener)
