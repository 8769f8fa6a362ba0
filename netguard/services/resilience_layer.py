"""Resilience Layer - public contract surface wiring monitor, executor and replay queue.

Invariants:
    - One instance per application, constructed at start-up and passed by reference
    - execute() never raises; see ResilientExecutor
    - subscribe_connectivity() delivers the current state synchronously first
    - Offline -> online transitions drain the replay queue through this executor
    - shutdown() cancels in-flight attempts and waits for pending replays
    - A drain postponed for lack of an event loop runs on the next execute() while online

Design Decisions:
    - Explicit wiring in one constructor: every dependency visible in one place
    - spec() fills OperationSpec defaults from Settings so callers pass only what differs
"""

import logging
import random
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from netguard.config import Settings
from netguard.core.alert_strings import resolve_locale
from netguard.core.boundary_protocols import (
    AlertSurface,
    ConnectivityListener,
    RawConnectivityEvent,
    Unsubscribe,
)
from netguard.core.domain_types import (
    ConnectivityState,
    ExecutionResult,
    OperationSpec,
    QueueEntry,
)
from netguard.core.errors import ReplayEntryNotFoundError
from netguard.infrastructure.alert_surface import LoggingAlertSurface
from netguard.infrastructure.http_transport import HttpTransport
from netguard.services.cancellation import CancellationRegistry
from netguard.services.connectivity_monitor import ConnectivityMonitor
from netguard.services.replay_queue import ReplayQueue
from netguard.services.resilient_executor import ResilientExecutor
from netguard.services.subscription_registry import SubscriptionRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResilienceLayer:
    """Facade over the resilient-execution components."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        alert_surface: AlertSurface | None = None,
        initial_state: ConnectivityState | None = None,
        transport: HttpTransport | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ):
        self.settings = settings or Settings()
        self.alert_surface = (
            alert_surface if alert_surface is not None else LoggingAlertSurface()
        )
        self._transport = transport

        self.registry = SubscriptionRegistry()
        self.monitor = ConnectivityMonitor(self.registry, initial_state)
        self.tokens = CancellationRegistry()
        self.replay_queue = ReplayQueue(max_requeues=self.settings.replay_max_requeues)

        executor_kwargs: dict[str, Any] = {
            "max_delay": self.settings.max_delay_seconds,
            "jitter": self.settings.jitter,
            "alert_locale": resolve_locale(self.settings.alert_locale),
            "rng": rng,
        }
        if sleep is not None:
            executor_kwargs["sleep"] = sleep
        self.executor = ResilientExecutor(
            self.monitor, self.tokens, self.replay_queue, self.alert_surface,
            **executor_kwargs,
        )
        self.replay_queue.bind_dispatch(self.executor.execute)
        self.monitor.attach_replay_queue(self.replay_queue)

    # -- Public contract -----------------------------------------------------------

    async def execute(self, spec: OperationSpec[T]) -> ExecutionResult[T]:
        # a reconnect seen outside the event loop left the queue undrained
        if self.replay_queue.deferred and self.is_available():
            self.replay_queue.drain_deferred()
        return await self.executor.execute(spec)

    def subscribe_connectivity(self, listener: ConnectivityListener) -> Unsubscribe:
        return self.monitor.subscribe(listener)

    def get_connectivity_state(self) -> ConnectivityState:
        return self.monitor.get_state()

    def is_available(self) -> bool:
        return self.monitor.is_available()

    def cancel_all(self) -> int:
        return self.executor.cancel_all()

    def on_raw_event(self, event: RawConnectivityEvent) -> None:
        self.monitor.on_raw_event(event)

    # -- Conveniences --------------------------------------------------------------

    def spec(self, run: Callable[[], Awaitable[T]], **overrides: Any) -> OperationSpec[T]:
        """Build an OperationSpec with defaults taken from settings."""
        return OperationSpec(run=run, **{**self.settings.spec_defaults(), **overrides})

    def pending_replays(self) -> list[QueueEntry]:
        return self.replay_queue.pending()

    def discard_replay(self, entry_id: str) -> QueueEntry:
        """Drop one queued operation before it is replayed."""
        entry = self.replay_queue.discard(entry_id)
        if entry is None:
            raise ReplayEntryNotFoundError(entry_id)
        logger.info(
            "Discarded queued operation",
            extra={"entry_id": entry_id, "operation": entry.spec.name},
        )
        return entry

    async def resilient_fetch(
        self, url: str, method: str = "GET", *,
        request_kwargs: dict | None = None, **spec_overrides: Any,
    ) -> ExecutionResult[httpx.Response]:
        """Issue an HTTP request through the retry/timeout/fallback machinery."""
        transport = self._get_transport()
        kwargs = request_kwargs or {}

        async def run() -> httpx.Response:
            return await transport.request(method, url, **kwargs)

        spec_overrides.setdefault("name", f"{method} {url}")
        return await self.execute(self.spec(run, **spec_overrides))

    async def shutdown(self) -> None:
        cancelled = self.cancel_all()
        await self.replay_queue.wait_idle()
        if self._transport is not None:
            await self._transport.aclose()
        logger.info(
            f"Resilience layer stopped ({cancelled} attempt(s) cancelled, "
            f"{len(self.replay_queue)} replay(s) still queued)",
        )

    def _get_transport(self) -> HttpTransport:
        if self._transport is None:
            self._transport = HttpTransport(
                timeout_seconds=self.settings.default_timeout_ms / 1000,
            )
        return self._transport
