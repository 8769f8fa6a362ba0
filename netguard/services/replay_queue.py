"""Replay Queue - holds critical operations submitted offline, replays them on reconnect.

Invariants:
    - enqueue() and drain() never suspend: no interleaving sees a half-modified queue
    - drain() snapshots and clears in one step; len(queue) == 0 when it returns
    - Every drained entry is dispatched exactly once, each as its own task
    - A failed replay is re-queued only for TRANSIENT errors and only while
      replay_count < max_requeues; otherwise it is dropped and logged
    - The enqueueing caller is never re-notified; replay outcomes are logged only

Design Decisions:
    - Bounded re-queue, default 0: a replay that fails again is dropped unless
      the deployment opts in to more rounds
    - Without a running event loop or dispatcher drain() leaves the queue intact
      and marks it deferred; drain_deferred() retries once either is available
"""

import asyncio
import logging
import uuid
from dataclasses import replace
from typing import Awaitable, Callable

from netguard.core.domain_types import ExecutionResult, OperationSpec, QueueEntry
from netguard.core.retry_policy import is_transient

logger = logging.getLogger(__name__)

Dispatch = Callable[[OperationSpec], Awaitable[ExecutionResult]]


class ReplayQueue:
    """In-memory buffer of critical operations awaiting connectivity."""

    def __init__(self, dispatch: Dispatch | None = None, max_requeues: int = 0):
        if max_requeues < 0:
            raise ValueError("max_requeues must be >= 0")
        self._dispatch = dispatch
        self._max_requeues = max_requeues
        self._entries: dict[str, QueueEntry] = {}
        self._inflight: set[asyncio.Task] = set()
        self._deferred = False

    def __len__(self) -> int:
        return len(self._entries)

    def bind_dispatch(self, dispatch: Dispatch) -> None:
        self._dispatch = dispatch

    def enqueue(self, spec: OperationSpec) -> str:
        entry = QueueEntry(id=uuid.uuid4().hex, spec=spec)
        self._entries[entry.id] = entry
        return entry.id

    @property
    def deferred(self) -> bool:
        """True when a drain was requested but could not dispatch."""
        return self._deferred

    def pending(self) -> list[QueueEntry]:
        return list(self._entries.values())

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        self._deferred = False
        return count

    def discard(self, entry_id: str) -> QueueEntry | None:
        """Remove one pending entry. Returns it, or None if it is not queued."""
        return self._entries.pop(entry_id, None)

    def drain(self) -> list[asyncio.Task]:
        """Dispatch every queued entry concurrently. Returns the replay tasks."""
        if not self._entries:
            self._deferred = False
            return []
        if self._dispatch is None:
            logger.warning("Replay queue has no dispatcher; keeping entries")
            self._deferred = True
            return []
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; replay deferred")
            self._deferred = True
            return []

        self._deferred = False
        entries = list(self._entries.values())
        self._entries.clear()
        logger.info(f"Replaying {len(entries)} queued operation(s)")

        tasks = []
        for entry in entries:
            task = loop.create_task(self._replay(entry))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            tasks.append(task)
        return tasks

    def drain_deferred(self) -> list[asyncio.Task]:
        """Run a drain that an earlier call had to postpone."""
        if not self._deferred:
            return []
        return self.drain()

    async def wait_idle(self) -> None:
        """Wait for every replay dispatched so far to settle."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def _replay(self, entry: QueueEntry) -> ExecutionResult | None:
        try:
            result = await self._dispatch(entry.spec)
        except Exception:
            logger.exception(
                "Replay dispatch raised", extra={"entry_id": entry.id},
            )
            return None

        if result.success:
            logger.info(
                "Replay succeeded",
                extra={
                    "entry_id": entry.id,
                    "operation": entry.spec.name,
                    "retries_used": result.retries_used,
                },
            )
        elif result.queued:
            # went offline again mid-replay; execute() already re-queued it
            pass
        elif (
            result.error is not None
            and is_transient(result.error)
            and entry.replay_count < self._max_requeues
        ):
            requeued = replace(entry, replay_count=entry.replay_count + 1)
            self._entries[requeued.id] = requeued
            logger.warning(
                f"Replay failed, re-queued ({requeued.replay_count}/{self._max_requeues})",
                extra={"entry_id": entry.id, "operation": entry.spec.name},
            )
        else:
            logger.warning(
                f"Replay failed, dropping operation: {result.error}",
                extra={"entry_id": entry.id, "operation": entry.spec.name},
            )
        return result
