"""Cancellation - per-attempt tokens and the registry cancel_all() sweeps.

Invariants:
    - One token per in-flight attempt, never per execute() call
    - A token is signalled at most once; the first reason wins
    - Signalling cancels the bound task; the awaiting attempt wakes immediately
      even if the operation ignores cancellation
    - Tokens leave the registry as soon as their attempt settles
"""

import asyncio
import itertools
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class CancelReason(str, Enum):
    TIMEOUT = "timeout"
    CANCEL_ALL = "cancel_all"


class CancellationToken:
    """Abort handle for a single attempt."""

    def __init__(self, token_id: int, operation: str = "operation"):
        self.id = token_id
        self.operation = operation
        self.reason: CancelReason | None = None
        self._event = asyncio.Event()
        self._task: asyncio.Future | None = None

    @property
    def signalled(self) -> bool:
        return self.reason is not None

    def bind(self, task: asyncio.Future) -> None:
        self._task = task
        if self.signalled:
            task.cancel()

    def signal(self, reason: CancelReason) -> bool:
        """Abort the attempt. Returns False if it was already signalled."""
        if self.signalled:
            return False
        self.reason = reason
        self._event.set()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        return True

    async def wait(self) -> CancelReason | None:
        await self._event.wait()
        return self.reason


class CancellationRegistry:
    """Outstanding attempt tokens, keyed by id."""

    def __init__(self) -> None:
        self._tokens: dict[int, CancellationToken] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._tokens)

    def issue(self, operation: str = "operation") -> CancellationToken:
        token = CancellationToken(next(self._ids), operation)
        self._tokens[token.id] = token
        return token

    def release(self, token: CancellationToken) -> None:
        self._tokens.pop(token.id, None)

    def cancel_all(self) -> int:
        """Signal every outstanding token; returns how many were signalled."""
        tokens = list(self._tokens.values())
        self._tokens.clear()
        count = sum(1 for token in tokens if token.signal(CancelReason.CANCEL_ALL))
        if count:
            logger.info("Cancelled %d in-flight attempt(s)", count)
        return count
