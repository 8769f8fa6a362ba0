"""Resilient Executor - runs one OperationSpec to exactly one ExecutionResult.

Invariants:
    - execute() never raises; every failure is returned in the result
      (the caller's own asyncio cancellation still propagates)
    - Offline: run() is never invoked; critical specs go to the replay queue
    - Attempts are strictly sequential; each races run() against its timeout
      and against its CancellationToken
    - PERMANENT errors stop the loop at the attempt where they occurred
    - A cancel_all() signal stops the loop with OperationCancelledError, no retries
    - 0 <= retries_used <= max_retries
    - The OperationSpec is never mutated

Design Decisions:
    - Backoff waits also hold a token: cancel_all() settles calls between attempts
    - sleep and rng injectable: tests observe delays without waiting on them
    - Alert only when the online path ends in failure (a fallback success is not a failure)
"""

import asyncio
import inspect
import logging
import random
from typing import Any, Awaitable, Callable, Protocol, TypeVar

from netguard.core.alert_strings import (
    AlertLocale,
    alert_category,
    get_alert_text,
)
from netguard.core.boundary_protocols import AlertSurface
from netguard.core.domain_types import ErrorClass, ExecutionResult, OperationSpec
from netguard.core.errors import (
    AttemptTimeoutError,
    ErrorContext,
    FallbackFailureError,
    NetworkUnavailableError,
    OperationCancelledError,
)
from netguard.core.retry_policy import classify, next_delay
from netguard.services.cancellation import (
    CancelReason,
    CancellationRegistry,
    CancellationToken,
)
from netguard.services.connectivity_monitor import ConnectivityMonitor

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_DELAY = 30.0


class Enqueuer(Protocol):
    def enqueue(self, spec: OperationSpec) -> str: ...


async def call_maybe_async(fn: Callable[[], Any]) -> Any:
    """Call fn and await the result if it is awaitable."""
    result = fn()
    if inspect.isawaitable(result):
        result = await result
    return result


def _discard_outcome(task: asyncio.Future) -> None:
    # abandoned attempts may still fail later; retrieve so asyncio stays quiet
    if not task.cancelled():
        task.exception()


class ResilientExecutor:
    """Retry loop with per-attempt timeout, fallback and offline queueing."""

    def __init__(
        self,
        monitor: ConnectivityMonitor,
        tokens: CancellationRegistry | None = None,
        replay_queue: Enqueuer | None = None,
        alert_surface: AlertSurface | None = None,
        *,
        max_delay: float = DEFAULT_MAX_DELAY,
        jitter: bool = True,
        alert_locale: AlertLocale = AlertLocale.EN,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._monitor = monitor
        self._tokens = tokens if tokens is not None else CancellationRegistry()
        self._replay_queue = replay_queue
        self._alert_surface = alert_surface
        self._max_delay = max_delay
        self._jitter = jitter
        self._alert_locale = alert_locale
        self._rng = rng
        self._sleep = sleep

    @property
    def tokens(self) -> CancellationRegistry:
        return self._tokens

    def cancel_all(self) -> int:
        return self._tokens.cancel_all()

    async def execute(self, spec: OperationSpec[T]) -> ExecutionResult[T]:
        if not self._monitor.is_available():
            return await self._execute_offline(spec)
        result = await self._execute_online(spec)
        if not result.success and spec.alert_on_failure:
            self._alert(result.error)
        return result

    # -- Offline path ------------------------------------------------------------

    async def _execute_offline(self, spec: OperationSpec[T]) -> ExecutionResult[T]:
        queued = False
        if spec.critical and self._replay_queue is not None:
            entry_id = self._replay_queue.enqueue(spec)
            queued = True
            logger.info(
                "Queued critical operation for replay",
                extra={"operation": spec.name, "entry_id": entry_id},
            )

        if spec.fallback is None:
            return ExecutionResult(
                success=False,
                error=NetworkUnavailableError(ErrorContext(operation=spec.name)),
                queued=queued,
            )

        try:
            data = await call_maybe_async(spec.fallback)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                f"Fallback failed while offline: {e}",
                extra={"operation": spec.name, "error_code": "FALLBACK_FAILURE"},
            )
            return ExecutionResult(
                success=False,
                error=FallbackFailureError(e, ErrorContext(operation=spec.name)),
                queued=queued,
            )
        return ExecutionResult(
            success=True, data=data, from_fallback=True, queued=queued,
        )

    # -- Online path ---------------------------------------------------------------

    async def _execute_online(self, spec: OperationSpec[T]) -> ExecutionResult[T]:
        last_error: BaseException | None = None
        attempt = 0
        for attempt in range(spec.max_retries + 1):
            try:
                data = await self._run_attempt(spec, attempt)
            except OperationCancelledError as e:
                last_error = e
                logger.info(
                    "Operation cancelled",
                    extra={"operation": spec.name, "attempt": attempt + 1},
                )
                break
            except asyncio.CancelledError:
                raise
            except Exception as e:
                last_error = e
                if classify(e) is ErrorClass.PERMANENT:
                    logger.warning(
                        f"Permanent failure, not retrying: {e}",
                        extra={
                            "operation": spec.name,
                            "attempt": attempt + 1,
                            "error_code": getattr(e, "code", type(e).__name__),
                        },
                    )
                    break
                if attempt >= spec.max_retries:
                    logger.warning(
                        f"Transient failure after {spec.max_retries} retries: {e}",
                        extra={"operation": spec.name, "attempt": attempt + 1},
                    )
                    break
                try:
                    await self._backoff(spec, attempt, e)
                except OperationCancelledError as cancelled:
                    last_error = cancelled
                    break
            else:
                logger.info(
                    "Operation succeeded",
                    extra={"operation": spec.name, "attempt": attempt + 1},
                )
                return ExecutionResult(success=True, data=data, retries_used=attempt)

        if spec.fallback is not None:
            try:
                data = await call_maybe_async(spec.fallback)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(
                    f"Fallback failed: {e}",
                    extra={"operation": spec.name, "error_code": "FALLBACK_FAILURE"},
                )
            else:
                return ExecutionResult(
                    success=True,
                    data=data,
                    error=last_error,
                    from_fallback=True,
                    retries_used=attempt,
                )

        return ExecutionResult(success=False, error=last_error, retries_used=attempt)

    async def _run_attempt(self, spec: OperationSpec[T], attempt: int) -> T:
        token = self._tokens.issue(spec.name)
        task = asyncio.ensure_future(call_maybe_async(spec.run))
        task.add_done_callback(_discard_outcome)
        finished = await self._race(token, task, spec.timeout_per_attempt)
        # run() cancelling itself counts as cancelled, not as our caller's cancellation
        if token.reason is CancelReason.CANCEL_ALL or (finished and task.cancelled()):
            raise OperationCancelledError(
                ErrorContext(operation=spec.name, attempt=attempt),
            )
        if not finished:
            token.signal(CancelReason.TIMEOUT)
            raise AttemptTimeoutError(
                spec.timeout_per_attempt,
                ErrorContext(operation=spec.name, attempt=attempt),
            )
        return task.result()

    async def _backoff(
        self, spec: OperationSpec, attempt: int, error: BaseException,
    ) -> None:
        delay = next_delay(
            attempt,
            spec.initial_delay,
            spec.backoff_factor,
            self._max_delay,
            jitter=self._jitter,
            rng=self._rng,
        )
        logger.warning(
            f"Transient error, retry after {int(delay * 1000)}ms: {error}",
            extra={
                "operation": spec.name,
                "attempt": attempt + 1,
                "delay_ms": int(delay * 1000),
            },
        )
        token = self._tokens.issue(spec.name)
        task = asyncio.ensure_future(self._sleep(delay))
        await self._race(token, task, None)
        if token.reason is CancelReason.CANCEL_ALL:
            raise OperationCancelledError(
                ErrorContext(operation=spec.name, attempt=attempt),
            )

    async def _race(
        self,
        token: CancellationToken,
        task: asyncio.Future,
        timeout: float | None,
    ) -> bool:
        """Wait for task, token signal or timeout. True if task finished first."""
        token.bind(task)
        waiter = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()
            self._tokens.release(token)
        return task in done and not token.signalled

    def _alert(self, error: BaseException | None) -> None:
        if self._alert_surface is None:
            return
        title, message = get_alert_text(alert_category(error), self._alert_locale)
        try:
            self._alert_surface.show_alert(title, message)
        except Exception:
            logger.exception("Alert surface failed")
