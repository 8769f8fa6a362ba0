"""Cancellation tests - token lifecycle and cancel_all sweep.

Tests cover:
    - signal() cancels the bound task and records the first reason only
    - Binding to an already-signalled token cancels immediately
    - cancel_all() signals every outstanding token and empties the registry
    - release() removes a settled token
"""

import asyncio

from netguard.services.cancellation import CancelReason, CancellationRegistry


async def test_signal_cancels_bound_task():
    registry = CancellationRegistry()
    token = registry.issue("op")
    task = asyncio.ensure_future(asyncio.sleep(10))
    token.bind(task)

    assert token.signal(CancelReason.TIMEOUT) is True
    await asyncio.gather(task, return_exceptions=True)

    assert task.cancelled()
    assert token.reason is CancelReason.TIMEOUT


async def test_first_reason_wins():
    token = CancellationRegistry().issue()
    token.signal(CancelReason.CANCEL_ALL)
    assert token.signal(CancelReason.TIMEOUT) is False
    assert token.reason is CancelReason.CANCEL_ALL


async def test_bind_after_signal_cancels_immediately():
    token = CancellationRegistry().issue()
    token.signal(CancelReason.CANCEL_ALL)
    task = asyncio.ensure_future(asyncio.sleep(10))
    token.bind(task)
    await asyncio.gather(task, return_exceptions=True)
    assert task.cancelled()


async def test_wait_returns_reason():
    token = CancellationRegistry().issue()
    waiter = asyncio.ensure_future(token.wait())
    await asyncio.sleep(0)
    token.signal(CancelReason.CANCEL_ALL)
    assert await waiter is CancelReason.CANCEL_ALL


async def test_cancel_all_signals_everything_outstanding():
    registry = CancellationRegistry()
    tokens = [registry.issue(f"op{i}") for i in range(3)]

    assert registry.cancel_all() == 3
    assert len(registry) == 0
    assert all(t.reason is CancelReason.CANCEL_ALL for t in tokens)


async def test_cancel_all_skips_released_tokens():
    registry = CancellationRegistry()
    settled = registry.issue()
    live = registry.issue()
    registry.release(settled)

    assert registry.cancel_all() == 1
    assert settled.signalled is False
    assert live.signalled is True


async def test_cancel_all_on_empty_registry():
    assert CancellationRegistry().cancel_all() == 0
