"""Integration Tests: ResilienceLayer - full wiring of monitor, executor and replay queue.

Invariants:
    - Offline critical submissions replay exactly once when connectivity returns
    - Queue is empty immediately after the reconnect event is processed
    - subscribe_connectivity delivers current state synchronously
    - resilient_fetch maps HTTP failures onto the retry policy
    - spec() takes its defaults from Settings
"""

import asyncio
import random

import httpx
import pytest

from netguard.config import Settings
from netguard.core.domain_types import ConnectivityState, Reachability
from netguard.core.errors import ErrorKind, ReplayEntryNotFoundError, TransportError
from netguard.services.resilience_layer import ResilienceLayer
from netguard.infrastructure.http_transport import HttpTransport

from tests.services.fakes import (
    OFFLINE,
    ONLINE,
    FakeAlertSurface,
    HangingOperation,
    ScriptedOperation,
    SleepRecorder,
)


def _layer(**kwargs):
    settings = kwargs.pop("settings", None) or Settings(
        default_initial_delay_ms=10, jitter=False,
    )
    return ResilienceLayer(
        settings,
        alert_surface=FakeAlertSurface(),
        sleep=SleepRecorder(),
        rng=random.Random(0),
        **kwargs,
    )


async def test_reconnect_replays_each_queued_operation_once():
    layer = _layer()
    layer.on_raw_event(OFFLINE)
    op_a = ScriptedOperation("a")
    op_b = ScriptedOperation("b")

    first = await layer.execute(layer.spec(op_a, critical=True, name="a"))
    second = await layer.execute(layer.spec(op_b, critical=True, name="b"))
    assert first.success is False and first.queued is True
    assert second.queued is True
    assert len(layer.pending_replays()) == 2

    layer.on_raw_event(ONLINE)
    assert layer.pending_replays() == []

    await layer.replay_queue.wait_idle()
    assert op_a.calls == 1
    assert op_b.calls == 1


async def test_non_critical_offline_operation_is_not_replayed():
    layer = _layer()
    layer.on_raw_event(OFFLINE)
    op = ScriptedOperation("x")

    await layer.execute(layer.spec(op))
    layer.on_raw_event(ONLINE)
    await layer.replay_queue.wait_idle()

    assert op.calls == 0


async def test_replay_that_hits_offline_again_is_requeued_by_executor():
    layer = _layer()
    layer.on_raw_event(OFFLINE)
    await layer.execute(layer.spec(ScriptedOperation("x"), critical=True))

    layer.on_raw_event(ONLINE)
    layer.on_raw_event(OFFLINE)  # before the replay task gets to run
    await layer.replay_queue.wait_idle()

    assert len(layer.pending_replays()) == 1


async def test_subscribe_delivers_current_state_then_changes():
    layer = _layer()
    seen = []
    unsubscribe = layer.subscribe_connectivity(seen.append)
    assert seen == [ConnectivityState()]

    layer.on_raw_event(OFFLINE)
    unsubscribe()
    layer.on_raw_event(ONLINE)

    assert len(seen) == 2
    assert seen[1].connected is False


async def test_get_state_and_availability():
    layer = _layer(initial_state=ConnectivityState(True, Reachability.UNREACHABLE))
    assert layer.is_available() is False
    assert layer.get_connectivity_state().internet_reachable is Reachability.UNREACHABLE


async def test_spec_uses_settings_defaults_and_overrides():
    layer = _layer(settings=Settings(
        default_max_retries=5, default_initial_delay_ms=250,
        default_backoff_factor=3.0, default_timeout_ms=1500,
    ))
    spec = layer.spec(ScriptedOperation(1), max_retries=1)
    assert spec.max_retries == 1
    assert spec.initial_delay == 0.25
    assert spec.backoff_factor == 3.0
    assert spec.timeout_per_attempt == 1.5


async def test_cancel_all_through_facade():
    layer = _layer()
    op = HangingOperation()
    task = asyncio.ensure_future(layer.execute(layer.spec(op, alert_on_failure=False)))
    await op.started.wait()

    assert layer.cancel_all() == 1
    result = await asyncio.wait_for(task, timeout=1.0)
    assert result.success is False


async def test_failure_alert_uses_configured_locale():
    layer = _layer(settings=Settings(alert_locale="pt_BR", jitter=False))
    await layer.execute(layer.spec(ScriptedOperation(ValueError("bad")), max_retries=0))
    assert layer.alert_surface.alerts == [
        ("Erro de Rede", "Verifique sua conexao com a internet e tente novamente."),
    ]


# ==============================================================================
# resilient_fetch
# ==============================================================================


def _mock_transport(statuses):
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        status = statuses[min(calls["n"], len(statuses) - 1)]
        calls["n"] += 1
        return httpx.Response(status, json={"attempt": calls["n"]})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTransport(client=client), calls


async def test_resilient_fetch_retries_5xx():
    transport, calls = _mock_transport([503, 503, 200])
    layer = _layer(transport=transport)

    result = await layer.resilient_fetch("https://api.test/items", alert_on_failure=False)

    assert result.success is True
    assert result.retries_used == 2
    assert result.data.json() == {"attempt": 3}
    assert calls["n"] == 3


async def test_resilient_fetch_does_not_retry_404():
    transport, calls = _mock_transport([404, 200])
    layer = _layer(transport=transport)

    result = await layer.resilient_fetch(
        "https://api.test/missing", method="DELETE", alert_on_failure=False,
    )

    assert result.success is False
    assert isinstance(result.error, TransportError)
    assert result.error.kind is ErrorKind.CLIENT_ERROR
    assert result.retries_used == 0
    assert calls["n"] == 1


async def test_shutdown_cancels_and_drains():
    layer = _layer()
    op = HangingOperation()
    task = asyncio.ensure_future(layer.execute(layer.spec(op, alert_on_failure=False)))
    await op.started.wait()

    await layer.shutdown()

    result = await asyncio.wait_for(task, timeout=1.0)
    assert result.success is False


async def test_public_registries_are_the_ones_in_use():
    layer = _layer()
    unsubscribe = layer.subscribe_connectivity(lambda state: None)
    assert len(layer.registry) == 1
    unsubscribe()
    assert len(layer.registry) == 0

    op = HangingOperation()
    task = asyncio.ensure_future(layer.execute(layer.spec(op, alert_on_failure=False)))
    await op.started.wait()
    assert len(layer.tokens) == 1

    assert layer.tokens.cancel_all() == 1
    await asyncio.wait_for(task, timeout=1.0)
    assert len(layer.tokens) == 0


def test_reconnect_outside_event_loop_replays_on_next_execute():
    layer = _layer(initial_state=ConnectivityState(
        connected=False, internet_reachable=Reachability.UNREACHABLE,
    ))
    queued = ScriptedOperation("synced")
    layer.replay_queue.enqueue(layer.spec(queued, critical=True))

    layer.on_raw_event(ONLINE)
    assert len(layer.replay_queue) == 1

    async def next_call():
        result = await layer.execute(layer.spec(ScriptedOperation("fresh")))
        await layer.replay_queue.wait_idle()
        return result

    result = asyncio.run(next_call())
    assert result.data == "fresh"
    assert queued.calls == 1
    assert len(layer.replay_queue) == 0


async def test_discard_replay_removes_entry_or_raises():
    layer = _layer()
    layer.on_raw_event(OFFLINE)
    await layer.execute(layer.spec(ScriptedOperation("x"), critical=True, name="upload"))
    entry_id = layer.pending_replays()[0].id

    assert layer.discard_replay(entry_id).spec.name == "upload"
    assert layer.pending_replays() == []
    with pytest.raises(ReplayEntryNotFoundError):
        layer.discard_replay(entry_id)
