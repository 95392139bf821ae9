"""Tests for switchboard.core.events: EventBus, Event and notification()."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from switchboard.core.events import NOTIFY, NOTIFY_ERROR, NOTIFY_SUCCESS, Event, EventBus, notification

pytestmark = pytest.mark.smoke


# ---------------------------------------------------------------------------
# on / off / emit
# ---------------------------------------------------------------------------


async def test_on_off_emit_lifecycle():
    bus = EventBus()
    received: list[Event] = []

    bus.on("reorder.committed", received.append)
    evt = Event(name="reorder.committed", payload={"protocol": "openai"}, source="test")
    await bus.emit(evt)
    assert received == [evt]

    bus.off("reorder.committed", received.append)
    await bus.emit(evt)
    assert received == [evt]


async def test_off_unknown_hook_is_noop():
    bus = EventBus()
    bus.off("never.registered", print)


async def test_wildcard_and_async_hooks():
    bus = EventBus()
    seen: list[str] = []

    async def async_hook(event: Event) -> None:
        seen.append(f"async:{event.name}")

    bus.on("alpha", async_hook)
    bus.on_all(lambda e: seen.append(f"all:{e.name}"))

    await bus.emit(Event(name="alpha"))
    await bus.emit(Event(name="beta"))

    assert seen == ["async:alpha", "all:alpha", "all:beta"]


async def test_failing_hook_does_not_stop_others():
    bus = EventBus()
    seen: list[str] = []

    def broken(event: Event) -> None:
        raise RuntimeError("boom")

    bus.on("alpha", broken)
    bus.on("alpha", lambda e: seen.append(e.name))

    await bus.emit(Event(name="alpha"))
    assert seen == ["alpha"]


# ---------------------------------------------------------------------------
# emit_sync
# ---------------------------------------------------------------------------


def test_emit_sync_without_loop_skips_async_hooks():
    bus = EventBus()
    seen: list[str] = []

    async def async_hook(event: Event) -> None:
        seen.append("async")

    bus.on("alpha", async_hook)
    bus.on("alpha", lambda e: seen.append("sync"))

    bus.emit_sync(Event(name="alpha"))
    assert seen == ["sync"]


async def test_emit_sync_schedules_async_hooks_on_running_loop():
    import asyncio

    bus = EventBus()
    seen: list[str] = []

    async def async_hook(event: Event) -> None:
        seen.append("async")

    bus.on("alpha", async_hook)
    bus.emit_sync(Event(name="alpha"))
    assert seen == []

    await asyncio.sleep(0)
    assert seen == ["async"]


# ---------------------------------------------------------------------------
# Event and notification
# ---------------------------------------------------------------------------


def test_event_is_frozen():
    evt = Event(name="alpha")
    with pytest.raises(FrozenInstanceError):
        evt.name = "beta"  # type: ignore[misc]
    assert evt.timestamp > 0


def test_notification_payload():
    ok = notification(NOTIFY_SUCCESS, "Channel order saved", source="session")
    assert ok.name == NOTIFY
    assert ok.payload == {"level": "success", "message": "Channel order saved"}

    err = notification(NOTIFY_ERROR, "Failed to save channel order", reason="timeout", protocol="openai")
    assert err.payload == {
        "level": "error",
        "message": "Failed to save channel order",
        "protocol": "openai",
        "reason": "timeout",
    }
