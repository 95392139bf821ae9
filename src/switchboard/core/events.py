"""Event bus for reorder lifecycle and user-facing notifications.

The session controller never talks to a terminal or a UI directly. It emits
events; front ends subscribe and render them (the CLI echoes ``notify``
events, a web UI would turn them into toasts). Hooks can be sync or async.

Usage::

    bus = EventBus()
    bus.on(NOTIFY, lambda e: print(e.payload["message"]))
    await bus.emit(notification(NOTIFY_SUCCESS, "Channel order saved"))
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from time import time
from typing import Any

from loguru import logger

CHANNELS_FETCHED = "channels.fetched"
CHANNELS_FETCH_FAILED = "channels.fetch_failed"
REORDER_STARTED = "reorder.started"
REORDER_CANCELLED = "reorder.cancelled"
REORDER_COMMITTED = "reorder.committed"
REORDER_ROLLED_BACK = "reorder.rolled_back"
NOTIFY = "notify"

NOTIFY_SUCCESS = "success"
NOTIFY_ERROR = "error"

WILDCARD = "*"

Hook = Callable[["Event"], None] | Callable[["Event"], Awaitable[None]]


@dataclass(frozen=True)
class Event:
    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time)
    source: str = ""


def notification(level: str, message: str, *, reason: str = "", source: str = "", **extra: Any) -> Event:
    """Build a ``notify`` event for the user (``level`` is success or error)."""
    payload: dict[str, Any] = {"level": level, "message": message, **extra}
    if reason:
        payload["reason"] = reason
    return Event(name=NOTIFY, payload=payload, source=source)


class EventBus:
    """Name-keyed pub/sub. Hooks run in registration order, wildcard hooks last.

    A failing hook is logged and skipped; it never interrupts the emitter.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Hook]] = {}
        self._pending: set[asyncio.Task] = set()

    def on(self, event_name: str, hook: Hook) -> None:
        self._subscribers.setdefault(event_name, []).append(hook)

    def on_all(self, hook: Hook) -> None:
        self.on(WILDCARD, hook)

    def off(self, event_name: str, hook: Hook) -> None:
        hooks = self._subscribers.get(event_name, [])
        if hook in hooks:
            hooks.remove(hook)

    def _hooks_for(self, name: str) -> list[Hook]:
        hooks = list(self._subscribers.get(name, ()))
        if name != WILDCARD:
            hooks.extend(self._subscribers.get(WILDCARD, ()))
        return hooks

    @staticmethod
    def _report(event: Event, exc: BaseException) -> None:
        logger.warning(f"Hook for {event.name} raised {type(exc).__name__}: {exc}")

    async def emit(self, event: Event) -> None:
        for hook in self._hooks_for(event.name):
            try:
                result = hook(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                self._report(event, exc)

    def emit_sync(self, event: Event) -> None:
        """Emit from synchronous code such as drag handlers.

        Coroutine hooks are scheduled as tasks when a loop is running and
        dropped otherwise.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for hook in self._hooks_for(event.name):
            if inspect.iscoroutinefunction(hook):
                if loop is None:
                    logger.debug(f"No running loop; dropping async hook for {event.name}")
                    continue
                task = loop.create_task(self._run_async(hook, event))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
                continue
            try:
                hook(event)
            except Exception as exc:
                self._report(event, exc)

    async def _run_async(self, hook: Hook, event: Event) -> None:
        try:
            await hook(event)  # type: ignore[misc]
        except Exception as exc:
            self._report(event, exc)
