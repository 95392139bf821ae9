"""Reorder sessions: optimistic reordering with persist, confirm and rollback.

One ``ReorderSessionController`` owns an ``OrderingStore`` and coordinates,
per protocol, at most one live session at a time.

Session lifecycle::

    idle -> dragging            start_drag (snapshot captured)
    dragging -> dragging        hover over a new row (local move, no persist)
    dragging -> idle            end_drag without drop (snapshot restored)
    dragging -> persisting      drop on a row or on the list body
    persisting -> idle          persist succeeded (committed) or failed
                                (rolled back); a refetch follows either way

``apply_auto_sort`` is a session that starts committed: the whole proposed
order is installed at once and goes straight to persisting.

While a protocol is persisting, drag starts and hovers for it are ignored.
Persist and fetch failures never escape the controller; they are logged and
turned into ``notify`` events on the bus.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from loguru import logger

from switchboard.core.events import (
    CHANNELS_FETCH_FAILED,
    CHANNELS_FETCHED,
    NOTIFY_ERROR,
    NOTIFY_SUCCESS,
    REORDER_CANCELLED,
    REORDER_COMMITTED,
    REORDER_ROLLED_BACK,
    REORDER_STARTED,
    Event,
    EventBus,
    notification,
)

from .autosort import changed, propose_order
from .backend import ChannelBackend
from .models import Protocol
from .ordering import OrderingStore, OrderSnapshot


class SessionState(StrEnum):
    IDLE = "idle"
    DRAGGING = "dragging"
    PERSISTING = "persisting"


class SessionOutcome(StrEnum):
    CANCELLED = "cancelled"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class SessionKind(StrEnum):
    DRAG = "drag"
    AUTO_SORT = "auto_sort"


@dataclass
class ReorderSession:
    """Ephemeral state of one drag interaction or auto-sort application."""

    protocol: Protocol
    snapshot: OrderSnapshot
    kind: SessionKind = SessionKind.DRAG
    dragged_id: str | None = None
    hover_target_id: str | None = None
    committed: bool = False


class ReorderSessionController:
    """Drives reorder sessions against an ``OrderingStore`` and a backend."""

    def __init__(
        self,
        backend: ChannelBackend,
        store: OrderingStore | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self.backend = backend
        self.store = store or OrderingStore()
        self.bus = bus or EventBus()
        self._sessions: dict[Protocol, ReorderSession] = {}
        self._in_flight: set[Protocol] = set()

    # -- inspection ---------------------------------------------------------

    def state(self, protocol: Protocol) -> SessionState:
        if protocol in self._in_flight:
            return SessionState.PERSISTING
        if protocol in self._sessions:
            return SessionState.DRAGGING
        return SessionState.IDLE

    def session(self, protocol: Protocol) -> ReorderSession | None:
        return self._sessions.get(protocol)

    def is_locked(self, protocol: Protocol) -> bool:
        """True while a persist is in flight; rows should not be draggable."""
        return protocol in self._in_flight

    # -- fetching -----------------------------------------------------------

    async def refresh(self) -> bool:
        """Reload the store from the backend.

        On failure the store keeps its last-known state. Protocols with a live
        session keep their local order if their channel set is unchanged.
        """
        try:
            channels = await self.backend.fetch_channels()
        except Exception as exc:
            logger.warning(f"Failed to load channels: {exc}")
            await self.bus.emit(Event(name=CHANNELS_FETCH_FAILED, payload={"reason": str(exc)}, source="session"))
            await self.bus.emit(notification(NOTIFY_ERROR, "Failed to load channels", reason=str(exc), source="session"))
            return False

        # Other protocols' sessions (dragging or persisting) keep their local order
        self.store.load(channels, keep=set(self._sessions))
        logger.debug(f"Loaded {len(channels)} channels")
        await self.bus.emit(Event(name=CHANNELS_FETCHED, payload={"count": len(channels)}, source="session"))
        return True

    # -- drag interaction ---------------------------------------------------

    def start_drag(self, protocol: Protocol, channel_id: str) -> ReorderSession | None:
        """Begin a drag on *channel_id*; returns None when the drag is refused."""
        log = logger.bind(protocol=protocol.value)
        if self.is_locked(protocol):
            log.debug(f"Ignoring drag of {channel_id}: reorder in flight")
            return None
        if channel_id not in self.store.order(protocol):
            log.debug(f"Ignoring drag of unknown channel {channel_id}")
            return None
        if protocol in self._sessions:
            # A drag-end we never saw; undo that session before starting over
            self.end_drag(protocol)

        session = ReorderSession(protocol=protocol, snapshot=self.store.snapshot(protocol), dragged_id=channel_id)
        self._sessions[protocol] = session
        log.debug(f"Drag started on {channel_id}")
        self.bus.emit_sync(
            Event(
                name=REORDER_STARTED,
                payload={"protocol": protocol.value, "kind": session.kind.value, "channel_id": channel_id},
                source="session",
            )
        )
        return session

    def hover(self, protocol: Protocol, channel_id: str) -> bool:
        """Pointer entered the row of *channel_id*; returns True if the order changed."""
        session = self._sessions.get(protocol)
        if session is None or session.committed or self.is_locked(protocol):
            return False
        if channel_id in (session.dragged_id, session.hover_target_id):
            return False

        session.hover_target_id = channel_id
        return self.store.move_before(protocol, session.dragged_id, channel_id)

    def end_drag(self, protocol: Protocol) -> SessionOutcome | None:
        """Drag finished without a drop; undo every hover move of the session."""
        session = self._sessions.get(protocol)
        if session is None or session.committed:
            return None

        del self._sessions[protocol]
        self.store.restore(session.snapshot)
        logger.bind(protocol=protocol.value).debug(f"Drag of {session.dragged_id} cancelled")
        self.bus.emit_sync(
            Event(
                name=REORDER_CANCELLED,
                payload={"protocol": protocol.value, "channel_id": session.dragged_id},
                source="session",
            )
        )
        return SessionOutcome.CANCELLED

    async def drop(self, protocol: Protocol, target_id: str | None = None) -> SessionOutcome | None:
        """Drop the dragged channel and persist the resulting order.

        ``target_id=None`` is a drop on the list body: the channel moves to
        the end. A drop on a row moves it before that row, unless the row is
        the current hover target, whose move has already been applied.
        """
        session = self._sessions.get(protocol)
        if session is None or session.committed or self.is_locked(protocol):
            return None

        if target_id is None:
            self.store.move_to_end(protocol, session.dragged_id)
        elif target_id != session.hover_target_id:
            self.store.move_before(protocol, session.dragged_id, target_id)
        return await self._commit(session)

    # -- auto-sort ----------------------------------------------------------

    async def apply_auto_sort(self, protocol: Protocol) -> SessionOutcome | None:
        """Install and persist the auto-sort proposal for *protocol*.

        Returns None without persisting when the protocol is busy or the
        proposal equals the current order.
        """
        log = logger.bind(protocol=protocol.value)
        if self.is_locked(protocol) or protocol in self._sessions:
            log.debug("Ignoring auto-sort: another reorder is active")
            return None

        current = self.store.order(protocol)
        proposed = tuple(c.id for c in propose_order(self.store.channels(protocol)))
        if not changed(current, proposed):
            log.info("Auto-sort proposal matches the current order")
            return None

        session = ReorderSession(protocol=protocol, snapshot=self.store.snapshot(protocol), kind=SessionKind.AUTO_SORT)
        self._sessions[protocol] = session
        self.bus.emit_sync(
            Event(
                name=REORDER_STARTED,
                payload={"protocol": protocol.value, "kind": session.kind.value, "channel_id": None},
                source="session",
            )
        )
        self.store.replace(protocol, proposed)
        return await self._commit(session)

    # -- persistence --------------------------------------------------------

    async def _commit(self, session: ReorderSession) -> SessionOutcome:
        protocol = session.protocol
        log = logger.bind(protocol=protocol.value)
        session.committed = True
        self._in_flight.add(protocol)
        order = self.store.order(protocol)
        payload = {"protocol": protocol.value, "kind": session.kind.value, "order": list(order)}

        try:
            await self.backend.persist_order(protocol, order)
        except Exception as exc:
            self.store.restore(session.snapshot)
            outcome = SessionOutcome.ROLLED_BACK
            log.warning(f"Saving channel order failed, rolled back: {exc}")
            await self.bus.emit(Event(name=REORDER_ROLLED_BACK, payload={**payload, "reason": str(exc)}, source="session"))
            await self.bus.emit(
                notification(NOTIFY_ERROR, "Failed to save channel order", reason=str(exc), source="session")
            )
        else:
            outcome = SessionOutcome.COMMITTED
            log.info(f"Saved channel order ({len(order)} channels)")
            await self.bus.emit(Event(name=REORDER_COMMITTED, payload=payload, source="session"))
            await self.bus.emit(notification(NOTIFY_SUCCESS, "Channel order saved", source="session"))
        finally:
            self._in_flight.discard(protocol)
            if self._sessions.get(protocol) is session:
                del self._sessions[protocol]

        # Server order is authoritative after any persist attempt
        await self.refresh()
        return outcome
