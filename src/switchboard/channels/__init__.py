"""Channel ordering and availability engine."""

from .autosort import OrderChange, changed, cost_factor, diff_order, propose_order
from .availability import (
    Availability,
    ChannelStatus,
    availability,
    channel_available,
    channel_status,
    evaluate,
    now_ms,
)
from .backend import ChannelBackend, HttpChannelBackend, InMemoryChannelBackend
from .models import Channel, Endpoint, Key, Protocol
from .ordering import OrderingStore, OrderSnapshot, move_before, move_to_end
from .session import ReorderSession, ReorderSessionController, SessionKind, SessionOutcome, SessionState

__all__ = [
    "Availability",
    "Channel",
    "ChannelBackend",
    "ChannelStatus",
    "Endpoint",
    "HttpChannelBackend",
    "InMemoryChannelBackend",
    "Key",
    "OrderChange",
    "OrderSnapshot",
    "OrderingStore",
    "Protocol",
    "ReorderSession",
    "ReorderSessionController",
    "SessionKind",
    "SessionOutcome",
    "SessionState",
    "availability",
    "changed",
    "channel_available",
    "channel_status",
    "cost_factor",
    "diff_order",
    "evaluate",
    "move_before",
    "move_to_end",
    "now_ms",
    "propose_order",
]
