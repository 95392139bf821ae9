"""Per-protocol channel ordering.

Orders are tuples of channel ids. The two move primitives are pure: they
return a new tuple, or the very same tuple object when the move is a no-op
(identical ids, unknown id, or no resulting change), so callers can detect
no-ops with ``is``. The store replaces its held tuples and never edits them,
which makes a snapshot a plain reference copy.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from loguru import logger

from switchboard.core.exceptions import OrderingError

from .models import Channel, Protocol

Order = tuple[str, ...]


def move_before(ids: Order, from_id: str, to_id: str) -> Order:
    """Remove *from_id* and reinsert it at *to_id*'s former index."""
    if from_id == to_id:
        return ids
    try:
        from_idx = ids.index(from_id)
        to_idx = ids.index(to_id)
    except ValueError:
        return ids

    rest = ids[:from_idx] + ids[from_idx + 1 :]
    moved = rest[:to_idx] + (from_id,) + rest[to_idx:]
    return ids if moved == ids else moved


def move_to_end(ids: Order, from_id: str) -> Order:
    """Remove *from_id* and append it."""
    if from_id not in ids or ids[-1] == from_id:
        return ids
    return tuple(i for i in ids if i != from_id) + (from_id,)


def is_permutation(ids: Sequence[str], known: Iterable[str]) -> bool:
    known_list = list(known)
    return len(ids) == len(known_list) and len(set(ids)) == len(ids) and set(ids) == set(known_list)


@dataclass(frozen=True)
class OrderSnapshot:
    """Full ``(protocol, order)`` pair captured for rollback."""

    protocol: Protocol
    order: Order


class OrderingStore:
    """Holds the current channel order for every protocol.

    Each protocol's order is always a permutation of the ids of that
    protocol's channels as last loaded.
    """

    def __init__(self) -> None:
        self._orders: dict[Protocol, Order] = {p: () for p in Protocol}
        self._channels: dict[str, Channel] = {}

    # -- loading ------------------------------------------------------------

    def load(self, channels: Iterable[Channel], keep: Iterable[Protocol] = ()) -> None:
        """Replace state with a fetched channel list, grouped by protocol.

        The backend's list order is taken as each protocol's order, except
        for protocols in *keep*: there the local order survives as long as
        the set of ids did not change.
        """
        keep = set(keep)
        grouped: dict[Protocol, list[str]] = {p: [] for p in Protocol}
        by_id: dict[str, Channel] = {}
        for channel in channels:
            if channel.id in by_id:
                logger.warning(f"Duplicate channel id {channel.id} in fetched list; keeping first")
                continue
            by_id[channel.id] = channel
            grouped[channel.protocol].append(channel.id)

        orders: dict[Protocol, Order] = {}
        for protocol, ids in grouped.items():
            current = self._orders.get(protocol, ())
            if protocol in keep and is_permutation(current, ids):
                orders[protocol] = current
            else:
                orders[protocol] = tuple(ids)

        self._channels = by_id
        self._orders = orders

    # -- reads ----------------------------------------------------------------

    def order(self, protocol: Protocol) -> Order:
        return self._orders[protocol]

    def channels(self, protocol: Protocol) -> list[Channel]:
        return [self._channels[i] for i in self._orders[protocol]]

    def get(self, channel_id: str) -> Channel | None:
        return self._channels.get(channel_id)

    def __contains__(self, channel_id: object) -> bool:
        return channel_id in self._channels

    # -- writes ---------------------------------------------------------------

    def replace(self, protocol: Protocol, ids: Sequence[str]) -> Order:
        """Install *ids* as the protocol's order after checking it is a permutation."""
        new_order = tuple(ids)
        if not is_permutation(new_order, self._orders[protocol]):
            raise OrderingError(f"Order for {protocol} is not a permutation of its channels: {list(ids)}")
        self._orders[protocol] = new_order
        return new_order

    def move_before(self, protocol: Protocol, from_id: str, to_id: str) -> bool:
        """Apply :func:`move_before`; returns True if the order changed."""
        current = self._orders[protocol]
        updated = move_before(current, from_id, to_id)
        self._orders[protocol] = updated
        return updated is not current

    def move_to_end(self, protocol: Protocol, from_id: str) -> bool:
        """Apply :func:`move_to_end`; returns True if the order changed."""
        current = self._orders[protocol]
        updated = move_to_end(current, from_id)
        self._orders[protocol] = updated
        return updated is not current

    def snapshot(self, protocol: Protocol) -> OrderSnapshot:
        return OrderSnapshot(protocol=protocol, order=self._orders[protocol])

    def restore(self, snapshot: OrderSnapshot) -> None:
        """Put a snapshot back, unless the channel set changed underneath it."""
        if not is_permutation(snapshot.order, self._orders[snapshot.protocol]):
            logger.warning(f"Discarding stale {snapshot.protocol} snapshot: channel set changed since capture")
            return
        self._orders[snapshot.protocol] = snapshot.order
