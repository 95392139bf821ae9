"""Availability and cooldown evaluation for channels, endpoints and keys.

Everything here is a pure function of its inputs. The caller captures one
``now`` (``now_ms()``) per evaluation pass and passes it to every call, so all
entities in one pass are judged against the same instant.
"""

from __future__ import annotations

import math
import time
from collections.abc import Iterable
from dataclasses import dataclass

from .models import Channel, Cooldownable

MS_PER_MINUTE = 60_000


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Availability:
    available: bool
    remaining_minutes: int | None = None
    """Minutes of cooldown left, rounded up and never below 1; None when not cooling down."""

    @property
    def cooling_down(self) -> bool:
        return self.remaining_minutes is not None


@dataclass(frozen=True)
class ChannelStatus:
    """One channel's availability as of a single ``now``."""

    channel_id: str
    available: bool
    min_cooldown_minutes: int | None
    """Shortest remaining cooldown among enabled endpoints/keys, for degraded-redundancy warnings."""
    endpoints: dict[str, Availability]
    keys: dict[str, Availability]


def remaining_cooldown_minutes(cooldown_until_ms: int, now: int) -> int | None:
    if not cooldown_until_ms or cooldown_until_ms <= now:
        return None
    return max(1, math.ceil((cooldown_until_ms - now) / MS_PER_MINUTE))


def availability(entity: Cooldownable, now: int) -> Availability:
    """Evaluate one endpoint or key at *now* (epoch ms)."""
    remaining = remaining_cooldown_minutes(entity.cooldown_until_ms, now)
    return Availability(available=entity.enabled and remaining is None, remaining_minutes=remaining)


def channel_available(channel: Channel, now: int) -> bool:
    return (
        channel.enabled
        and any(availability(e, now).available for e in channel.endpoints)
        and any(availability(k, now).available for k in channel.keys)
    )


def min_cooldown_minutes(entities: Iterable[Cooldownable], now: int) -> int | None:
    """Smallest remaining cooldown among *enabled* entities that are cooling down."""
    remaining = [
        minutes
        for entity in entities
        if entity.enabled and (minutes := remaining_cooldown_minutes(entity.cooldown_until_ms, now)) is not None
    ]
    return min(remaining) if remaining else None


def channel_status(channel: Channel, now: int) -> ChannelStatus:
    endpoints = {e.id: availability(e, now) for e in channel.endpoints}
    keys = {k.id: availability(k, now) for k in channel.keys}
    return ChannelStatus(
        channel_id=channel.id,
        available=(
            channel.enabled and any(a.available for a in endpoints.values()) and any(a.available for a in keys.values())
        ),
        min_cooldown_minutes=min_cooldown_minutes((*channel.endpoints, *channel.keys), now),
        endpoints=endpoints,
        keys=keys,
    )


def evaluate(channels: Iterable[Channel], now: int) -> dict[str, ChannelStatus]:
    """Evaluate a whole channel list against one shared *now*."""
    return {c.id: channel_status(c, now) for c in channels}
