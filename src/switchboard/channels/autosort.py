"""Cost-based auto-sort proposals.

The proposer only suggests an order. Applying it goes through
``ReorderSessionController.apply_auto_sort`` so it gets the same persist and
rollback handling as a drag.

Ranking, applied as a stable sort:
    1. enabled channels before disabled ones
    2. lower cost factor first; an unusable multiplier ranks as +inf
    3. name, ascending, case-sensitive
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from .models import Channel


def cost_factor(channel: Channel) -> float:
    """Ranking cost for *channel*; lower is preferred.

    The configured real-cost multiplier when it is finite and non-negative,
    otherwise ``math.inf``. Disabled channels are always ``math.inf``. The
    infinity is for ranking only and is never written back.
    """
    multiplier = channel.real_multiplier
    if not channel.enabled or multiplier is None or not math.isfinite(multiplier) or multiplier < 0:
        return math.inf
    return multiplier


def _rank(channel: Channel) -> tuple[bool, bool, float, str]:
    cost = cost_factor(channel)
    # The explicit is-inf flag keeps +inf after every finite cost without relying on float ordering
    return (not channel.enabled, math.isinf(cost), cost if math.isfinite(cost) else 0.0, channel.name)


def propose_order(channels: Sequence[Channel]) -> list[Channel]:
    """Return the same channels in suggested order; the input is not modified."""
    return sorted(channels, key=_rank)


def changed(current: Sequence[str], proposed: Sequence[str]) -> bool:
    """True when *proposed* ids differ from *current* in length or any position."""
    if len(current) != len(proposed):
        return True
    return any(a != b for a, b in zip(current, proposed, strict=True))


@dataclass(frozen=True)
class OrderChange:
    channel_id: str
    name: str
    old_position: int  # 1-based
    new_position: int  # 1-based
    cost_factor: float

    @property
    def moved(self) -> bool:
        return self.old_position != self.new_position


def diff_order(current: Sequence[Channel], proposed: Sequence[Channel]) -> list[OrderChange]:
    """Rows for a before/after table, in proposed order."""
    old_positions = {c.id: i for i, c in enumerate(current, start=1)}
    return [
        OrderChange(
            channel_id=c.id,
            name=c.name,
            old_position=old_positions.get(c.id, 0),
            new_position=i,
            cost_factor=cost_factor(c),
        )
        for i, c in enumerate(proposed, start=1)
    ]
