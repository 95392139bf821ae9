"""Channel data model.

Pure data, no I/O. A channel belongs to exactly one protocol and owns one or
more endpoints and one or more keys. Endpoints and keys are "cooldownable":
each carries its own enabled flag and an absolute cooldown expiry in epoch
milliseconds (0 means not cooling down).

``Channel.from_dict`` accepts the backend's wire shape::

    {
        "id": "c-1", "name": "primary", "protocol": "openai",
        "priority": 3, "enabled": true, "real_multiplier": 1.0,
        "endpoints": [{"id": "e-1", "base_url": "...", "enabled": true,
                       "auto_disabled_until_ms": 0}],
        "keys": [{"id": "k-1", "auth_ref_masked": "sk-••••abcd",
                  "enabled": true, "auto_disabled_until_ms": 0}]
    }
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from switchboard.core.exceptions import ChannelDataError


class Protocol(StrEnum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"

    @classmethod
    def parse(cls, value: str | Protocol) -> Protocol:
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise ChannelDataError(f"Unknown protocol: {value!r}") from e


@dataclass(frozen=True)
class Endpoint:
    id: str
    base_url: str = ""
    enabled: bool = True
    cooldown_until_ms: int = 0
    priority: int = 0


@dataclass(frozen=True)
class Key:
    id: str
    masked: str = ""
    enabled: bool = True
    cooldown_until_ms: int = 0
    priority: int = 0


Cooldownable = Endpoint | Key


@dataclass(frozen=True)
class Channel:
    """A named upstream credential group for one protocol."""

    id: str
    name: str
    protocol: Protocol
    endpoints: tuple[Endpoint, ...]
    keys: tuple[Key, ...]
    priority: int = 0
    enabled: bool = True
    real_multiplier: float | None = 1.0
    updated_at_ms: int = 0

    def __post_init__(self) -> None:
        if not self.endpoints:
            raise ChannelDataError(f"Channel {self.id} has no endpoints")
        if not self.keys:
            raise ChannelDataError(f"Channel {self.id} has no keys")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Channel:
        """Build a Channel from a backend record.

        Records whose ``endpoints``/``keys`` lists are missing or empty fall
        back to the top-level ``base_url``/``auth_ref`` columns, synthesized
        as one endpoint and one key so the non-empty invariant holds.
        """
        try:
            channel_id = str(data["id"])
        except KeyError as e:
            raise ChannelDataError(f"Channel record without id: {data!r}") from e

        endpoints_raw = data.get("endpoints")
        if not endpoints_raw and data.get("base_url"):
            endpoints_raw = [{"id": f"{channel_id}:endpoint", "base_url": data["base_url"]}]
        keys_raw = data.get("keys")
        if not keys_raw and (data.get("auth_ref_masked") or data.get("auth_ref")):
            keys_raw = [{"id": f"{channel_id}:key", "auth_ref_masked": data.get("auth_ref_masked") or ""}]

        return cls(
            id=channel_id,
            name=str(data.get("name", "")),
            protocol=Protocol.parse(data.get("protocol", "")),
            endpoints=tuple(_endpoint_from_dict(e) for e in endpoints_raw or ()),
            keys=tuple(_key_from_dict(k) for k in keys_raw or ()),
            priority=_as_int(data.get("priority"), field_name="priority"),
            enabled=bool(data.get("enabled", True)),
            real_multiplier=_as_multiplier(data.get("real_multiplier", 1.0)),
            updated_at_ms=_as_int(data.get("updated_at_ms"), field_name="updated_at_ms"),
        )


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _as_int(value: Any, *, field_name: str) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ChannelDataError(f"{field_name} must be an integer, got {value!r}") from e


def _as_multiplier(value: Any) -> float | None:
    # Kept verbatim (including nan/inf); ranking decides how to treat it
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _cooldown_of(data: dict[str, Any]) -> int:
    raw = data.get("cooldown_until_ms", data.get("auto_disabled_until_ms"))
    return _as_int(raw, field_name="cooldown_until_ms")


def _endpoint_from_dict(data: dict[str, Any]) -> Endpoint:
    if "id" not in data:
        raise ChannelDataError(f"Endpoint record without id: {data!r}")
    return Endpoint(
        id=str(data["id"]),
        base_url=str(data.get("base_url", "")),
        enabled=bool(data.get("enabled", True)),
        cooldown_until_ms=_cooldown_of(data),
        priority=_as_int(data.get("priority"), field_name="priority"),
    )


def _key_from_dict(data: dict[str, Any]) -> Key:
    if "id" not in data:
        raise ChannelDataError(f"Key record without id: {data!r}")
    return Key(
        id=str(data["id"]),
        masked=str(data.get("auth_ref_masked") or data.get("masked") or ""),
        enabled=bool(data.get("enabled", True)),
        cooldown_until_ms=_cooldown_of(data),
        priority=_as_int(data.get("priority"), field_name="priority"),
    )
