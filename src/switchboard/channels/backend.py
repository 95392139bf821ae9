"""Backend collaborators: where channel lists come from and orders go to.

``ChannelBackend`` is the async interface the session controller consumes.
Two implementations ship here:

* ``HttpChannelBackend`` talks to the channel server's REST API
  (``GET /api/channels``, ``POST /api/channels/reorder``).
* ``InMemoryChannelBackend`` keeps channels in a dict and enforces the same
  reorder rules as the server. Tests and scripted demos use it.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Any

from loguru import logger

from switchboard.core.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, Config
from switchboard.core.exceptions import APIError, ChannelDataError, FetchError, PersistError

from .models import Channel, Protocol

_PROTOCOL_RANK = {p: i for i, p in enumerate(Protocol)}


class ChannelBackend(ABC):
    """Source of truth for channels and their persisted order."""

    @abstractmethod
    async def fetch_channels(self) -> list[Channel]:
        """Return every channel with full endpoint/key state. Raises FetchError."""

    @abstractmethod
    async def persist_order(self, protocol: Protocol, channel_ids: Sequence[str]) -> None:
        """Save the priority order of *protocol*'s channels. Raises PersistError.

        Must be idempotent: saving the same order twice has no further effect.
        """


class HttpChannelBackend(ChannelBackend):
    """REST client for the channel server.

    Uses blocking ``urllib`` run in the default executor, so a slow server
    never blocks the event loop. Every request is bounded by ``timeout``.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT):
        if not base_url:
            raise ValueError("base_url is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Config) -> HttpChannelBackend:
        return cls(
            base_url=str(config.get("backend.base_url", DEFAULT_BASE_URL)),
            timeout=config.backend_timeout(),
        )

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        data = None
        headers: dict[str, str] = {"Accept": "application/json"}
        if payload is not None:
            headers["Content-Type"] = "application/json"
            data = json.dumps(payload).encode("utf-8")

        req = urllib.request.Request(url=url, data=data, method=method.upper(), headers=headers)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="ignore").strip() if hasattr(e, "read") else ""
            raise APIError(body or f"{method.upper()} {path} failed: {e.code}") from e
        except urllib.error.URLError as e:
            raise APIError(f"{method.upper()} {path} failed: {e.reason}") from e
        except TimeoutError as e:
            raise APIError(f"{method.upper()} {path} timed out after {self.timeout}s") from e

        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise APIError(f"{method.upper()} {path} returned invalid JSON") from e

    async def _call(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self._request(method, path, payload))

    async def fetch_channels(self) -> list[Channel]:
        try:
            records = await self._call("GET", "/api/channels")
        except APIError as e:
            raise FetchError(str(e)) from e
        if not isinstance(records, list):
            raise FetchError(f"Expected a list of channels, got {type(records).__name__}")
        channels: list[Channel] = []
        for record in records:
            if not isinstance(record, dict):
                logger.warning(f"Skipping non-object channel record: {record!r}")
                continue
            try:
                channels.append(Channel.from_dict(record))
            except ChannelDataError as e:
                # One unusable row must not hide the rest of the list
                logger.warning(f"Skipping malformed channel record: {e}")
        return channels

    async def persist_order(self, protocol: Protocol, channel_ids: Sequence[str]) -> None:
        payload = {"protocol": protocol.value, "channel_ids": list(channel_ids)}
        try:
            await self._call("POST", "/api/channels/reorder", payload)
        except APIError as e:
            raise PersistError(str(e)) from e
        logger.debug(f"Persisted {protocol} order: {len(channel_ids)} channels")


class InMemoryChannelBackend(ChannelBackend):
    """Dict-backed backend applying the channel server's reorder rules.

    * the id list may not contain duplicates
    * it must cover exactly the protocol's channels
    * priorities are rewritten as ``n - index`` (first = highest)

    ``fetch_channels`` lists by protocol, then priority descending, then name,
    matching the server. ``fail_next_persist``/``fail_next_fetch`` inject one
    failure each for exercising rollback paths.
    """

    def __init__(self, channels: Iterable[Channel] = ()):
        self._channels: dict[str, Channel] = {c.id: c for c in channels}
        self.fetch_calls = 0
        self.persist_calls: list[tuple[Protocol, list[str]]] = []
        self._fail_persist: Exception | None = None
        self._fail_fetch: Exception | None = None

    def fail_next_persist(self, exc: Exception | None = None) -> None:
        self._fail_persist = exc or PersistError("persist failed")

    def fail_next_fetch(self, exc: Exception | None = None) -> None:
        self._fail_fetch = exc or FetchError("fetch failed")

    def upsert(self, channel: Channel) -> None:
        self._channels[channel.id] = channel

    async def fetch_channels(self) -> list[Channel]:
        self.fetch_calls += 1
        if self._fail_fetch is not None:
            exc, self._fail_fetch = self._fail_fetch, None
            raise exc
        return sorted(self._channels.values(), key=lambda c: (_PROTOCOL_RANK[c.protocol], -c.priority, c.name))

    async def persist_order(self, protocol: Protocol, channel_ids: Sequence[str]) -> None:
        ids = list(channel_ids)
        self.persist_calls.append((protocol, ids))
        if self._fail_persist is not None:
            exc, self._fail_persist = self._fail_persist, None
            raise exc

        if len(set(ids)) != len(ids):
            raise PersistError("channel_ids contains duplicates")
        known = {c.id for c in self._channels.values() if c.protocol == protocol}
        if len(ids) != len(known):
            raise PersistError("channel reorder mismatch: length")
        incoming = set(ids)
        if incoming != known:
            if incoming <= known:
                raise PersistError("channel reorder mismatch: coverage")
            raise PersistError("channel not found")

        n = len(ids)
        for idx, channel_id in enumerate(ids):
            self._channels[channel_id] = replace(self._channels[channel_id], priority=n - idx)
