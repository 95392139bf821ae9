"""Shared test fixtures for switchboard."""

import os
import tempfile

import pytest

from switchboard.channels import Channel, Endpoint, InMemoryChannelBackend, Key, Protocol, ReorderSessionController

NOW = 1_700_000_000_000


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "backend": {"base_url": "http://channels.test:4000", "timeout": 5},
        "logging": {"level": "DEBUG"},
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def now():
    """A fixed reference clock in epoch milliseconds."""
    return NOW


@pytest.fixture
def make_channel():
    """Factory for channels with one healthy endpoint and key unless overridden."""

    def _make(
        channel_id,
        *,
        name=None,
        protocol=Protocol.OPENAI,
        enabled=True,
        multiplier=1.0,
        priority=0,
        endpoints=None,
        keys=None,
    ):
        return Channel(
            id=channel_id,
            name=name if name is not None else channel_id,
            protocol=protocol,
            endpoints=tuple(endpoints) if endpoints is not None else (Endpoint(id=f"{channel_id}-e1"),),
            keys=tuple(keys) if keys is not None else (Key(id=f"{channel_id}-k1"),),
            priority=priority,
            enabled=enabled,
            real_multiplier=multiplier,
        )

    return _make


@pytest.fixture
def xyz_backend(make_channel):
    """Backend holding openai channels X, Y, Z (listed in that order) plus one anthropic channel."""
    return InMemoryChannelBackend(
        [
            make_channel("X", priority=3),
            make_channel("Y", priority=2),
            make_channel("Z", priority=1),
            make_channel("A1", protocol=Protocol.ANTHROPIC, priority=1),
        ]
    )


@pytest.fixture
async def controller(xyz_backend):
    """Controller whose store has been loaded once from ``xyz_backend``."""
    ctl = ReorderSessionController(xyz_backend)
    assert await ctl.refresh()
    xyz_backend.fetch_calls = 0
    return ctl
