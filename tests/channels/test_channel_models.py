"""Tests for switchboard.channels.models."""

import pytest

from switchboard.channels import Channel, Endpoint, Key, Protocol
from switchboard.core.exceptions import ChannelDataError

RECORD = {
    "id": "c-1",
    "name": "primary",
    "protocol": "anthropic",
    "base_url": "https://api.anthropic.com",
    "priority": 5,
    "real_multiplier": 0.8,
    "enabled": True,
    "auto_disabled_until_ms": 0,
    "updated_at_ms": 1700000000000,
    "endpoints": [
        {"id": "e-1", "base_url": "https://api.anthropic.com", "enabled": True, "auto_disabled_until_ms": 0},
        {"id": "e-2", "base_url": "https://mirror.example", "enabled": False, "auto_disabled_until_ms": 1700000060000},
    ],
    "keys": [{"id": "k-1", "auth_ref_masked": "sk-••••••••abcd", "enabled": True, "priority": 2}],
}


class TestProtocol:
    def test_parse_is_case_insensitive(self):
        assert Protocol.parse("OpenAI") is Protocol.OPENAI
        assert Protocol.parse(" gemini ") is Protocol.GEMINI

    def test_parse_unknown(self):
        with pytest.raises(ChannelDataError, match="Unknown protocol"):
            Protocol.parse("cohere")


class TestChannelFromDict:
    def test_full_record(self):
        c = Channel.from_dict(RECORD)
        assert c.id == "c-1"
        assert c.protocol is Protocol.ANTHROPIC
        assert c.priority == 5
        assert c.real_multiplier == 0.8
        assert c.updated_at_ms == 1700000000000
        assert [e.id for e in c.endpoints] == ["e-1", "e-2"]
        assert c.endpoints[1].enabled is False
        assert c.endpoints[1].cooldown_until_ms == 1700000060000
        assert c.keys[0].masked == "sk-••••••••abcd"
        assert c.keys[0].priority == 2

    def test_cooldown_until_ms_field_also_accepted(self):
        record = {**RECORD, "endpoints": [{"id": "e-1", "cooldown_until_ms": 42}]}
        assert Channel.from_dict(record).endpoints[0].cooldown_until_ms == 42

    def test_legacy_record_synthesizes_endpoint_and_key(self):
        legacy = {"id": "c-9", "name": "old", "protocol": "openai", "base_url": "https://api.openai.com", "auth_ref": "x"}
        c = Channel.from_dict(legacy)
        assert c.endpoints == (Endpoint(id="c-9:endpoint", base_url="https://api.openai.com"),)
        assert len(c.keys) == 1
        assert c.keys[0].id == "c-9:key"

    def test_missing_multiplier_defaults_to_one(self):
        record = {k: v for k, v in RECORD.items() if k != "real_multiplier"}
        assert Channel.from_dict(record).real_multiplier == 1.0

    def test_unparseable_multiplier_becomes_none(self):
        assert Channel.from_dict({**RECORD, "real_multiplier": "n/a"}).real_multiplier is None

    def test_empty_endpoints_rejected(self):
        record = {k: v for k, v in RECORD.items() if k != "base_url"}
        with pytest.raises(ChannelDataError, match="no endpoints"):
            Channel.from_dict({**record, "endpoints": []})

    def test_empty_lists_fall_back_to_legacy_columns(self):
        c = Channel.from_dict({**RECORD, "endpoints": [], "keys": [], "auth_ref": "ref", "auth_ref_masked": None})
        assert c.endpoints == (Endpoint(id="c-1:endpoint", base_url="https://api.anthropic.com"),)
        assert c.keys == (Key(id="c-1:key", masked=""),)

    def test_null_masked_secret_becomes_empty(self):
        c = Channel.from_dict({**RECORD, "keys": [{"id": "k-1", "auth_ref_masked": None}]})
        assert c.keys[0].masked == ""

    def test_empty_keys_rejected(self):
        with pytest.raises(ChannelDataError, match="no keys"):
            Channel.from_dict({**RECORD, "keys": []})

    def test_missing_id_rejected(self):
        with pytest.raises(ChannelDataError):
            Channel.from_dict({k: v for k, v in RECORD.items() if k != "id"})

    def test_bad_priority_rejected(self):
        with pytest.raises(ChannelDataError, match="priority"):
            Channel.from_dict({**RECORD, "priority": "high"})


def test_channel_requires_endpoints_and_keys():
    with pytest.raises(ChannelDataError):
        Channel(id="c", name="c", protocol=Protocol.OPENAI, endpoints=(), keys=(Key(id="k"),))
