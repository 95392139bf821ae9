"""
Layered configuration for switchboard.

Sources, lowest to highest precedence:

* built-in defaults (``DEFAULTS`` below)
* a YAML or JSON file, normally ``~/.switchboard/config.yaml``
* ``SWITCHBOARD_<SECTION>__<KEY>`` environment variables

Env values are parsed as YAML scalars, so ``SWITCHBOARD_BACKEND__TIMEOUT=30``
arrives as an int rather than a string.

Usage:
    config = Config(config_file="~/.switchboard/config.yaml")
    config.get("backend.base_url")
    config.backend_timeout()
"""

import copy
import json
import os
from typing import Any

import yaml

from .exceptions import ConfigurationError

ENV_PREFIX = "SWITCHBOARD_"
DEFAULT_BASE_URL = "http://127.0.0.1:4000"
DEFAULT_TIMEOUT = 15.0

DEFAULTS: dict[str, Any] = {
    "backend": {
        "base_url": DEFAULT_BASE_URL,
        "timeout": DEFAULT_TIMEOUT,
    },
    "logging": {
        "level": "WARNING",
        "file": "",
        "rotation": "10 MB",
        "retention": "7 days",
    },
}


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> None:
    for key, value in overlay.items():
        existing = base.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            _merge(existing, value)
        else:
            base[key] = value


def _parse_env_value(raw: str) -> Any:
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def _read_file(path: str) -> dict[str, Any]:
    suffix = os.path.splitext(path)[1].lower()
    if suffix not in (".yaml", ".yml", ".json"):
        raise ConfigurationError(f"Unsupported config file type: {path}")
    try:
        with open(path) as f:
            data = json.load(f) if suffix == ".json" else yaml.safe_load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot parse config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


class Config:
    """Merged view of defaults, the config file and env overrides.

    Nested keys are addressed with dots: ``config.get("logging.level")``.
    """

    def __init__(
        self,
        config_file: str | None = None,
        env_prefix: str = ENV_PREFIX,
        defaults: dict[str, Any] | None = None,
    ):
        self.config_file = os.path.expanduser(config_file) if config_file else None
        self.env_prefix = env_prefix or ""

        data = copy.deepcopy(DEFAULTS)
        if defaults:
            _merge(data, defaults)
        if self.config_file and os.path.exists(self.config_file):
            _merge(data, _read_file(self.config_file))
        if self.env_prefix:
            _merge(data, self._env_overrides())
        self.config_data = data

    def _env_overrides(self) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for name, raw in os.environ.items():
            if not name.startswith(self.env_prefix):
                continue
            *sections, leaf = name[len(self.env_prefix) :].lower().split("__")
            node = overrides
            for section in sections:
                node = node.setdefault(section, {})
            node[leaf] = _parse_env_value(raw)
        return overrides

    def _walk(self, key_path: str) -> tuple[dict[str, Any] | None, str]:
        *parents, leaf = key_path.split(".")
        node: Any = self.config_data
        for part in parents:
            node = node.get(part) if isinstance(node, dict) else None
            if node is None:
                return None, leaf
        return (node if isinstance(node, dict) else None), leaf

    def get(self, key_path: str, default: Any = None) -> Any:
        """Return the value at *key_path*, or *default* when any segment is missing."""
        node, leaf = self._walk(key_path)
        if node is None or leaf not in node:
            return default
        return node[leaf]

    def set(self, key_path: str, value: Any) -> None:
        """Set *key_path*, replacing any non-mapping parent with a fresh dict."""
        *parents, leaf = key_path.split(".")
        node = self.config_data
        for part in parents:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = value

    def backend_timeout(self) -> float:
        """``backend.timeout`` in seconds, validated."""
        raw = self.get("backend.timeout", DEFAULT_TIMEOUT)
        try:
            timeout = float(raw)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"backend.timeout must be a number, got {raw!r}") from e
        if timeout <= 0:
            raise ConfigurationError(f"backend.timeout must be positive, got {timeout}")
        return timeout


_config: Config | None = None


def get_config(config_file: str | None = None, env_prefix: str = ENV_PREFIX) -> Config:
    """Return the process-wide Config, creating it on first use."""
    global _config
    if _config is None:
        _config = Config(config_file=config_file, env_prefix=env_prefix)
    return _config


def reset_config() -> None:
    global _config
    _config = None
