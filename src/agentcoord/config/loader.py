"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Deep merging of the system -> user -> project cascade
- Environment variable overrides
- Conversion from dict to the typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from agentcoord.config.paths import get_config_paths
from agentcoord.config.schema import (
    DEFAULT_DATA_DIR,
    DEFAULT_LOCK_TTL_MS,
    DEFAULT_STALE_AFTER_MS,
    AgentsConfig,
    Config,
    LocksConfig,
    LoggingConfig,
    ServerConfig,
    StatusConfig,
    StoreConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("agentcoord.config")

ENV_DATA_DIR = "AGENTCOORD_DIR"
ENV_PORT = "AGENTCOORD_PORT"
ENV_LOG = "AGENTCOORD_LOG"

_KNOWN_SECTIONS = {"store", "agents", "locks", "status", "server", "logging"}

_cached_config: Config | None = None


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning an empty dict if missing or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Nested dicts merge recursively, lists and scalars are replaced, and
    ``None`` in the override leaves the base value alone.
    """
    result = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge config dicts in order, later ones winning."""
    result: dict[str, Any] = {}
    for config in configs:
        if config:
            result = deep_merge(result, config)
    return result


def env_overrides() -> dict[str, Any]:
    """Build a config dict from environment variables (highest priority)."""
    overrides: dict[str, Any] = {}

    data_dir = os.environ.get(ENV_DATA_DIR)
    if data_dir:
        overrides.setdefault("store", {})["data_dir"] = data_dir

    port = os.environ.get(ENV_PORT)
    if port:
        try:
            overrides.setdefault("server", {})["port"] = int(port)
        except ValueError:
            _log.warning("Ignoring non-numeric %s=%r", ENV_PORT, port)

    log_path = os.environ.get(ENV_LOG)
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    return overrides


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert a merged dict to the typed Config dataclass."""
    store_data = _section(data, "store")
    store = StoreConfig(
        data_dir=str(store_data.get("data_dir", DEFAULT_DATA_DIR)),
        lock_timeout=float(store_data.get("lock_timeout", 10.0)),
    )

    agents = AgentsConfig(
        stale_after_ms=int(_section(data, "agents").get("stale_after_ms", DEFAULT_STALE_AFTER_MS)),
    )
    locks = LocksConfig(
        default_ttl_ms=int(_section(data, "locks").get("default_ttl_ms", DEFAULT_LOCK_TTL_MS)),
    )
    status = StatusConfig(
        recent_events=int(_section(data, "status").get("recent_events", 10)),
    )

    server_data = _section(data, "server")
    server = ServerConfig(
        host=str(server_data.get("host", "127.0.0.1")),
        port=int(server_data.get("port", 4000)),
    )

    log_data = _section(data, "logging")
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    extra = {k: v for k, v in data.items() if k not in _KNOWN_SECTIONS}

    return Config(
        store=store,
        agents=agents,
        locks=locks,
        status=status,
        server=server,
        logging=logging_config,
        extra=extra,
    )


def load_config(project_root: str | Path | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables (AGENTCOORD_DIR, AGENTCOORD_PORT, AGENTCOORD_LOG)
    2. Project config ($project_root/.agentcoord/config.yaml)
    3. User config
    4. System config

    Only the global config (no project_root) is cached.
    """
    global _cached_config

    if _cached_config is not None and not reload and project_root is None:
        return _cached_config

    configs: list[dict[str, Any]] = []
    for path in get_config_paths(project_root):
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    config = dict_to_config(merge_configs(*configs))

    if project_root is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset the cached config (used by tests)."""
    global _cached_config
    _cached_config = None
