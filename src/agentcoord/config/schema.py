"""Configuration schema dataclasses for agentcoord.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_DATA_DIR = ".agentcoord"
DEFAULT_STALE_AFTER_MS = 300_000
DEFAULT_LOCK_TTL_MS = 60_000


@dataclass
class StoreConfig:
    """Where the shared state lives and how long to wait for it.

    Example config.yaml:
        store:
          data_dir: /srv/agents/.agentcoord
          lock_timeout: 5
    """

    data_dir: str = DEFAULT_DATA_DIR  # Relative paths resolve against cwd
    lock_timeout: float = 10.0  # Seconds to wait for the store file lock


@dataclass
class AgentsConfig:
    """Agent registry configuration."""

    stale_after_ms: int = DEFAULT_STALE_AFTER_MS  # Heartbeat age that marks an agent stale


@dataclass
class LocksConfig:
    """Resource lock configuration."""

    default_ttl_ms: int = DEFAULT_LOCK_TTL_MS


@dataclass
class StatusConfig:
    """Status snapshot configuration."""

    recent_events: int = 10


@dataclass
class ServerConfig:
    """HTTP API / dashboard server configuration."""

    host: str = "127.0.0.1"
    port: int = 4000


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0 (errors) .. 4 (trace), wins over level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object.

    Aggregates all configuration sections. All fields use default factories
    to ensure partial configs work correctly with deep merging.
    """

    store: StoreConfig = field(default_factory=StoreConfig)
    agents: AgentsConfig = field(default_factory=AgentsConfig)
    locks: LocksConfig = field(default_factory=LocksConfig)
    status: StatusConfig = field(default_factory=StatusConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Extension point for future config sections
    extra: dict[str, Any] = field(default_factory=dict)
