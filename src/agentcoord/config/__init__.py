"""Configuration management for agentcoord.

Hierarchical YAML-based configuration with:
- System-level config (/etc/agentcoord/ or %PROGRAMDATA%)
- User-level config (~/.config/agentcoord/, ~/.agentcoord/ or %APPDATA%)
- Project-level config ($project_root/.agentcoord/)
- Environment variable overrides (highest priority)

Example usage:
    from agentcoord.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.store.data_dir)
    print(config.locks.default_ttl_ms)
"""

from agentcoord.config.loader import (
    deep_merge,
    get_config,
    load_config,
    merge_configs,
    reset_config,
)
from agentcoord.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from agentcoord.config.schema import (
    AgentsConfig,
    Config,
    LocksConfig,
    LoggingConfig,
    ServerConfig,
    StatusConfig,
    StoreConfig,
)

__all__ = [
    # Main API
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "deep_merge",
    "merge_configs",
    # Schema types
    "AgentsConfig",
    "LocksConfig",
    "LoggingConfig",
    "ServerConfig",
    "StatusConfig",
    "StoreConfig",
    # Path utilities
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
