"""agentcoord: file-backed coordination for agents sharing a working directory."""

__version__ = "0.1.0"

# Public API
from agentcoord.config import Config, get_config, load_config
from agentcoord.errors import (
    AlreadyExistsError,
    InvalidStateError,
    NotFoundError,
    OrchestratorError,
    StoreError,
)
from agentcoord.orchestrator import Orchestrator
from agentcoord.state import (
    Agent,
    Event,
    Lock,
    StateDocument,
    Store,
    Task,
    TaskStatus,
    Workstream,
)

__all__ = [
    # Main entry point
    "Orchestrator",
    "Store",
    # State
    "StateDocument",
    "Workstream",
    "Task",
    "TaskStatus",
    "Agent",
    "Lock",
    "Event",
    # Errors
    "OrchestratorError",
    "AlreadyExistsError",
    "NotFoundError",
    "InvalidStateError",
    "StoreError",
    # Config
    "Config",
    "load_config",
    "get_config",
]
