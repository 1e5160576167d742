"""Shared state document, its schemas and the file-backed store."""

from agentcoord.state.schema import (
    Agent,
    AgentStatus,
    Event,
    Lock,
    StateDocument,
    Task,
    TaskStatus,
    Workstream,
    WorkstreamStatus,
)
from agentcoord.state.store import Store, Transaction

__all__ = [
    "Agent",
    "AgentStatus",
    "Event",
    "Lock",
    "StateDocument",
    "Store",
    "Task",
    "TaskStatus",
    "Transaction",
    "Workstream",
    "WorkstreamStatus",
]
