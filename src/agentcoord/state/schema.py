"""Data schemas for the shared state document and the event journal.

Mapping keys on disk (workstream name, agent id, lock resource) are also
carried on the dataclasses for convenience; ``to_dict`` leaves them out
because the enclosing mapping already holds them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from agentcoord.utils import age_ms, isoformat, parse_ts, utcnow


class TaskStatus(Enum):
    """Lifecycle state of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class WorkstreamStatus(Enum):
    ACTIVE = "active"


class AgentStatus(Enum):
    ACTIVE = "active"


@dataclass
class Task:
    """A unit of work inside a workstream."""

    id: str  # 8 hex chars, unique within its workstream
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: int = 5  # Lower is more urgent
    estimate: str | None = None
    assigned_to: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    result: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority,
            "estimate": self.estimate,
            "assigned_to": self.assigned_to,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
            "result": self.result,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description") or "",
            status=TaskStatus(data.get("status", "pending")),
            priority=int(data.get("priority", 5)),
            estimate=data.get("estimate"),
            assigned_to=data.get("assigned_to"),
            created_at=parse_ts(data["created_at"]),
            updated_at=parse_ts(data["updated_at"]),
            result=data.get("result"),
        )


@dataclass
class Workstream:
    """A named, prioritized bucket of tasks kept in creation order."""

    name: str
    description: str = ""
    priority: int = 5
    status: WorkstreamStatus = WorkstreamStatus.ACTIVE
    tasks: list[Task] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    def find_task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def count(self, status: TaskStatus) -> int:
        return sum(1 for t in self.tasks if t.status is status)

    def next_pending(self) -> Task | None:
        """Lowest priority value among pending tasks; earliest created wins ties."""
        best: Task | None = None
        for task in self.tasks:
            if task.status is not TaskStatus.PENDING:
                continue
            if best is None or task.priority < best.priority:
                best = task
        return best

    def summary(self) -> dict[str, Any]:
        """Listing view: the stored record plus its name and derived counts."""
        return {
            "name": self.name,
            **self.to_dict(),
            "task_count": len(self.tasks),
            "pending": self.count(TaskStatus.PENDING),
            "in_progress": self.count(TaskStatus.IN_PROGRESS),
            "done": self.count(TaskStatus.DONE),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "priority": self.priority,
            "status": self.status.value,
            "tasks": [t.to_dict() for t in self.tasks],
            "created_at": isoformat(self.created_at),
        }

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> Workstream:
        return cls(
            name=name,
            description=data.get("description") or "",
            priority=int(data.get("priority", 5)),
            status=WorkstreamStatus(data.get("status", "active")),
            tasks=[Task.from_dict(t) for t in data.get("tasks", [])],
            created_at=parse_ts(data["created_at"]),
        )


@dataclass
class Agent:
    """A registered worker process."""

    id: str
    type: str = "general"
    status: AgentStatus = AgentStatus.ACTIVE
    capabilities: list[str] = field(default_factory=list)
    registered_at: datetime = field(default_factory=utcnow)
    last_seen: datetime = field(default_factory=utcnow)

    def is_stale(self, stale_after_ms: int, now: datetime | None = None) -> bool:
        """Derived liveness flag; never persisted."""
        return age_ms(self.last_seen, now) > stale_after_ms

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "status": self.status.value,
            "capabilities": list(self.capabilities),
            "registered_at": isoformat(self.registered_at),
            "last_seen": isoformat(self.last_seen),
        }

    @classmethod
    def from_dict(cls, agent_id: str, data: dict[str, Any]) -> Agent:
        return cls(
            id=agent_id,
            type=data.get("type") or "general",
            status=AgentStatus(data.get("status", "active")),
            capabilities=list(data.get("capabilities") or []),
            registered_at=parse_ts(data["registered_at"]),
            last_seen=parse_ts(data["last_seen"]),
        )


@dataclass
class Lock:
    """A TTL-bounded lease over a named resource.

    Expiry is computed on read; expired entries stay on disk until they are
    released, overwritten by the next acquire, or purged.
    """

    resource: str
    agent: str
    acquired_at: datetime = field(default_factory=utcnow)
    ttl_ms: int = 60_000

    @property
    def expires_at(self) -> datetime:
        return self.acquired_at + timedelta(milliseconds=self.ttl_ms)

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent": self.agent,
            "acquired_at": isoformat(self.acquired_at),
            "ttl_ms": self.ttl_ms,
        }

    @classmethod
    def from_dict(cls, resource: str, data: dict[str, Any]) -> Lock:
        return cls(
            resource=resource,
            agent=data["agent"],
            acquired_at=parse_ts(data["acquired_at"]),
            ttl_ms=int(data.get("ttl_ms", 60_000)),
        )


@dataclass
class StateDocument:
    """The single shared root, rewritten wholesale on every mutation."""

    version: int = 0
    updated_at: datetime = field(default_factory=utcnow)
    workstreams: dict[str, Workstream] = field(default_factory=dict)
    agents: dict[str, Agent] = field(default_factory=dict)
    locks: dict[str, Lock] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "updated_at": isoformat(self.updated_at),
            "workstreams": {name: ws.to_dict() for name, ws in self.workstreams.items()},
            "agents": {agent_id: a.to_dict() for agent_id, a in self.agents.items()},
            "locks": {resource: lock.to_dict() for resource, lock in self.locks.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StateDocument:
        return cls(
            version=int(data.get("version", 0)),
            updated_at=parse_ts(data["updated_at"]) if data.get("updated_at") else utcnow(),
            workstreams={
                name: Workstream.from_dict(name, ws)
                for name, ws in (data.get("workstreams") or {}).items()
            },
            agents={
                agent_id: Agent.from_dict(agent_id, a)
                for agent_id, a in (data.get("agents") or {}).items()
            },
            locks={
                resource: Lock.from_dict(resource, lock)
                for resource, lock in (data.get("locks") or {}).items()
            },
        )


ENVELOPE_KEYS = ("ts", "agent", "action")


@dataclass
class Event:
    """A journal record: fixed envelope plus an action-specific payload.

    On disk the payload is flattened into the same JSON object as the
    envelope; payload keys that collide with the envelope are dropped.
    """

    agent: str
    action: str
    data: dict[str, Any] = field(default_factory=dict)
    ts: datetime = field(default_factory=utcnow)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "ts": isoformat(self.ts),
            "agent": self.agent,
            "action": self.action,
        }
        for key, value in self.data.items():
            if key not in ENVELOPE_KEYS:
                record[key] = value
        return record

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        return cls(
            ts=parse_ts(data["ts"]),
            agent=data["agent"],
            action=data["action"],
            data={k: v for k, v in data.items() if k not in ENVELOPE_KEYS},
        )
