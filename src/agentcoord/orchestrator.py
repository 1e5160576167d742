"""Orchestrator facade: the operations the CLI and HTTP layer call.

One Orchestrator wraps one Store; every component receives that store
explicitly, and nothing is cached between calls.

Example:
    orc = Orchestrator.from_config(load_config())
    orc.create_workstream("bounty", description="Bounty hunting", priority=1)
    task = orc.add_task("bounty", title="Research target", estimate="2h")
    orc.register_agent("agent-1", agent_type="research")
    orc.get_next_task("bounty", "agent-1")
    print(orc.status_text())
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from agentcoord.agents import AgentRegistry
from agentcoord.config.schema import DEFAULT_LOCK_TTL_MS, DEFAULT_STALE_AFTER_MS, Config
from agentcoord.journal import EventJournal
from agentcoord.knowledge import KnowledgeStore
from agentcoord.locks import LockManager
from agentcoord.state.schema import Agent, Event, StateDocument, Task, Workstream
from agentcoord.state.store import Store
from agentcoord.status import StatusAggregator
from agentcoord.workstreams import WorkstreamManager


class Orchestrator:
    """Entry point bundling every engine component over a single store."""

    def __init__(
        self,
        store: Store,
        *,
        stale_after_ms: int = DEFAULT_STALE_AFTER_MS,
        default_ttl_ms: int = DEFAULT_LOCK_TTL_MS,
        recent_events: int = 10,
    ) -> None:
        self.store = store
        self.journal = EventJournal(store)
        self.workstreams = WorkstreamManager(store)
        self.agents = AgentRegistry(store, stale_after_ms=stale_after_ms)
        self.locks = LockManager(store, default_ttl_ms=default_ttl_ms)
        self.knowledge = KnowledgeStore(store)
        self.status_aggregator = StatusAggregator(
            store=store,
            workstreams=self.workstreams,
            agents=self.agents,
            locks=self.locks,
            journal=self.journal,
            knowledge=self.knowledge,
            recent_events=recent_events,
        )

    @classmethod
    def from_config(cls, config: Config, data_dir: str | Path | None = None) -> Orchestrator:
        """Build an orchestrator from config; ``data_dir`` overrides the configured one."""
        store = Store(
            data_dir if data_dir is not None else config.store.data_dir,
            lock_timeout=config.store.lock_timeout,
        )
        return cls(
            store,
            stale_after_ms=config.agents.stale_after_ms,
            default_ttl_ms=config.locks.default_ttl_ms,
            recent_events=config.status.recent_events,
        )

    # --- State ---

    def load_state(self) -> StateDocument:
        return self.store.load()

    # --- Events ---

    def log_event(self, agent_id: str, action: str, data: dict[str, Any] | None = None) -> Event:
        return self.journal.log(agent_id, action, data)

    def get_events(
        self,
        agent: str | None = None,
        action: str | None = None,
        since: str | datetime | None = None,
        last: int | None = None,
    ) -> list[Event]:
        return self.journal.query(agent=agent, action=action, since=since, last=last)

    # --- Workstreams & tasks ---

    def create_workstream(
        self, name: str, description: str = "", priority: int | None = None
    ) -> Workstream:
        return self.workstreams.create_workstream(name, description=description, priority=priority)

    def list_workstreams(self) -> list[dict[str, Any]]:
        return self.workstreams.list_workstreams()

    def list_tasks(self, workstream: str) -> list[Task]:
        return self.workstreams.list_tasks(workstream)

    def add_task(
        self,
        workstream: str,
        title: str,
        description: str = "",
        priority: int | None = None,
        estimate: str | None = None,
    ) -> Task:
        return self.workstreams.add_task(
            workstream, title, description=description, priority=priority, estimate=estimate
        )

    def claim_task(self, workstream: str, task_id: str, agent_id: str) -> Task:
        return self.workstreams.claim_task(workstream, task_id, agent_id)

    def complete_task(self, workstream: str, task_id: str, result: Any = None) -> Task:
        return self.workstreams.complete_task(workstream, task_id, result)

    def get_next_task(self, workstream: str, agent_id: str) -> Task | None:
        return self.workstreams.get_next_task(workstream, agent_id)

    # --- Agents ---

    def register_agent(
        self,
        agent_id: str,
        agent_type: str | None = None,
        capabilities: list[str] | None = None,
    ) -> Agent:
        return self.agents.register_agent(agent_id, agent_type=agent_type, capabilities=capabilities)

    def heartbeat(self, agent_id: str) -> bool:
        return self.agents.heartbeat(agent_id)

    def list_agents(self) -> list[dict[str, Any]]:
        return self.agents.list_agents()

    # --- Locks ---

    def acquire_lock(self, resource: str, agent_id: str, ttl_ms: int | None = None) -> bool:
        return self.locks.acquire(resource, agent_id, ttl_ms)

    def release_lock(self, resource: str, agent_id: str) -> bool:
        return self.locks.release(resource, agent_id)

    def list_locks(self) -> list[dict[str, Any]]:
        return self.locks.list_locks()

    def purge_expired_locks(self) -> int:
        return self.locks.purge_expired()

    # --- Knowledge ---

    def write_knowledge(self, topic: str, content: str, agent_id: str = "system") -> str:
        return self.knowledge.write(topic, content, agent_id)

    def read_knowledge(self, topic: str) -> str | None:
        return self.knowledge.read(topic)

    def delete_knowledge(self, topic: str, agent_id: str = "system") -> bool:
        return self.knowledge.delete(topic, agent_id)

    def list_knowledge(self) -> list[str]:
        return self.knowledge.list_topics()

    # --- Status ---

    def status(self) -> dict[str, Any]:
        return self.status_aggregator.snapshot()

    def status_text(self) -> str:
        return self.status_aggregator.text()
