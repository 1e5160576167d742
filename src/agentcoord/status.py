"""Read-only status snapshot and its plain-text rendering.

The snapshot is composed from several independent reads, so a mutation
landing between them can show up in one section and not another.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from agentcoord.utils import isoformat, parse_ts

if TYPE_CHECKING:
    from agentcoord.agents import AgentRegistry
    from agentcoord.journal import EventJournal
    from agentcoord.knowledge import KnowledgeStore
    from agentcoord.locks import LockManager
    from agentcoord.state.store import Store
    from agentcoord.workstreams import WorkstreamManager


class StatusAggregator:
    """Composes every component's view into one JSON-serializable dict."""

    def __init__(
        self,
        *,
        store: Store,
        workstreams: WorkstreamManager,
        agents: AgentRegistry,
        locks: LockManager,
        journal: EventJournal,
        knowledge: KnowledgeStore,
        recent_events: int = 10,
    ) -> None:
        self._store = store
        self._workstreams = workstreams
        self._agents = agents
        self._locks = locks
        self._journal = journal
        self._knowledge = knowledge
        self._recent_events = recent_events

    def snapshot(self) -> dict[str, Any]:
        doc = self._store.load()
        return {
            "version": doc.version,
            "updated_at": isoformat(doc.updated_at),
            "workstreams": self._workstreams.list_workstreams(),
            "agents": self._agents.list_agents(),
            "active_locks": self._locks.list_locks(),
            "recent_events": [e.to_dict() for e in self._journal.query(last=self._recent_events)],
            "knowledge_topics": self._knowledge.list_topics(),
        }

    def text(self) -> str:
        return render_status_text(self.snapshot())


def _clock(ts: str) -> str:
    return parse_ts(ts).strftime("%H:%M:%S")


def render_status_text(status: dict[str, Any]) -> str:
    """Human-readable multi-section report of a snapshot."""
    lines: list[str] = []

    lines.append("=== Agent Coordination Status ===")
    lines.append(f"State version: {status['version']} | Updated: {status['updated_at']}")
    lines.append("")

    lines.append("--- Workstreams ---")
    for ws in status["workstreams"]:
        lines.append(
            f"[P{ws['priority']}] {ws['name']}: {ws['pending']} pending, "
            f"{ws['in_progress']} active, {ws['done']} done"
        )
    if not status["workstreams"]:
        lines.append("(none)")
    lines.append("")

    lines.append("--- Agents ---")
    for agent in status["agents"]:
        stale = " [STALE]" if agent["stale"] else ""
        lines.append(f"{agent['id']} ({agent['type']}): {agent['status']}{stale}")
    if not status["agents"]:
        lines.append("(none registered)")
    lines.append("")

    lines.append("--- Active Locks ---")
    for lock in status["active_locks"]:
        lines.append(f"{lock['resource']}: held by {lock['agent']}")
    if not status["active_locks"]:
        lines.append("(none)")
    lines.append("")

    lines.append("--- Recent Events ---")
    for event in status["recent_events"]:
        lines.append(f"[{_clock(event['ts'])}] {event['agent']}: {event['action']}")
    lines.append("")

    lines.append("--- Knowledge Base ---")
    lines.append(", ".join(status["knowledge_topics"]) or "(empty)")

    return "\n".join(lines)
