"""Agent registry: registration, heartbeats and staleness."""

from __future__ import annotations

from typing import Any

from agentcoord.config.schema import DEFAULT_STALE_AFTER_MS
from agentcoord.logging import get_logger
from agentcoord.state.schema import Agent, AgentStatus
from agentcoord.state.store import Store
from agentcoord.utils import utcnow

log = get_logger("agents")


class AgentRegistry:
    """Tracks registered agents and when each was last heard from."""

    def __init__(self, store: Store, stale_after_ms: int = DEFAULT_STALE_AFTER_MS) -> None:
        """Initialize the registry.

        Args:
            store: Shared store.
            stale_after_ms: Heartbeat age beyond which an agent is reported stale.
        """
        self._store = store
        self._stale_after_ms = stale_after_ms

    @property
    def stale_after_ms(self) -> int:
        return self._stale_after_ms

    def register_agent(
        self,
        agent_id: str,
        agent_type: str | None = None,
        capabilities: list[str] | None = None,
    ) -> Agent:
        """Create or replace the agent record. Re-registering after a restart is normal."""
        now = utcnow()
        agent = Agent(
            id=agent_id,
            type=agent_type or "general",
            status=AgentStatus.ACTIVE,
            capabilities=list(capabilities or []),
            registered_at=now,
            last_seen=now,
        )

        with self._store.transaction() as txn:
            txn.doc.agents[agent_id] = agent
            txn.log(agent_id, "agent_registered", type=agent.type)

        log.debug("Registered agent %s (%s)", agent_id, agent.type)
        return agent

    def heartbeat(self, agent_id: str) -> bool:
        """Refresh ``last_seen`` for a registered agent.

        Returns:
            True if the agent exists, False (no-op) otherwise.
        """
        with self._store.transaction() as txn:
            agent = txn.doc.agents.get(agent_id)
            if agent is None:
                log.debug("Heartbeat from unregistered agent %s ignored", agent_id)
                return False
            agent.last_seen = utcnow()
            agent.status = AgentStatus.ACTIVE
            # last_seen is stored at millisecond precision and may not change
            txn.touch()
        return True

    def get_agent(self, agent_id: str) -> Agent | None:
        return self._store.load().agents.get(agent_id)

    def list_agents(self) -> list[dict[str, Any]]:
        """All agents with a derived ``stale`` flag."""
        now = utcnow()
        return [
            {
                "id": agent.id,
                **agent.to_dict(),
                "stale": agent.is_stale(self._stale_after_ms, now),
            }
            for agent in self._store.load().agents.values()
        ]
