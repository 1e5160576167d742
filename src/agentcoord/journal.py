"""Append-only event journal queries."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from agentcoord.state.schema import Event
from agentcoord.state.store import Store
from agentcoord.utils import parse_ts


class EventJournal:
    """Logs free-form events and filters the journal.

    Every query rescans the whole journal file.
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    def log(self, agent: str, action: str, data: dict[str, Any] | None = None) -> Event:
        """Append an event carrying ``data`` as its payload."""
        return self._store.append_event(Event(agent=agent, action=action, data=dict(data or {})))

    def query(
        self,
        agent: str | None = None,
        action: str | None = None,
        since: str | datetime | None = None,
        last: int | None = None,
    ) -> list[Event]:
        """Filter events conjunctively, then keep only the final ``last`` matches.

        Args:
            agent: Exact agent id to match.
            action: Exact action name to match.
            since: Keep events with ``ts >= since`` (ISO-8601 string or datetime).
            last: Keep only the last N matching events, in journal order.
        """
        events = self._store.read_events()

        if agent:
            events = [e for e in events if e.agent == agent]
        if action:
            events = [e for e in events if e.action == action]
        if since:
            threshold = parse_ts(since)
            events = [e for e in events if e.ts >= threshold]
        if last is not None and last > 0:
            events = events[-last:]

        return events
