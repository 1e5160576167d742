"""Knowledge store: free-text notes keyed by topic.

Each topic is ``knowledge/<topic>.md``. The first line of the file is an
HTML comment recording who last wrote it and when; it is part of the body
returned by ``read``.
"""

from __future__ import annotations

from pathlib import Path

from agentcoord.logging import get_logger
from agentcoord.state.schema import Event
from agentcoord.state.store import Store
from agentcoord.utils import now_iso

log = get_logger("knowledge")

SUFFIX = ".md"


def provenance_header(agent_id: str, timestamp: str) -> str:
    return f"<!-- Updated by {agent_id} at {timestamp} -->\n"


def _check_topic(topic: str) -> str:
    if not topic or topic in (".", "..") or "/" in topic or "\\" in topic or "\0" in topic:
        raise ValueError(f"Invalid knowledge topic: {topic!r}")
    return topic


class KnowledgeStore:
    """Read/write/list/delete topic documents under the store's data directory."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def _path(self, topic: str) -> Path:
        return self._store.knowledge_dir / f"{_check_topic(topic)}{SUFFIX}"

    def write(self, topic: str, content: str, agent_id: str = "system") -> str:
        """Overwrite ``topic`` with ``content`` behind a provenance header.

        Returns:
            The stored body, header included.
        """
        path = self._path(topic)
        body = provenance_header(agent_id, now_iso()) + content
        with self._store.locked():
            path.write_text(body, encoding="utf-8")
            self._store.append_event(Event(agent=agent_id, action="knowledge_written", data={"topic": topic}))
        log.debug("Knowledge %s written by %s", topic, agent_id)
        return body

    def read(self, topic: str) -> str | None:
        """Stored body including its header, or None if the topic is unknown."""
        path = self._path(topic)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def delete(self, topic: str, agent_id: str = "system") -> bool:
        """Remove ``topic``.

        Returns:
            True if it existed, False otherwise.
        """
        path = self._path(topic)
        with self._store.locked():
            if not path.exists():
                return False
            path.unlink()
            self._store.append_event(Event(agent=agent_id, action="knowledge_deleted", data={"topic": topic}))
        log.debug("Knowledge %s deleted by %s", topic, agent_id)
        return True

    def list_topics(self) -> list[str]:
        """Known topic names, sorted."""
        return sorted(p.name[: -len(SUFFIX)] for p in self._store.knowledge_dir.glob(f"*{SUFFIX}"))
