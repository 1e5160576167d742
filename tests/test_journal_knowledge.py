"""Tests for the event journal and the knowledge store."""

from __future__ import annotations

from datetime import timedelta

import pytest

from agentcoord.orchestrator import Orchestrator
from agentcoord.utils import isoformat, utcnow


class TestEventJournal:
    """Tests for logging and querying events."""

    def test_log_event_payload(self, orc: Orchestrator) -> None:
        orc.log_event("a", "x", {"k": 1})
        [event] = orc.get_events()
        assert event.agent == "a"
        assert event.action == "x"
        assert event.get("k") == 1
        assert event.to_dict()["k"] == 1

    def test_journal_line_is_flat(self, orc: Orchestrator) -> None:
        orc.log_event("a", "x", {"k": 1})
        line = orc.store.events_path.read_text(encoding="utf-8").strip()
        assert '"k": 1' in line
        assert '"data"' not in line

    def test_last_keeps_final_events_in_order(self, orc: Orchestrator) -> None:
        for i in range(5):
            orc.log_event("a", "tick", {"i": i})
        assert [e.get("i") for e in orc.get_events(last=3)] == [2, 3, 4]

    def test_last_zero_means_all(self, orc: Orchestrator) -> None:
        for i in range(4):
            orc.log_event("a", "tick", {"i": i})
        assert len(orc.get_events(last=0)) == 4

    def test_filters_are_conjunctive(self, orc: Orchestrator) -> None:
        orc.log_event("a", "x")
        orc.log_event("b", "x")
        orc.log_event("a", "y")
        events = orc.get_events(agent="a", action="x")
        assert [(e.agent, e.action) for e in events] == [("a", "x")]

    def test_last_applies_after_filters(self, orc: Orchestrator) -> None:
        orc.log_event("a", "x", {"i": 1})
        orc.log_event("b", "x", {"i": 2})
        orc.log_event("a", "x", {"i": 3})
        orc.log_event("b", "x", {"i": 4})
        assert [e.get("i") for e in orc.get_events(agent="a", last=1)] == [3]

    def test_since(self, orc: Orchestrator) -> None:
        orc.log_event("a", "x")
        past = isoformat(utcnow() - timedelta(hours=1))
        future = isoformat(utcnow() + timedelta(hours=1))
        assert len(orc.get_events(since=past)) == 1
        assert orc.get_events(since=future) == []

    def test_reads_do_not_mutate(self, orc: Orchestrator) -> None:
        orc.log_event("a", "x")
        assert [e.to_dict() for e in orc.get_events()] == [e.to_dict() for e in orc.get_events()]
        assert orc.load_state().version == 0


class TestKnowledgeStore:
    """Tests for topic documents."""

    def test_write_and_read(self, orc: Orchestrator) -> None:
        body = orc.write_knowledge("targets", "hello", "agent-1")
        assert body.startswith("<!-- Updated by agent-1 at ")
        assert body.endswith("-->\nhello")
        assert orc.read_knowledge("targets") == body

    def test_overwrite(self, orc: Orchestrator) -> None:
        orc.write_knowledge("targets", "first")
        orc.write_knowledge("targets", "second")
        content = orc.read_knowledge("targets")
        assert content.endswith("second")
        assert "first" not in content

    def test_read_absent(self, orc: Orchestrator) -> None:
        assert orc.read_knowledge("nope") is None

    def test_list_sorted(self, orc: Orchestrator) -> None:
        orc.write_knowledge("zeta", "z")
        orc.write_knowledge("alpha", "a")
        assert orc.list_knowledge() == ["alpha", "zeta"]

    def test_delete(self, orc: Orchestrator) -> None:
        orc.write_knowledge("targets", "hello")
        assert orc.delete_knowledge("targets", "agent-1") is True
        assert orc.read_knowledge("targets") is None
        assert orc.delete_knowledge("targets") is False

    def test_delete_journaled(self, orc: Orchestrator) -> None:
        orc.write_knowledge("targets", "hello")
        orc.delete_knowledge("targets", "agent-1")
        [event] = orc.get_events(action="knowledge_deleted")
        assert event.agent == "agent-1"
        assert event.get("topic") == "targets"

    def test_write_journaled_without_touching_state(self, orc: Orchestrator) -> None:
        orc.write_knowledge("targets", "hello", "agent-1")
        [event] = orc.get_events(action="knowledge_written")
        assert event.agent == "agent-1"
        assert event.get("topic") == "targets"
        assert orc.load_state().version == 0

    @pytest.mark.parametrize("topic", ["", ".", "..", "a/b", "..\\x"])
    def test_rejects_unsafe_topics(self, orc: Orchestrator, topic: str) -> None:
        with pytest.raises(ValueError):
            orc.write_knowledge(topic, "content")
