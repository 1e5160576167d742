"""Tests for the command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from agentcoord.cli import create_parser, format_event_line, run_cli
from agentcoord.orchestrator import Orchestrator
from agentcoord.state.store import Store


@pytest.fixture
def cli(data_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]):
    """Run the CLI against the test data directory and return (code, stdout, stderr)."""
    monkeypatch.chdir(tmp_path)

    def run(*args: str) -> tuple[int, str, str]:
        code = run_cli(["--data-dir", str(data_dir), *args])
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    return run


class TestParser:
    """Tests for argument parsing."""

    def test_aliases_map_to_groups(self) -> None:
        parser = create_parser()
        assert parser.parse_args(["ws", "list"]).group == "workstream"
        assert parser.parse_args(["t", "done", "w", "abc", "ok"]).action == "done"
        assert parser.parse_args(["knowledge", "ls"]).group == "kb"
        assert parser.parse_args(["e"]).last == 20

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc:
            create_parser().parse_args(["--version"])
        assert exc.value.code == 0
        assert "agentcoord" in capsys.readouterr().out

    def test_no_command_prints_help(self, cli) -> None:
        code, out, _ = cli()
        assert code == 1
        assert "usage:" in out


class TestCommands:
    """Tests for subcommands end to end."""

    def test_workstream_and_task_flow(self, cli, data_dir: Path) -> None:
        code, out, _ = cli("ws", "create", "bounty", "Bounty hunting", "1")
        assert code == 0
        assert "Created workstream: bounty" in out

        code, out, _ = cli("t", "add", "bounty", "Research target", "--estimate", "2h")
        assert code == 0
        assert out.startswith("Added task ")
        task_id = out.split()[2].rstrip(":")

        code, out, _ = cli("task", "claim", "bounty", task_id, "agent-1")
        assert "Claimed: Research target -> agent-1" in out

        code, out, _ = cli("t", "done", "bounty", task_id, "found 3")
        assert "Completed: Research target" in out

        [task] = Orchestrator(Store(data_dir)).list_tasks("bounty")
        assert task.status.value == "done"
        assert task.result == "found 3"

    def test_next_task(self, cli) -> None:
        cli("ws", "create", "bounty")
        code, out, _ = cli("t", "next", "bounty", "agent-1")
        assert "No pending tasks in this workstream." in out

        cli("t", "add", "bounty", "Research")
        code, out, _ = cli("t", "next", "bounty", "agent-1")
        assert "Claimed next task: " in out
        assert "Research" in out

    def test_errors_exit_nonzero(self, cli) -> None:
        cli("ws", "create", "bounty")
        code, _, err = cli("ws", "create", "bounty")
        assert code == 1
        assert err.startswith("Error: ")
        assert "already exists" in err

        code, _, err = cli("t", "claim", "nope", "deadbeef", "agent-1")
        assert code == 1
        assert "not found" in err

    def test_group_without_action_lists(self, cli) -> None:
        cli("ws", "create", "bounty")
        code, out, _ = cli("ws")
        assert code == 0
        assert "bounty" in out

    def test_agents(self, cli) -> None:
        code, out, _ = cli("a", "register", "agent-1", "research", "--capability", "git")
        assert "Registered agent: agent-1 (research)" in out
        assert "Heartbeat: agent-1" in cli("a", "heartbeat", "agent-1")[1]
        assert "Unknown agent: ghost" in cli("a", "heartbeat", "ghost")[1]
        assert "agent-1" in cli("a", "list")[1]

    def test_locks(self, cli) -> None:
        assert "Lock acquired: db" in cli("l", "acquire", "db", "a")[1]
        code, out, _ = cli("lock", "acquire", "db", "b")
        assert code == 0
        assert "Lock denied: db" in out
        assert "Lock not held by b" in cli("l", "release", "db", "b")[1]
        assert "Lock released: db" in cli("l", "release", "db", "a")[1]
        assert "No active locks." in cli("l", "list")[1]
        cli("l", "acquire", "tmp", "a", "--ttl", "0")
        assert "Purged 1 expired lock(s)" in cli("l", "purge")[1]

    def test_knowledge(self, cli) -> None:
        assert "Wrote knowledge: notes" in cli("kb", "write", "notes", "hello", "world", "--agent", "agent-1")[1]
        out = cli("kb", "read", "notes")[1]
        assert "<!-- Updated by agent-1 at " in out
        assert "hello world" in out
        assert cli("kb", "list")[1].strip() == "notes"
        assert '(no knowledge on "other")' in cli("kb", "read", "other")[1]
        assert "Deleted knowledge: notes" in cli("kb", "delete", "notes")[1]
        assert cli("kb", "list")[1].strip() == "(empty)"

    def test_events(self, cli) -> None:
        assert "No events." in cli("events")[1]
        cli("ws", "create", "bounty")
        cli("a", "register", "agent-1")
        out = cli("e", "--agent", "agent-1")[1]
        assert "agent-1: agent_registered {type=general}" in out
        assert "workstream_created" not in out

    def test_status(self, cli) -> None:
        cli("ws", "create", "bounty", "", "2")
        code, out, _ = cli("s")
        assert code == 0
        assert "=== Agent Coordination Status ===" in out
        assert "[P2] bounty: 0 pending, 0 active, 0 done" in out

    def test_plan_and_collect_are_json(self, cli) -> None:
        cli("ws", "create", "bounty")
        cli("t", "add", "bounty", "Research")

        plan = json.loads(cli("plan")[1])
        assert plan["workstreams"][0]["name"] == "bounty"
        assert plan["recommended_parallel"][0]["brief"].startswith("## Agent Brief: Research")

        collected = json.loads(cli("collect")[1])
        assert collected["completed_this_cycle"] == []

    def test_brief(self, cli) -> None:
        cli("ws", "create", "bounty")
        assert "No pending tasks" in cli("brief", "bounty")[1]
        cli("t", "add", "bounty", "Research")
        assert "## Agent Brief: Research" in cli("brief", "bounty")[1]
        assert cli("brief", "nope")[0] == 1


def test_format_event_line() -> None:
    line = format_event_line({
        "ts": "2026-01-17T10:30:05.123Z",
        "agent": "agent-1",
        "action": "lock_acquired",
        "resource": "db",
    })
    assert line == "[10:30:05] agent-1: lock_acquired {resource=db}"
