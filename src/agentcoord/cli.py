"""Command-line interface for agentcoord."""

from __future__ import annotations

import argparse
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from agentcoord import __version__
from agentcoord.errors import OrchestratorError
from agentcoord.orchestrator import Orchestrator
from agentcoord.state.schema import ENVELOPE_KEYS

console = Console(highlight=False, markup=False, emoji=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, markup=False, emoji=False, soft_wrap=True)

DEFAULT_EVENTS_LAST = 20


def _add_group(
    subparsers: argparse._SubParsersAction,
    name: str,
    aliases: list[str],
    help_text: str,
) -> argparse._SubParsersAction:
    group = subparsers.add_parser(name, aliases=aliases, help=help_text)
    group.set_defaults(group=name, group_parser=group)
    return group.add_subparsers(dest="action", metavar="ACTION")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="agentcoord",
        description="Coordinate agents through a shared data directory",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be repeated)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Data directory (default: $AGENTCOORD_DIR or ./.agentcoord)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # Status
    status_parser = subparsers.add_parser("status", aliases=["s"], help="Show coordination status")
    status_parser.set_defaults(group="status")

    # Workstreams
    ws = _add_group(subparsers, "workstream", ["ws"], "Manage workstreams")
    ws_create = ws.add_parser("create", help="Create a workstream")
    ws_create.add_argument("name")
    ws_create.add_argument("description", nargs="?", default="")
    ws_create.add_argument("priority", nargs="?", type=int)
    ws.add_parser("list", aliases=["ls"], help="List workstreams by priority")

    # Tasks
    task = _add_group(subparsers, "task", ["t"], "Manage tasks")
    task_add = task.add_parser("add", help="Add a task to a workstream")
    task_add.add_argument("workstream")
    task_add.add_argument("title")
    task_add.add_argument("description", nargs="?", default="")
    task_add.add_argument("priority", nargs="?", type=int)
    task_add.add_argument("--estimate", help="Free-form effort estimate, e.g. 2h")
    task_list = task.add_parser("list", aliases=["ls"], help="List a workstream's tasks")
    task_list.add_argument("workstream")
    task_claim = task.add_parser("claim", help="Claim a pending task")
    task_claim.add_argument("workstream")
    task_claim.add_argument("task_id")
    task_claim.add_argument("agent")
    task_complete = task.add_parser("complete", aliases=["done"], help="Mark a task done")
    task_complete.add_argument("workstream")
    task_complete.add_argument("task_id")
    task_complete.add_argument("result", nargs="?")
    task_next = task.add_parser("next", help="Claim the most urgent pending task")
    task_next.add_argument("workstream")
    task_next.add_argument("agent")

    # Agents
    agent = _add_group(subparsers, "agent", ["a"], "Manage agents")
    agent_register = agent.add_parser("register", help="Register or re-register an agent")
    agent_register.add_argument("agent_id")
    agent_register.add_argument("type", nargs="?")
    agent_register.add_argument(
        "--capability",
        dest="capabilities",
        action="append",
        default=[],
        help="Capability tag (can be repeated)",
    )
    agent_heartbeat = agent.add_parser("heartbeat", help="Refresh an agent's last-seen time")
    agent_heartbeat.add_argument("agent_id")
    agent.add_parser("list", aliases=["ls"], help="List agents")

    # Locks
    lock = _add_group(subparsers, "lock", ["l"], "Manage resource locks")
    lock_acquire = lock.add_parser("acquire", help="Acquire or renew a lock")
    lock_acquire.add_argument("resource")
    lock_acquire.add_argument("agent")
    lock_acquire.add_argument("--ttl", type=int, help="Lifetime in milliseconds")
    lock_release = lock.add_parser("release", help="Release a held lock")
    lock_release.add_argument("resource")
    lock_release.add_argument("agent")
    lock.add_parser("list", aliases=["ls"], help="List unexpired locks")
    lock.add_parser("purge", help="Drop expired lock entries")

    # Knowledge
    kb = _add_group(subparsers, "kb", ["knowledge"], "Manage the knowledge base")
    kb_write = kb.add_parser("write", help="Write a topic")
    kb_write.add_argument("topic")
    kb_write.add_argument("content", nargs="+")
    kb_write.add_argument("--agent", default="cli")
    kb_read = kb.add_parser("read", help="Print a topic")
    kb_read.add_argument("topic")
    kb.add_parser("list", aliases=["ls"], help="List topics")
    kb_delete = kb.add_parser("delete", aliases=["rm"], help="Delete a topic")
    kb_delete.add_argument("topic")
    kb_delete.add_argument("--agent", default="cli")

    # Events
    events = subparsers.add_parser("events", aliases=["e"], help="Show journal events")
    events.set_defaults(group="events")
    events.add_argument("--last", type=int, default=DEFAULT_EVENTS_LAST)
    events.add_argument("--agent")
    events.add_argument("--action", dest="event_action")
    events.add_argument("--since", help="ISO-8601 timestamp")

    # Planner
    plan = subparsers.add_parser("plan", help="Print the next cycle's plan as JSON")
    plan.set_defaults(group="plan")
    brief = subparsers.add_parser("brief", help="Print a brief for a workstream's next task")
    brief.set_defaults(group="brief")
    brief.add_argument("workstream")
    collect = subparsers.add_parser("collect", help="Print finished and running work as JSON")
    collect.set_defaults(group="collect")

    # Server
    serve = subparsers.add_parser("serve", help="Run the HTTP API and dashboard")
    serve.set_defaults(group="serve")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)

    return parser


# =============================================================================
# Command handlers
# =============================================================================


def _cmd_status(orc: Orchestrator, args: argparse.Namespace) -> int:
    console.print(orc.status_text())
    return 0


def _cmd_workstream(orc: Orchestrator, args: argparse.Namespace) -> int:
    if args.action == "create":
        orc.create_workstream(args.name, description=args.description, priority=args.priority)
        console.print(f"Created workstream: {args.name}")
        return 0

    workstreams = orc.list_workstreams()
    if not workstreams:
        console.print("No workstreams.")
        return 0
    table = Table(title="Workstreams")
    table.add_column("P", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Pending", justify="right")
    table.add_column("Active", justify="right")
    table.add_column("Done", justify="right")
    table.add_column("Description")
    for ws in workstreams:
        table.add_row(
            str(ws["priority"]),
            ws["name"],
            str(ws["pending"]),
            str(ws["in_progress"]),
            str(ws["done"]),
            ws["description"] or "-",
        )
    console.print(table)
    return 0


def _cmd_task(orc: Orchestrator, args: argparse.Namespace) -> int:
    if args.action == "add":
        task = orc.add_task(
            args.workstream,
            args.title,
            description=args.description,
            priority=args.priority,
            estimate=args.estimate,
        )
        console.print(f"Added task {task.id}: {task.title}")
    elif args.action == "claim":
        task = orc.claim_task(args.workstream, args.task_id, args.agent)
        console.print(f"Claimed: {task.title} -> {args.agent}")
    elif args.action in ("complete", "done"):
        task = orc.complete_task(args.workstream, args.task_id, args.result)
        console.print(f"Completed: {task.title}")
    elif args.action == "next":
        task = orc.get_next_task(args.workstream, args.agent)
        if task is None:
            console.print("No pending tasks in this workstream.")
        else:
            console.print(f"Claimed next task: {task.id} - {task.title}")
    else:
        tasks = orc.list_tasks(args.workstream)
        if not tasks:
            console.print("No tasks.")
            return 0
        table = Table(title=f"Tasks: {args.workstream}")
        table.add_column("ID", style="bold")
        table.add_column("Status")
        table.add_column("P", justify="right")
        table.add_column("Title")
        table.add_column("Assigned")
        for t in tasks:
            table.add_row(t.id, t.status.value, str(t.priority), t.title, t.assigned_to or "-")
        console.print(table)
    return 0


def _cmd_agent(orc: Orchestrator, args: argparse.Namespace) -> int:
    if args.action == "register":
        agent = orc.register_agent(args.agent_id, agent_type=args.type, capabilities=args.capabilities)
        console.print(f"Registered agent: {agent.id} ({agent.type})")
    elif args.action == "heartbeat":
        if orc.heartbeat(args.agent_id):
            console.print(f"Heartbeat: {args.agent_id}")
        else:
            console.print(f"Unknown agent: {args.agent_id}")
    else:
        agents = orc.list_agents()
        if not agents:
            console.print("No agents registered.")
            return 0
        table = Table(title="Agents")
        table.add_column("ID", style="bold")
        table.add_column("Type")
        table.add_column("Status")
        table.add_column("Last seen")
        for a in agents:
            status = f"{a['status']} (stale)" if a["stale"] else a["status"]
            table.add_row(a["id"], a["type"], status, a["last_seen"])
        console.print(table)
    return 0


def _cmd_lock(orc: Orchestrator, args: argparse.Namespace) -> int:
    if args.action == "acquire":
        if orc.acquire_lock(args.resource, args.agent, args.ttl):
            console.print(f"Lock acquired: {args.resource}")
        else:
            console.print(f"Lock denied: {args.resource} (held by another agent)")
        return 0
    if args.action == "release":
        if orc.release_lock(args.resource, args.agent):
            console.print(f"Lock released: {args.resource}")
        else:
            console.print(f"Lock not held by {args.agent}")
        return 0
    if args.action == "purge":
        console.print(f"Purged {orc.purge_expired_locks()} expired lock(s)")
        return 0

    locks = orc.list_locks()
    if not locks:
        console.print("No active locks.")
        return 0
    table = Table(title="Active Locks")
    table.add_column("Resource", style="bold")
    table.add_column("Agent")
    table.add_column("Expires")
    for lk in locks:
        table.add_row(lk["resource"], lk["agent"], lk["expires_at"])
    console.print(table)
    return 0


def _cmd_kb(orc: Orchestrator, args: argparse.Namespace) -> int:
    if args.action == "write":
        orc.write_knowledge(args.topic, " ".join(args.content), args.agent)
        console.print(f"Wrote knowledge: {args.topic}")
    elif args.action == "read":
        content = orc.read_knowledge(args.topic)
        console.print(content if content is not None else f'(no knowledge on "{args.topic}")')
    elif args.action in ("delete", "rm"):
        if orc.delete_knowledge(args.topic, args.agent):
            console.print(f"Deleted knowledge: {args.topic}")
        else:
            console.print(f'(no knowledge on "{args.topic}")')
    else:
        topics = orc.list_knowledge()
        console.print("\n".join(topics) if topics else "(empty)")
    return 0


def format_event_line(event: dict[str, Any]) -> str:
    """One journal record as ``[HH:MM:SS] agent: action {k=v, ...}``."""
    time = event["ts"].split("T")[1].split(".")[0]
    extra = [f"{k}={v}" for k, v in event.items() if k not in ENVELOPE_KEYS]
    extra_str = f" {{{', '.join(extra)}}}" if extra else ""
    return f"[{time}] {event['agent']}: {event['action']}{extra_str}"


def _cmd_events(orc: Orchestrator, args: argparse.Namespace) -> int:
    events = orc.get_events(
        agent=args.agent,
        action=args.event_action,
        since=args.since,
        last=args.last,
    )
    for event in events:
        console.print(format_event_line(event.to_dict()))
    if not events:
        console.print("No events.")
    return 0


def _cmd_plan(orc: Orchestrator, args: argparse.Namespace) -> int:
    from agentcoord.planner import generate_plan

    console.print_json(data=generate_plan(orc))
    return 0


def _cmd_brief(orc: Orchestrator, args: argparse.Namespace) -> int:
    from agentcoord.planner import brief_for_workstream

    brief = brief_for_workstream(orc, args.workstream)
    console.print(brief if brief is not None else "No pending tasks in this workstream.")
    return 0


def _cmd_collect(orc: Orchestrator, args: argparse.Namespace) -> int:
    from agentcoord.planner import collect_results

    console.print_json(data=collect_results(orc))
    return 0


_HANDLERS: dict[str, Callable[[Orchestrator, argparse.Namespace], int]] = {
    "status": _cmd_status,
    "workstream": _cmd_workstream,
    "task": _cmd_task,
    "agent": _cmd_agent,
    "lock": _cmd_lock,
    "kb": _cmd_kb,
    "events": _cmd_events,
    "plan": _cmd_plan,
    "brief": _cmd_brief,
    "collect": _cmd_collect,
}

# Groups whose default action (no ACTION given) is "list"
_LIST_GROUPS = {"workstream", "agent", "lock", "kb"}


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    group = getattr(parsed, "group", None)
    if group is None:
        parser.print_help()
        return 1
    if getattr(parsed, "action", "") is None:
        if group not in _LIST_GROUPS:
            parsed.group_parser.print_help()
            return 1
        parsed.action = "list"

    # Load config
    from agentcoord.config import load_config
    from agentcoord.logging import setup_logging

    config = load_config(project_root=Path.cwd())
    if parsed.verbose:
        config.logging.verbose = min(2 + parsed.verbose, 4)
    setup_logging(config.logging)

    orc = Orchestrator.from_config(config, data_dir=parsed.data_dir)

    if group == "serve":
        from agentcoord.server.server import run_server

        run_server(
            orc,
            host=parsed.host or config.server.host,
            port=parsed.port or config.server.port,
        )
        return 0

    try:
        return _HANDLERS[group](orc, parsed)
    except (OrchestratorError, ValueError) as e:
        err_console.print(f"Error: {e}")
        return 1


def main() -> int:
    """Console-script entry point."""
    import sys

    return run_cli(sys.argv[1:])
