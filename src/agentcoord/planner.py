"""Cycle planning on top of the task board.

Picks the most urgent pending task per workstream, writes a markdown brief
for the agent that will take it, and summarizes what finished. Everything
here is read-only; claiming stays with the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from agentcoord.state.schema import Task, TaskStatus
from agentcoord.utils import isoformat, now_iso

if TYPE_CHECKING:
    from agentcoord.orchestrator import Orchestrator

CLI_NAME = "agentcoord"
_SERIAL_KEYWORDS = ("git", "commit")


def generate_plan(orc: Orchestrator) -> dict[str, Any]:
    """Next task and brief for every workstream that still has work."""
    plan: dict[str, Any] = {
        "generated_at": now_iso(),
        "workstreams": [],
        "recommended_parallel": [],
        "recommended_serial": [],
    }

    doc = orc.load_state()
    for summary in orc.list_workstreams():
        if summary["pending"] == 0 and summary["in_progress"] == 0:
            continue

        ws = doc.workstreams[summary["name"]]
        next_task = ws.next_pending()

        plan["workstreams"].append({
            "name": ws.name,
            "priority": ws.priority,
            "next_task": next_task.to_dict() if next_task else None,
            "pending_count": summary["pending"],
        })

        if next_task:
            plan["recommended_parallel"].append({
                "workstream": ws.name,
                "task": next_task.to_dict(),
                "brief": generate_brief(orc, ws.name, next_task),
            })

    # Tasks that all touch the shared repository should not run side by side
    repo_tasks = [
        p for p in plan["recommended_parallel"]
        if any(word in p["brief"].lower() for word in _SERIAL_KEYWORDS)
    ]
    if len(repo_tasks) > 1:
        plan["recommended_serial"].append({
            "reason": "Multiple tasks need git access",
            "tasks": [f"{p['workstream']}/{p['task']['id']}" for p in repo_tasks],
        })

    return plan


def _relevant_knowledge(orc: Orchestrator, workstream: str, task: Task) -> list[tuple[str, str]]:
    words = task.title.lower().split()
    keywords = [workstream.lower()] + words[:1]
    found: list[tuple[str, str]] = []
    for topic in orc.list_knowledge():
        content = orc.read_knowledge(topic)
        if content and any(k in content.lower() for k in keywords):
            found.append((topic, content))
    return found


def generate_brief(orc: Orchestrator, workstream: str, task: Task) -> str:
    """Markdown brief handed to the agent that picks up ``task``."""
    lines = [
        f"## Agent Brief: {task.title}",
        "",
        f"**Workstream**: {workstream}",
        f"**Task ID**: {task.id}",
        f"**Priority**: {task.priority}",
        f"**Description**: {task.description or task.title}",
        "",
    ]

    knowledge = _relevant_knowledge(orc, workstream, task)
    if knowledge:
        lines.append("### Relevant Knowledge")
        for topic, content in knowledge:
            lines.extend(["", f"#### {topic}", content])
        lines.append("")

    events = orc.get_events(last=5)
    if events:
        lines.append("### Recent System Events")
        for event in events:
            lines.append(f"- {isoformat(event.ts)}: {event.agent} {event.action}")
        lines.append("")

    lines.extend([
        "### Instructions",
        "1. Complete the task described above",
        "2. Write any findings to the knowledge base using:",
        f'   {CLI_NAME} kb write <topic> "<content>"',
        "3. Mark the task complete when done:",
        f'   {CLI_NAME} task complete {workstream} {task.id} "<result>"',
    ])

    return "\n".join(lines) + "\n"


def brief_for_workstream(orc: Orchestrator, workstream: str) -> str | None:
    """Brief for the first pending task in creation order, or None if idle.

    Raises:
        NotFoundError: If the workstream does not exist.
    """
    ws = orc.workstreams.get_workstream(workstream)
    for task in ws.tasks:
        if task.status is TaskStatus.PENDING:
            return generate_brief(orc, workstream, task)
    return None


def collect_results(orc: Orchestrator) -> dict[str, Any]:
    """Done and in-progress tasks across all workstreams."""
    summary: dict[str, Any] = {
        "collected_at": now_iso(),
        "completed_this_cycle": [],
        "still_in_progress": [],
        "knowledge_updates": orc.list_knowledge(),
    }

    for name, ws in orc.load_state().workstreams.items():
        for task in ws.tasks:
            if task.status is TaskStatus.DONE:
                summary["completed_this_cycle"].append({
                    "workstream": name,
                    "task_id": task.id,
                    "title": task.title,
                    "result": task.result,
                })
            elif task.status is TaskStatus.IN_PROGRESS:
                summary["still_in_progress"].append({
                    "workstream": name,
                    "task_id": task.id,
                    "title": task.title,
                    "assigned_to": task.assigned_to,
                })

    return summary
