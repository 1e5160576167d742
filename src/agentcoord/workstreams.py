"""Workstream and task engine.

Task lifecycle: pending -> in_progress (claim) -> done (complete).
Completing does not require a prior claim; a pending task can be marked
done directly.
"""

from __future__ import annotations

from typing import Any

from agentcoord.errors import AlreadyExistsError, InvalidStateError, NotFoundError
from agentcoord.logging import get_logger
from agentcoord.state.schema import StateDocument, Task, TaskStatus, Workstream
from agentcoord.state.store import Store
from agentcoord.utils import new_task_id, utcnow

log = get_logger("workstreams")

DEFAULT_PRIORITY = 5


def _get_workstream(doc: StateDocument, name: str) -> Workstream:
    ws = doc.workstreams.get(name)
    if ws is None:
        raise NotFoundError(f'Workstream "{name}" not found')
    return ws


def _get_task(ws: Workstream, task_id: str) -> Task:
    task = ws.find_task(task_id)
    if task is None:
        raise NotFoundError(f'Task "{task_id}" not found')
    return task


class WorkstreamManager:
    """CRUD over workstreams and their ordered task lists."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def create_workstream(
        self,
        name: str,
        description: str = "",
        priority: int | None = None,
    ) -> Workstream:
        """Create a workstream.

        Raises:
            AlreadyExistsError: If ``name`` is already taken.
        """
        with self._store.transaction() as txn:
            if name in txn.doc.workstreams:
                raise AlreadyExistsError(f'Workstream "{name}" already exists')
            ws = Workstream(
                name=name,
                description=description or "",
                priority=DEFAULT_PRIORITY if priority is None else int(priority),
                created_at=utcnow(),
            )
            txn.doc.workstreams[name] = ws
            txn.log("system", "workstream_created", workstream=name)

        log.debug("Created workstream %s (P%d)", name, ws.priority)
        return ws

    def list_workstreams(self) -> list[dict[str, Any]]:
        """All workstreams with task counts, most urgent (lowest priority) first."""
        doc = self._store.load()
        summaries = [ws.summary() for ws in doc.workstreams.values()]
        return sorted(summaries, key=lambda s: s["priority"])

    def get_workstream(self, name: str) -> Workstream:
        return _get_workstream(self._store.load(), name)

    def list_tasks(self, workstream: str) -> list[Task]:
        """Tasks of a workstream in creation order."""
        return list(self.get_workstream(workstream).tasks)

    def add_task(
        self,
        workstream: str,
        title: str,
        description: str = "",
        priority: int | None = None,
        estimate: str | None = None,
    ) -> Task:
        """Append a new pending task to a workstream.

        Raises:
            NotFoundError: If the workstream does not exist.
        """
        if not title:
            raise ValueError("title is required")

        with self._store.transaction() as txn:
            ws = _get_workstream(txn.doc, workstream)
            now = utcnow()
            task = Task(
                id=new_task_id(),
                title=title,
                description=description or "",
                priority=DEFAULT_PRIORITY if priority is None else int(priority),
                estimate=estimate or None,
                created_at=now,
                updated_at=now,
            )
            ws.tasks.append(task)
            txn.log("system", "task_created", workstream=workstream, task_id=task.id, title=title)

        log.debug("Added task %s to %s", task.id, workstream)
        return task

    def claim_task(self, workstream: str, task_id: str, agent_id: str) -> Task:
        """Move a pending task to in_progress for ``agent_id``.

        Raises:
            NotFoundError: If the workstream or task does not exist.
            InvalidStateError: If the task is not pending.
        """
        with self._store.transaction() as txn:
            task = _get_task(_get_workstream(txn.doc, workstream), task_id)
            self._claim(task, agent_id)
            txn.log(agent_id, "task_claimed", workstream=workstream, task_id=task_id)

        log.debug("Task %s/%s claimed by %s", workstream, task_id, agent_id)
        return task

    @staticmethod
    def _claim(task: Task, agent_id: str) -> None:
        if task.status is not TaskStatus.PENDING:
            raise InvalidStateError(f'Task "{task.id}" is {task.status.value}, not pending')
        task.status = TaskStatus.IN_PROGRESS
        task.assigned_to = agent_id
        task.updated_at = utcnow()

    def complete_task(self, workstream: str, task_id: str, result: Any = None) -> Task:
        """Mark a task done and record its result, from any current status.

        The journal entry is attributed to the assignee, or "system" when
        the task was never claimed.

        Raises:
            NotFoundError: If the workstream or task does not exist.
        """
        with self._store.transaction() as txn:
            task = _get_task(_get_workstream(txn.doc, workstream), task_id)
            task.status = TaskStatus.DONE
            task.result = result
            task.updated_at = utcnow()
            txn.log(
                task.assigned_to or "system",
                "task_completed",
                workstream=workstream,
                task_id=task_id,
                result=result,
            )

        log.debug("Task %s/%s completed", workstream, task_id)
        return task

    def get_next_task(self, workstream: str, agent_id: str) -> Task | None:
        """Claim the most urgent pending task for ``agent_id``.

        Selection and claim happen in one transaction, so two callers can
        never be handed the same task.

        Returns:
            The claimed task, or None when nothing is pending.

        Raises:
            NotFoundError: If the workstream does not exist.
        """
        with self._store.transaction() as txn:
            task = _get_workstream(txn.doc, workstream).next_pending()
            if task is None:
                return None
            self._claim(task, agent_id)
            txn.log(agent_id, "task_claimed", workstream=workstream, task_id=task.id)

        log.debug("Next task %s/%s handed to %s", workstream, task.id, agent_id)
        return task
