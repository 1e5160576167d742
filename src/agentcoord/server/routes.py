"""FastAPI routes for the HTTP API and dashboard page.

Handlers are plain ``def`` functions, so FastAPI runs them in its
threadpool; the store's file lock serializes their mutations.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from agentcoord import __version__
from agentcoord.errors import (
    AlreadyExistsError,
    InvalidStateError,
    NotFoundError,
    OrchestratorError,
)
from agentcoord.logging import get_logger
from agentcoord.orchestrator import Orchestrator
from agentcoord.server.server import get_static_dir

log = get_logger("server")


class WorkstreamCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    priority: int | None = None


class TaskCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    priority: int | None = None
    estimate: str | None = None


class AgentRef(BaseModel):
    agent: str = Field(min_length=1)


class TaskComplete(BaseModel):
    result: Any = None


class AgentRegister(BaseModel):
    id: str = Field(min_length=1)
    type: str | None = None
    capabilities: list[str] = Field(default_factory=list)


class KnowledgeWrite(BaseModel):
    content: str = Field(min_length=1)
    agent: str = "api"


class LockAcquire(BaseModel):
    resource: str = Field(min_length=1)
    agent: str = Field(min_length=1)
    ttl: int | None = Field(default=None, ge=0)


_ERROR_STATUS: list[tuple[type[Exception], int]] = [
    (NotFoundError, 404),
    (AlreadyExistsError, 409),
    (InvalidStateError, 409),
    (ValueError, 400),
]


def create_app(orc: Orchestrator) -> FastAPI:
    """Create and configure the FastAPI application around one orchestrator."""
    app = FastAPI(
        title="agentcoord",
        description="Shared task boards, leases, notes and events for cooperating agents",
        version=__version__,
    )
    app.state.orchestrator = orc

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    static_dir = get_static_dir()
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    _register_error_handlers(app)
    _register_routes(app, orc)
    return app


def _register_error_handlers(app: FastAPI) -> None:
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        for exc_type, status_code in _ERROR_STATUS:
            if isinstance(exc, exc_type):
                return JSONResponse({"error": str(exc)}, status_code=status_code)
        log.error("Unhandled engine error on %s: %s", request.url.path, exc)
        return JSONResponse({"error": str(exc)}, status_code=500)

    app.add_exception_handler(OrchestratorError, handle)
    app.add_exception_handler(ValueError, handle)


def _register_routes(app: FastAPI, orc: Orchestrator) -> None:
    """Register all API routes."""

    @app.get("/", response_model=None)
    def index() -> FileResponse:
        """Serve the dashboard HTML page."""
        index_path = get_static_dir() / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Dashboard not found")
        return FileResponse(index_path)

    # --- Status ---

    @app.get("/api/status")
    def api_status() -> dict[str, Any]:
        return orc.status()

    @app.get("/api/status/text", response_class=PlainTextResponse)
    def api_status_text() -> str:
        return orc.status_text()

    # --- Workstreams & tasks ---

    @app.get("/api/workstreams")
    def api_list_workstreams() -> list[dict[str, Any]]:
        return orc.list_workstreams()

    @app.post("/api/workstreams", status_code=201)
    def api_create_workstream(body: WorkstreamCreate) -> dict[str, Any]:
        ws = orc.create_workstream(body.name, description=body.description, priority=body.priority)
        return ws.to_dict()

    @app.get("/api/workstreams/{workstream}/tasks")
    def api_list_tasks(workstream: str) -> list[dict[str, Any]]:
        return [t.to_dict() for t in orc.list_tasks(workstream)]

    @app.post("/api/workstreams/{workstream}/tasks", status_code=201)
    def api_add_task(workstream: str, body: TaskCreate) -> dict[str, Any]:
        task = orc.add_task(
            workstream,
            body.title,
            description=body.description,
            priority=body.priority,
            estimate=body.estimate,
        )
        return task.to_dict()

    @app.post("/api/workstreams/{workstream}/tasks/{task_id}/claim")
    def api_claim_task(workstream: str, task_id: str, body: AgentRef) -> dict[str, Any]:
        return orc.claim_task(workstream, task_id, body.agent).to_dict()

    @app.post("/api/workstreams/{workstream}/tasks/{task_id}/complete")
    def api_complete_task(
        workstream: str,
        task_id: str,
        body: TaskComplete | None = None,
    ) -> dict[str, Any]:
        result = body.result if body is not None else None
        return orc.complete_task(workstream, task_id, result).to_dict()

    @app.post("/api/workstreams/{workstream}/next")
    def api_next_task(workstream: str, body: AgentRef) -> dict[str, Any]:
        task = orc.get_next_task(workstream, body.agent)
        if task is None:
            return {"message": "No pending tasks"}
        return task.to_dict()

    # --- Agents ---

    @app.get("/api/agents")
    def api_list_agents() -> list[dict[str, Any]]:
        return orc.list_agents()

    @app.post("/api/agents", status_code=201)
    def api_register_agent(body: AgentRegister) -> dict[str, Any]:
        agent = orc.register_agent(body.id, agent_type=body.type, capabilities=body.capabilities)
        return {"id": agent.id, **agent.to_dict()}

    @app.post("/api/agents/{agent_id}/heartbeat")
    def api_heartbeat(agent_id: str) -> dict[str, Any]:
        return {"ok": True, "known": orc.heartbeat(agent_id)}

    # --- Events ---

    @app.get("/api/events")
    def api_events(
        agent: str | None = None,
        action: str | None = None,
        since: str | None = None,
        last: int | None = None,
    ) -> list[dict[str, Any]]:
        events = orc.get_events(agent=agent, action=action, since=since, last=last)
        return [e.to_dict() for e in events]

    # --- Knowledge ---

    @app.get("/api/knowledge")
    def api_list_knowledge() -> list[str]:
        return orc.list_knowledge()

    @app.get("/api/knowledge/{topic}")
    def api_read_knowledge(topic: str) -> dict[str, Any]:
        content = orc.read_knowledge(topic)
        if content is None:
            raise HTTPException(status_code=404, detail=f'Topic "{topic}" not found')
        return {"topic": topic, "content": content}

    @app.put("/api/knowledge/{topic}")
    def api_write_knowledge(topic: str, body: KnowledgeWrite) -> dict[str, Any]:
        orc.write_knowledge(topic, body.content, body.agent)
        return {"ok": True}

    @app.delete("/api/knowledge/{topic}")
    def api_delete_knowledge(topic: str, agent: str = "api") -> dict[str, Any]:
        return {"deleted": orc.delete_knowledge(topic, agent)}

    # --- Locks ---

    @app.get("/api/locks")
    def api_list_locks() -> list[dict[str, Any]]:
        return orc.list_locks()

    @app.post("/api/locks", response_model=None)
    def api_acquire_lock(body: LockAcquire) -> JSONResponse:
        acquired = orc.acquire_lock(body.resource, body.agent, body.ttl)
        return JSONResponse({"acquired": acquired}, status_code=200 if acquired else 409)

    @app.delete("/api/locks/{resource}")
    def api_release_lock(resource: str, body: AgentRef) -> dict[str, Any]:
        return {"released": orc.release_lock(resource, body.agent)}
