"""HTTP server lifecycle."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from agentcoord.logging import get_logger

if TYPE_CHECKING:
    from agentcoord.orchestrator import Orchestrator

log = get_logger("server")


def get_static_dir() -> Path:
    """Get the path to the static files directory."""
    return Path(__file__).parent / "static"


def run_server(orc: Orchestrator, host: str = "127.0.0.1", port: int = 4000) -> None:
    """Serve the HTTP API and dashboard until interrupted.

    Args:
        orc: Orchestrator every request is answered from
        host: Interface to bind
        port: Port to listen on
    """
    # Import here to keep CLI startup light
    import uvicorn

    from agentcoord.server.routes import create_app

    app = create_app(orc)

    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="warning",
        access_log=False,
    )
    server = uvicorn.Server(config)

    log.info("Coordination server on http://%s:%d (data: %s)", host, port, orc.store.data_dir)
    server.run()
