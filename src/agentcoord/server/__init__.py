"""HTTP API and web dashboard over a shared data directory.

Usage:
    agentcoord serve [--host HOST] [--port PORT]

The dashboard at ``/`` polls ``/api/status`` and renders it.
"""

from agentcoord.server.routes import create_app
from agentcoord.server.server import get_static_dir, run_server

__all__ = [
    "create_app",
    "get_static_dir",
    "run_server",
]
