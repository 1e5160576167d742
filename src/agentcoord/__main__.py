"""CLI entry point for ``python -m agentcoord``."""

import sys

from agentcoord.cli import main

if __name__ == "__main__":
    sys.exit(main())
