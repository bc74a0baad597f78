"""Module entrypoint.

Allows:
    python -m mcp_event_rules_server
"""

from __future__ import annotations

from mcp_event_rules_server.server.spec_server import main

if __name__ == "__main__":
    main()
