"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: decode, diagnose and aggregate actions
- Resources: decoded blob files and server metadata via URI
- Prompts: reusable conversation templates that clients can invoke

Run locally (stdio):
    python -m mcp_event_rules_server.server.spec_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_event_rules_server.prompts.registry import register_prompts
from mcp_event_rules_server.resources.registry import register_resources
from mcp_event_rules_server.tools.aggregate import aggregate_fragments_impl
from mcp_event_rules_server.tools.decode import decode_event_rules_impl, diagnose_blob_impl

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; stdout carries the stdio transport.
    """
    level_name = os.getenv("ER_SPEC_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


mcp = FastMCP("event-rules", json_response=True)

register_resources(mcp)
register_prompts(mcp)


@mcp.tool()
def decode_event_rules(
    hex_data: str | None = None,
    base64_data: str | None = None,
    blob_path: str | None = None,
    event_spec_key: str | None = None,
    fallback_sequence: int = 0,
    limit: int | None = None,
) -> dict[str, Any]:
    """Decode an event-rules spec blob into readable lines.

    Parameters
    ----------
    hex_data / base64_data / blob_path:
        The blob, as hex text, base64 text, or a local file path. Provide exactly one.
    event_spec_key:
        Optional key known to be embedded in the blob; speeds up and disambiguates framing.
    fallback_sequence:
        Sequence assigned to records whose header carries sequence 0.
    limit:
        Maximum number of lines returned (hard-capped in the implementation).

    Returns
    -------
    dict:
        {"path": str, "count": int, "truncated": bool, "lines": list[dict], "text": str}
    """
    return decode_event_rules_impl(
        hex_data=hex_data,
        base64_data=base64_data,
        blob_path=blob_path,
        event_spec_key=event_spec_key,
        fallback_sequence=fallback_sequence,
        limit=limit,
    )


@mcp.tool()
def diagnose_blob(
    hex_data: str | None = None,
    base64_data: str | None = None,
    blob_path: str | None = None,
    sequence: int = 0,
) -> dict[str, Any]:
    """Report every framing, unpack and decompression attempt made against a blob.

    Use this when decode_event_rules returns path "not-recognized".
    """
    return diagnose_blob_impl(
        hex_data=hex_data,
        base64_data=base64_data,
        blob_path=blob_path,
        sequence=sequence,
    )


@mcp.tool()
def aggregate_fragments(
    fragments: list[str],
    key: str | None = None,
    pretty: bool = False,
) -> dict[str, Any]:
    """Merge XML fragments into one document per event spec key.

    Parameters
    ----------
    fragments:
        XML fragments in arrival order. Fragments that do not parse are kept verbatim.
    key:
        Merge everything under this key. When omitted, each fragment's root
        szEventSpecKey attribute is used.
    pretty:
        Indent structured documents for display.
    """
    return aggregate_fragments_impl(fragments=fragments, key=key, pretty=pretty)


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
