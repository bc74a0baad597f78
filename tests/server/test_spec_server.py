from __future__ import annotations

import pytest

from mcp_event_rules_server.server.spec_server import mcp


@pytest.mark.asyncio
async def test_tools_and_prompts_are_registered() -> None:
    tools = {t.name for t in await mcp.list_tools()}
    prompts = {p.name for p in await mcp.list_prompts()}

    assert {"decode_event_rules", "diagnose_blob", "aggregate_fragments"} <= tools
    assert {"summarize_resource", "explain_event_rules"} <= prompts


@pytest.mark.asyncio
async def test_static_resources_are_registered() -> None:
    uris = {str(r.uri) for r in await mcp.list_resources()}

    assert "app://event-rules/help" in uris
    assert "app://event-rules/examples/sample-blob" in uris
