"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def summarize_resource(uri: str) -> list[dict[str, Any]]:
        """Build a prompt that summarizes a resource URI."""
        return [
            {
                "role": "system",
                "content": (
                    "You are a precise assistant. Summarize the provided resource clearly and "
                    "concisely. Extract key points, risks, and actionable items."
                ),
            },
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "Summarize this resource:"},
                    {"type": "resource", "uri": uri},
                ],
            },
        ]

    @mcp.prompt()
    def explain_event_rules(
        blob_path: str,
        event_spec_key: str | None = None,
        focus: str = "",
    ) -> list[dict[str, Any]]:
        """Build a prompt that explains the logic of a decoded event-rules blob."""
        call_lines = [f"- blob_path: {blob_path}"]
        if event_spec_key:
            call_lines.append(f"- event_spec_key: {event_spec_key}")
        call_block = "\n".join(call_lines)
        focus_line = f"Pay particular attention to: {focus}\n" if focus.strip() else ""
        return [
            {
                "role": "system",
                "content": (
                    "You are an ERP developer reviewing event rules. Explain the decoded lines "
                    "in plain language. Quote lines exactly; do not invent logic that is not in "
                    "the tool output."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Decode the blob using decode_event_rules and explain it. Follow this workflow:\n"
                    "- Call decode_event_rules first with the parameters below.\n"
                    "- If path is \"not-recognized\", call diagnose_blob with the same blob_path "
                    "and report which framing candidates were tried.\n"
                    "- Group lines into control-flow blocks (IF/ELSE/ENDIF, WHILE/ENDWHILE).\n"
                    "- List every business function, form interaction, report interaction and "
                    "table operation.\n\n"
                    "Call decode_event_rules with:\n"
                    f"{call_block}\n\n"
                    f"{focus_line}"
                    "Return this structure:\n"
                    "1) Purpose (1-2 sentences)\n"
                    "2) Flow (bullets, one per block, with sequence numbers)\n"
                    "3) External calls and data access (bullets)\n"
                    "4) Concerns or dead code (bullets; say 'None' if none)\n"
                ),
            },
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": "Optional: the decoded text is also available as a resource:",
                    },
                    {"type": "resource", "uri": f"blob://{blob_path}"},
                ],
            },
        ]
