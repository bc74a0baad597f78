"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any

import aiofiles
from mcp.server.fastmcp import FastMCP

from mcp_event_rules_server.core.config import resolve_decode_config
from mcp_event_rules_server.core.decoder import SpecDecoder
from mcp_event_rules_server.core.diagnostics import DecodeDiagnostics
from mcp_event_rules_server.core.formatting import render_lines
from mcp_event_rules_server.core.samples import SAMPLE_EVENT_SPEC_KEY, sample_blob

ALLOWED_FILE_SUFFIXES = {".bin", ".blob", ".dat", ".gbr"}
BASE_DIR_ENV = "ER_SPEC_BASE_DIR"


def _base_dir() -> Path:
    """Return the resolved base directory for blob resources."""
    raw = os.getenv(BASE_DIR_ENV, os.getcwd())
    return Path(raw).resolve()


def _safe_resolve(path: str) -> Path:
    """Resolve a path under the configured base directory."""
    base = _base_dir()
    p = Path(path).expanduser()
    if not p.is_absolute():
        p = base / p
    p = p.resolve()
    if base not in p.parents and p != base:
        raise ValueError("Path escapes base dir")
    return p


def _resolve_blob_path(path: str) -> Path:
    """Resolve and validate a blob file path."""
    resolved = _safe_resolve(path)
    if not resolved.is_file():
        raise FileNotFoundError(f"File not found: {resolved}")
    if resolved.suffix.lower() not in ALLOWED_FILE_SUFFIXES:
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        raise ValueError(f"File type not allowed. Allowed: {allowed}.")
    return resolved


async def _read_bytes(path: Path) -> bytes:
    async with aiofiles.open(path, mode="rb") as f:
        return await f.read()


def _decode_to_text(blob: bytes) -> str:
    decoder = SpecDecoder(config=resolve_decode_config())
    result = decoder.decode_result(blob)
    if not result.recognized:
        return f"Blob format not recognized ({len(blob)} bytes).\n"
    return "\n".join(render_lines([result.lines]))


async def read_blob_text(path: str) -> str:
    """Decode a blob file under the base dir into display text."""
    p = _resolve_blob_path(path)
    blob = await _read_bytes(p)
    return await asyncio.to_thread(_decode_to_text, blob)


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://event-rules/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        base = _base_dir()
        return (
            "Resources:\n"
            "- app://event-rules/help\n"
            "- app://event-rules/config/decode\n"
            "- app://event-rules/schemas/diagnostics\n"
            "- app://event-rules/examples/sample-blob\n"
            f"- blob://{{path}} (decoded lines; restricted to {BASE_DIR_ENV}; allowed: {allowed})\n"
            f"\nBase directory: {base}\n"
        )

    @mcp.resource("app://event-rules/config/decode")
    def decode_config() -> dict[str, Any]:
        """Return the effective decoder configuration."""
        return asdict(resolve_decode_config())

    @mcp.resource("app://event-rules/schemas/diagnostics")
    def diagnostics_schema() -> dict[str, Any]:
        """Return the JSON schema for diagnostics reports."""
        return DecodeDiagnostics.model_json_schema()

    @mcp.resource("app://event-rules/examples/sample-blob")
    def sample_blob_resource() -> dict[str, Any]:
        """Return a small sample container blob as hex, with its key."""
        return {
            "event_spec_key": SAMPLE_EVENT_SPEC_KEY,
            "hex_data": sample_blob().hex().upper(),
        }

    @mcp.resource("blob://{path}")
    async def decoded_blob(path: str) -> str:
        """Decode a blob file from within ER_SPEC_BASE_DIR."""
        return await read_blob_text(path)
