"""MCP tool implementations for decoding and diagnosing spec blobs.

Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import Any

from mcp_event_rules_server.core.config import resolve_decode_config
from mcp_event_rules_server.core.decoder import SpecDecoder
from mcp_event_rules_server.core.diagnostics import diagnose
from mcp_event_rules_server.core.formatting import render_lines
from mcp_event_rules_server.core.models import DecodedLine

DEFAULT_LIMIT = 500
HARD_LIMIT = 20000


def load_blob(
    *,
    hex_data: str | None = None,
    base64_data: str | None = None,
    blob_path: str | None = None,
) -> bytes:
    """Return blob bytes from exactly one of the supported inputs."""
    given = [v for v in (hex_data, base64_data, blob_path) if v is not None]
    if len(given) != 1:
        raise ValueError("Provide exactly one of hex_data, base64_data or blob_path.")

    if hex_data is not None:
        compact = "".join(hex_data.split())
        if compact[:2].lower() == "0x":
            compact = compact[2:]
        try:
            return bytes.fromhex(compact)
        except ValueError as e:
            raise ValueError(f"hex_data is not valid hexadecimal: {e}") from e

    if base64_data is not None:
        try:
            return base64.b64decode("".join(base64_data.split()), validate=True)
        except binascii.Error as e:
            raise ValueError(f"base64_data is not valid base64: {e}") from e

    path = Path(blob_path or "").expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    return path.read_bytes()


def _effective_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    if limit <= 0:
        raise ValueError("limit must be > 0")
    return min(limit, HARD_LIMIT)


def _line_to_dict(line: DecodedLine) -> dict[str, Any]:
    return {
        "sequence": line.sequence,
        "record_type": line.record_type,
        "text": line.text,
    }


def decode_event_rules_impl(
    *,
    hex_data: str | None = None,
    base64_data: str | None = None,
    blob_path: str | None = None,
    event_spec_key: str | None = None,
    fallback_sequence: int = 0,
    limit: int | None = None,
) -> dict[str, Any]:
    """Implementation for the `decode_event_rules` MCP tool.

    Notes
    -----
    - An unrecognized blob is not an error: the result has count 0 and
      path "not-recognized".
    - `limit` caps the returned lines; `truncated` reports whether it applied.
    """
    if fallback_sequence < 0:
        raise ValueError("fallback_sequence must be >= 0")
    limit = _effective_limit(limit)
    blob = load_blob(hex_data=hex_data, base64_data=base64_data, blob_path=blob_path)

    decoder = SpecDecoder(config=resolve_decode_config())
    result = decoder.decode_result(blob, event_spec_key or None, fallback_sequence)
    lines = result.lines[:limit]

    return {
        "path": result.path.value,
        "count": len(lines),
        "truncated": len(result.lines) > limit,
        "lines": [_line_to_dict(line) for line in lines],
        "text": "\n".join(render_lines([lines])),
    }


def diagnose_blob_impl(
    *,
    hex_data: str | None = None,
    base64_data: str | None = None,
    blob_path: str | None = None,
    sequence: int = 0,
) -> dict[str, Any]:
    """Implementation for the `diagnose_blob` MCP tool."""
    blob = load_blob(hex_data=hex_data, base64_data=base64_data, blob_path=blob_path)
    report = diagnose(blob, sequence=sequence, config=resolve_decode_config())
    return report.model_dump(mode="json")
