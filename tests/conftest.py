from __future__ import annotations

import struct
from collections.abc import Callable
from pathlib import Path

import pytest

from mcp_event_rules_server.core.models import RecordType
from mcp_event_rules_server.core.samples import build_container, build_record, comment_payload, fileio_payload

KEY = "EV-0001-ABC"


@pytest.fixture
def event_spec_key() -> str:
    return KEY


@pytest.fixture
def comment_record() -> Callable[..., bytes]:
    def _build(text: str = "TEST", *, sequence: int = 1, key: str = KEY) -> bytes:
        return build_record(RecordType.COMMENT, key, comment_payload(text), sequence=sequence)

    return _build


@pytest.fixture
def fileio_record() -> Callable[..., bytes]:
    def _build(op: int = 5, file_type: int = 0, name: str = "F0101", *, sequence: int = 1) -> bytes:
        return build_record(RecordType.FILEIO_OP, KEY, fileio_payload(op, file_type, name), sequence=sequence)

    return _build


@pytest.fixture
def truncated_container(comment_record) -> Callable[[], bytes]:
    """Container that declares three records but carries only two."""

    def _build() -> bytes:
        blob = bytearray(build_container(KEY, [comment_record("one", sequence=1), comment_record("two", sequence=2)]))
        count_offset = 4 + 37 * 2
        struct.pack_into("<i", blob, count_offset, 3)
        return bytes(blob)

    return _build


@pytest.fixture
def write_blob() -> Callable[[Path, bytes], None]:
    def _write(path: Path, data: bytes) -> None:
        path.write_bytes(data)

    return _write
