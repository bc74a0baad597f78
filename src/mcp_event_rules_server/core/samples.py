"""Build event-rules blobs in the on-disk layout.

Used for the sample resource and for fixtures; the layout mirrors what the
framing readers accept.
"""

from __future__ import annotations

import struct
from collections.abc import Sequence

from .framing.base import EVENT_SPEC_KEY_CHARS
from .models import RecordType
from .variants import (
    BF_NAME_CHARS,
    COMMENT_TEXT_CHARS,
    FI_APPLICATION_OFFSET,
    FI_FORM_OFFSET,
    NID_CHARS,
    RI_REPORT_OFFSET,
    VARIABLE_NAME_CHARS,
)

SAMPLE_EVENT_SPEC_KEY = "SAMPLE-ER-0001"
DEFAULT_FORMAT_CODE = 1


def encode_text(text: str, char_size: int = 2) -> bytes:
    return text.encode("utf-16-le" if char_size == 2 else "ascii")


def encode_fixed(text: str, char_count: int, char_size: int = 2) -> bytes:
    """Encode text into a NUL-padded field of char_count characters."""
    raw = encode_text(text, char_size)[: char_count * char_size]
    return raw.ljust(char_count * char_size, b"\x00")


def _size_prefix(total: int, size_length: int) -> bytes:
    return struct.pack("<q" if size_length == 8 else "<i", total)


def build_record(
    record_type: int,
    event_spec_key: str,
    payload: bytes = b"",
    *,
    sequence: int = 0,
    size_length: int = 4,
    char_size: int = 2,
    format_code: int = DEFAULT_FORMAT_CODE,
) -> bytes:
    """Single record whose length prefix covers the whole record."""
    body = (
        struct.pack("<i", format_code)
        + encode_fixed(event_spec_key, EVENT_SPEC_KEY_CHARS, char_size)
        + struct.pack("<Hh", sequence, record_type)
        + payload
    )
    return _size_prefix(size_length + len(body), size_length) + body


def build_container(
    event_spec_key: str,
    records: Sequence[bytes],
    *,
    size_length: int = 4,
    char_size: int = 2,
) -> bytes:
    """Container of size-prefixed records; records must use the same size_length."""
    body = (
        encode_fixed(event_spec_key, EVENT_SPEC_KEY_CHARS, char_size)
        + struct.pack("<i", len(records))
        + b"".join(records)
    )
    return _size_prefix(size_length + len(body), size_length) + body


def trailing_text_payload(text: str, *, padding: int = 8) -> bytes:
    # Leading zero unit keeps the header fields out of the trailing run.
    return b"\x00\x00" + encode_text(text) + b"\x00" * padding


def comment_payload(text: str) -> bytes:
    return encode_fixed(text, COMMENT_TEXT_CHARS) + b"\x00\x00"


def business_function_payload(name: str, param_count: int = 0) -> bytes:
    return struct.pack("<H", param_count) + encode_fixed(name, BF_NAME_CHARS)


def variable_payload(name: str) -> bytes:
    return encode_fixed(name, VARIABLE_NAME_CHARS)


def form_interaction_payload(application: str, form: str) -> bytes:
    payload = bytearray(FI_FORM_OFFSET + NID_CHARS * 2)
    payload[FI_APPLICATION_OFFSET : FI_APPLICATION_OFFSET + NID_CHARS * 2] = encode_fixed(application, NID_CHARS)
    payload[FI_FORM_OFFSET : FI_FORM_OFFSET + NID_CHARS * 2] = encode_fixed(form, NID_CHARS)
    return bytes(payload)


def report_interaction_payload(report: str) -> bytes:
    payload = bytearray(RI_REPORT_OFFSET + NID_CHARS * 2)
    payload[RI_REPORT_OFFSET:] = encode_fixed(report, NID_CHARS)
    return bytes(payload)


def fileio_payload(operation_code: int, file_type_code: int, file_name: str) -> bytes:
    return struct.pack("<Hh", operation_code, file_type_code) + encode_fixed(file_name, NID_CHARS)


def sample_blob() -> bytes:
    """A small container exercising the common record variants."""
    key = SAMPLE_EVENT_SPEC_KEY
    records = [
        build_record(RecordType.EVENT, key, trailing_text_payload("Row Is Selected"), sequence=1),
        build_record(RecordType.COMMENT, key, comment_payload("Validate order header"), sequence=2),
        build_record(RecordType.BF, key, business_function_payload("B4200310", 3), sequence=3),
        build_record(RecordType.FILEIO_OP, key, fileio_payload(3, 0, "F4201"), sequence=4),
        build_record(RecordType.FI, key, form_interaction_payload("P4210", "W4210A"), sequence=5),
    ]
    return build_container(key, records)
