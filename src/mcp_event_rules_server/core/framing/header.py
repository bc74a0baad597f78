"""Single-record header reader."""

from __future__ import annotations

from dataclasses import dataclass

from ..binary import read_fixed_string, read_int16, read_size
from ..models import FramingCandidate, RecordHeader, base_record_type
from .base import (
    EVENT_SPEC_KEY_CHARS,
    FORMAT_SIZE,
    MAX_BASE_RECORD_TYPE,
    RECORD_TYPE_SIZE,
    SEQUENCE_SIZE,
    KeyMatch,
    has_valid_event_spec_key,
)


def header_size(candidate: FramingCandidate) -> int:
    """Bytes needed for the fixed part of a single-record header."""
    return (
        candidate.size_length
        + FORMAT_SIZE
        + EVENT_SPEC_KEY_CHARS * candidate.char_size
        + SEQUENCE_SIZE
        + RECORD_TYPE_SIZE
    )


@dataclass(frozen=True, slots=True)
class RecordHeaderReader:
    """Locate the header fields of a single record.

    Layout: length (size_length) | format (4) | event spec key (37 chars) |
    sequence (u16) | record type (i16) | payload ...
    """

    max_base_type: int = MAX_BASE_RECORD_TYPE

    def read(self, buffer: bytes, candidate: FramingCandidate) -> RecordHeader | None:
        """Return the header if the buffer is plausible under the candidate."""
        if len(buffer) < header_size(candidate):
            return None

        record_length = read_size(buffer, 0, candidate.size_length)
        if record_length <= 0 or record_length > len(buffer):
            return None

        key_bytes = EVENT_SPEC_KEY_CHARS * candidate.char_size
        key_offset = candidate.size_length + FORMAT_SIZE
        sequence_offset = key_offset + key_bytes
        record_type_offset = sequence_offset + SEQUENCE_SIZE
        payload_offset = record_type_offset + RECORD_TYPE_SIZE

        record_type = read_int16(buffer, record_type_offset)
        base = base_record_type(record_type)
        if base <= 0 or base > self.max_base_type:
            return None

        key = read_fixed_string(buffer, key_offset, EVENT_SPEC_KEY_CHARS, candidate.char_size)
        if not has_valid_event_spec_key(key):
            return None

        return RecordHeader(
            size_length=candidate.size_length,
            record_length=record_length,
            event_spec_key_offset=key_offset,
            event_spec_key_bytes=key_bytes,
            char_size=candidate.char_size,
            sequence_offset=sequence_offset,
            record_type_offset=record_type_offset,
            payload_offset=payload_offset,
            record_type=record_type,
            event_spec_key=key.strip(),
        )

    def size_length_for_match(self, match: KeyMatch) -> int:
        # The key sits after the length prefix and the 4-byte format field.
        return match.offset - FORMAT_SIZE
