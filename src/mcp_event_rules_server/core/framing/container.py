"""Multi-record container header probe and reader."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..binary import read_fixed_string, read_int32, read_size
from ..models import FramingCandidate, MultiRecordContainer
from .base import (
    EVENT_SPEC_KEY_CHARS,
    MAX_RECORD_COUNT,
    RECORD_COUNT_SIZE,
    KeyMatch,
    has_valid_event_spec_key,
    resolve_with,
)

logger = logging.getLogger(__name__)


def container_header_size(candidate: FramingCandidate) -> int:
    return candidate.size_length + EVENT_SPEC_KEY_CHARS * candidate.char_size + RECORD_COUNT_SIZE


@dataclass(frozen=True, slots=True)
class ContainerHeaderProbe:
    """Validate a container header: total length | event spec key | record count."""

    max_record_count: int = MAX_RECORD_COUNT

    def read(self, buffer: bytes, candidate: FramingCandidate) -> MultiRecordContainer | None:
        size = container_header_size(candidate)
        if len(buffer) < size:
            return None

        total_length = read_size(buffer, 0, candidate.size_length)
        if total_length <= 0 or total_length > len(buffer):
            return None

        key = read_fixed_string(buffer, candidate.size_length, EVENT_SPEC_KEY_CHARS, candidate.char_size)
        if not has_valid_event_spec_key(key):
            return None

        record_count = read_int32(buffer, candidate.size_length + EVENT_SPEC_KEY_CHARS * candidate.char_size)
        if record_count <= 0 or record_count > self.max_record_count:
            return None

        return MultiRecordContainer(
            total_length=total_length,
            event_spec_key=key.strip(),
            record_count=record_count,
            records_offset=size,
            size_length=candidate.size_length,
            char_size=candidate.char_size,
        )

    def size_length_for_match(self, match: KeyMatch) -> int:
        # The key directly follows the total-length prefix.
        return match.offset


@dataclass(frozen=True, slots=True)
class MultiRecordContainerReader:
    """Split a container into its size-prefixed sub-records (all or nothing)."""

    probe: ContainerHeaderProbe = ContainerHeaderProbe()
    candidates: Sequence[FramingCandidate] | None = None

    def read_header(self, buffer: bytes, event_spec_key_hint: str | None = None) -> MultiRecordContainer | None:
        return resolve_with(self.probe, buffer, event_spec_key_hint, candidates=self.candidates)

    def try_read(self, buffer: bytes, event_spec_key_hint: str | None = None) -> list[bytes] | None:
        """Return the sub-record slices, or None if the container is absent or truncated.

        Each slice starts at its own length prefix.
        """
        header = self.read_header(buffer, event_spec_key_hint)
        if header is None:
            return None

        records: list[bytes] = []
        cursor = header.records_offset
        for index in range(header.record_count):
            if cursor + header.size_length > len(buffer):
                logger.debug(
                    "Container abandoned: prefix of record %s/%s past end of buffer",
                    index + 1,
                    header.record_count,
                )
                return None
            length = read_size(buffer, cursor, header.size_length)
            if length <= 0 or length > len(buffer) - cursor:
                logger.debug(
                    "Container abandoned: record %s/%s declares invalid length %s",
                    index + 1,
                    header.record_count,
                    length,
                )
                return None
            records.append(buffer[cursor : cursor + length])
            cursor += length
        return records
