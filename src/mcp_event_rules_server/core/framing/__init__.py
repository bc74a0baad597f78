"""Framing discovery for event-rules spec blobs.

Contains the single-record header reader, the multi-record container reader and
the resolver that searches framing candidates.
"""

from __future__ import annotations

from .base import (
    EVENT_SPEC_KEY_CHARS,
    MAX_RECORD_COUNT,
    FramingProbe,
    KeyMatch,
    default_candidates,
    find_key_offsets,
    has_valid_event_spec_key,
    read_at_match,
    resolve_with,
    scan_candidates,
)
from .container import ContainerHeaderProbe, MultiRecordContainerReader, container_header_size
from .header import RecordHeaderReader, header_size
from .resolver import FormatCandidateResolver

__all__ = [
    "EVENT_SPEC_KEY_CHARS",
    "MAX_RECORD_COUNT",
    "ContainerHeaderProbe",
    "FormatCandidateResolver",
    "FramingProbe",
    "KeyMatch",
    "MultiRecordContainerReader",
    "RecordHeaderReader",
    "container_header_size",
    "default_candidates",
    "find_key_offsets",
    "has_valid_event_spec_key",
    "header_size",
    "read_at_match",
    "resolve_with",
    "scan_candidates",
]
