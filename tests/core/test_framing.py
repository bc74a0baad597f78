from __future__ import annotations

import struct
from types import SimpleNamespace

import pytest

from mcp_event_rules_server.core.binary import read_fixed_string, read_size, to_hex
from mcp_event_rules_server.core.framing import (
    ContainerHeaderProbe,
    FormatCandidateResolver,
    KeyMatch,
    MultiRecordContainerReader,
    RecordHeaderReader,
    default_candidates,
    find_key_offsets,
    header_size,
)
from mcp_event_rules_server.core.models import FramingCandidate, RecordType
from mcp_event_rules_server.core.samples import (
    build_container,
    build_record,
    comment_payload,
    encode_fixed,
    trailing_text_payload,
)

KEY = "EV-0001-ABC"


def test_default_candidates_order() -> None:
    assert [(c.size_length, c.char_size) for c in default_candidates()] == [(4, 2), (4, 1), (8, 2), (8, 1)]


def test_record_layout_matches_readers() -> None:
    record = build_record(RecordType.COMMENT, KEY, comment_payload("TEST"), sequence=7)

    assert read_size(record, 0, 4) == len(record)
    assert read_fixed_string(record, 8, 37, 2) == KEY
    assert struct.unpack_from("<Hh", record, 8 + 74) == (7, 9)


@pytest.mark.parametrize("text", ["A", "TEST", "A much longer comment line " * 3])
def test_resolve_single_record_header_fits(text: str) -> None:
    record = build_record(RecordType.COMMENT, KEY, comment_payload(text), sequence=1)

    candidate = FormatCandidateResolver().resolve(record)

    assert candidate == FramingCandidate(size_length=4, char_size=2)
    assert header_size(candidate) <= len(record)


def test_resolve_header_fields() -> None:
    record = build_record(RecordType.COMMENT, KEY, comment_payload("TEST"), sequence=3)

    header = FormatCandidateResolver().resolve_header(record)

    assert header is not None
    assert header.event_spec_key == KEY
    assert header.base_type == RecordType.COMMENT
    assert header.record_length == len(record)
    assert header.payload_offset == 86


def test_resolve_eight_byte_length_prefix() -> None:
    record = build_record(RecordType.COMMENT, KEY, comment_payload("TEST"), size_length=8)

    blind = FormatCandidateResolver().resolve(record)
    hinted = FormatCandidateResolver().resolve_header(record, KEY)

    assert blind == FramingCandidate(size_length=8, char_size=2)
    assert hinted is not None
    assert hinted.size_length == 8


def test_resolve_single_byte_key() -> None:
    record = build_record(RecordType.EVENT, KEY, b"\x00" + b"clicked" + b"\x00" * 4, char_size=1)

    header = FormatCandidateResolver().resolve_header(record, KEY)

    assert header is not None
    assert header.char_size == 1
    assert header.event_spec_key == KEY


def test_find_key_offsets_prefers_utf16() -> None:
    buffer = b"\x00" * 3 + KEY.encode("ascii") + b"\x00" * 5 + KEY.encode("utf-16-le")

    matches = list(find_key_offsets(buffer, KEY))

    assert [(m.offset, m.char_size) for m in matches] == [(3 + len(KEY) + 5, 2), (3, 1)]


@pytest.mark.parametrize("buffer", [b"", b"\x00", b"\xff" * 40, b"\x00" * 85])
def test_short_buffers_are_not_found(buffer: bytes) -> None:
    resolver = FormatCandidateResolver()

    assert resolver.resolve(buffer) is None
    assert resolver.resolve(buffer, KEY) is None
    assert resolver.looks_like_spec(buffer) is False


@pytest.mark.parametrize("tag", [0, 41, -1])
def test_record_type_out_of_range_is_rejected(tag: int) -> None:
    record = build_record(tag, KEY, comment_payload("TEST"))

    assert RecordHeaderReader().read(record, FramingCandidate(4, 2)) is None


def test_nop_flag_keeps_base_type() -> None:
    record = build_record(RecordType.COMMENT | 0x100, KEY, comment_payload("TEST"))

    header = RecordHeaderReader().read(record, FramingCandidate(4, 2))

    assert header is not None
    assert header.record_type == 0x109
    assert header.base_type == RecordType.COMMENT


def test_key_without_separator_is_rejected() -> None:
    record = build_record(RecordType.COMMENT, "NOSEPARATOR", comment_payload("TEST"))

    assert FormatCandidateResolver().resolve(record) is None


def test_declared_length_beyond_buffer_is_rejected() -> None:
    record = bytearray(build_record(RecordType.COMMENT, KEY, comment_payload("TEST")))
    struct.pack_into("<i", record, 0, len(record) + 1)

    assert RecordHeaderReader().read(bytes(record), FramingCandidate(4, 2)) is None


def test_container_probe_reads_header() -> None:
    records = [build_record(RecordType.COMMENT, KEY, comment_payload(t)) for t in ("a", "b")]
    blob = build_container(KEY, records)

    container = ContainerHeaderProbe().read(blob, FramingCandidate(4, 2))

    assert container is not None
    assert container.record_count == 2
    assert container.event_spec_key == KEY
    assert container.records_offset == 4 + 74 + 4


def test_resolver_reports_container_framing() -> None:
    records = [build_record(RecordType.EVENT, KEY, trailing_text_payload("go"))]
    blob = build_container(KEY, records)

    assert FormatCandidateResolver().resolve(blob) == FramingCandidate(size_length=4, char_size=2)
    assert FormatCandidateResolver().resolve_container(blob, KEY) is not None


class _RecordingProbe:
    """Succeeds only for one framing; records every candidate it is asked about."""

    def __init__(self, accept: FramingCandidate, key_offset_delta: int) -> None:
        self.accept = accept
        self.key_offset_delta = key_offset_delta
        self.calls: list[FramingCandidate] = []

    def read(self, buffer: bytes, candidate: FramingCandidate) -> SimpleNamespace | None:
        self.calls.append(candidate)
        return SimpleNamespace(candidate=candidate) if candidate == self.accept else None

    def size_length_for_match(self, match: KeyMatch) -> int:
        return match.offset - self.key_offset_delta


def test_hinted_container_wins_over_blind_header() -> None:
    buffer = b"\x00" * 8 + KEY.encode("utf-16-le") + b"\x00" * 16
    header = _RecordingProbe(FramingCandidate(4, 1), key_offset_delta=4)
    container = _RecordingProbe(FramingCandidate(8, 2), key_offset_delta=0)
    resolver = FormatCandidateResolver(header_reader=header, container_probe=container)

    hinted = resolver.resolve(buffer, KEY)

    assert hinted == FramingCandidate(8, 2)
    assert header.calls == [FramingCandidate(4, 2)]
    assert container.calls == [FramingCandidate(8, 2)]
    assert resolver.resolve(buffer) == FramingCandidate(4, 1)


def test_hint_that_validates_nothing_falls_back_to_blind_scan() -> None:
    records = [build_record(RecordType.COMMENT, KEY, comment_payload("a"))]
    blob = build_container(KEY, records)

    assert FormatCandidateResolver().resolve(blob, "OTHER-KEY") == FramingCandidate(4, 2)


def test_container_reader_slices_include_prefix() -> None:
    records = [build_record(RecordType.COMMENT, KEY, comment_payload(t), sequence=i) for i, t in enumerate("xyz", 1)]
    blob = build_container(KEY, records)

    out = MultiRecordContainerReader().try_read(blob, KEY)

    assert out == records


def test_container_reader_abandons_truncated_container(truncated_container) -> None:
    assert MultiRecordContainerReader().try_read(truncated_container()) is None


def test_container_reader_rejects_zero_length_record() -> None:
    record = bytearray(build_record(RecordType.COMMENT, KEY, comment_payload("a")))
    struct.pack_into("<i", record, 0, 0)
    blob = build_container(KEY, [bytes(record)])

    assert MultiRecordContainerReader().try_read(blob) is None


def test_container_probe_respects_max_record_count() -> None:
    key = encode_fixed(KEY, 37)
    body = key + struct.pack("<i", 5) + b"\x00" * 16
    blob = struct.pack("<i", 4 + len(body)) + body

    assert ContainerHeaderProbe(max_record_count=4).read(blob, FramingCandidate(4, 2)) is None
    assert ContainerHeaderProbe().read(blob, FramingCandidate(4, 2)) is not None


def test_to_hex_is_uppercase_and_bounded() -> None:
    assert to_hex(b"\x01\xab\xff", 2) == "01 AB"
    assert to_hex(b"", 64) == ""
