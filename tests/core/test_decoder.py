from __future__ import annotations

import zlib

import pytest

from mcp_event_rules_server.core.config import DecodeConfig
from mcp_event_rules_server.core.decoder import SpecDecoder
from mcp_event_rules_server.core.models import DecodedLine, DecodePath, RecordType
from mcp_event_rules_server.core.samples import (
    SAMPLE_EVENT_SPEC_KEY,
    build_container,
    build_record,
    comment_payload,
    sample_blob,
    trailing_text_payload,
)
from mcp_event_rules_server.core.unpack import ByteOrder, UnpackFlavor, UnpackOutcome, UnpackStatus

KEY = "EV-0001-ABC"


def _raw_deflate(data: bytes) -> bytes:
    compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
    return compressor.compress(data) + compressor.flush()


class _FakeUnpacker:
    def __init__(self, data: bytes, *, succeed_on: tuple[UnpackFlavor, ByteOrder] | None = None) -> None:
        self.data = data
        self.succeed_on = succeed_on
        self.calls: list[tuple[UnpackFlavor, ByteOrder]] = []

    def unpack(self, blob: bytes, *, byte_order: ByteOrder, flavor: UnpackFlavor) -> UnpackOutcome:
        self.calls.append((flavor, byte_order))
        if self.succeed_on is None or self.succeed_on == (flavor, byte_order):
            return UnpackOutcome(status=UnpackStatus.SUCCESS, data=self.data)
        return UnpackOutcome(status=UnpackStatus.UNRESOLVED_BLOB_FORMAT)


class _ExplodingUnpacker:
    def unpack(self, blob: bytes, *, byte_order: ByteOrder, flavor: UnpackFlavor) -> UnpackOutcome:
        raise RuntimeError("runtime not loaded")


def test_decode_single_comment_record(comment_record) -> None:
    lines = SpecDecoder().decode(comment_record("TEST", sequence=4))

    assert lines == [DecodedLine(sequence=4, record_type=RecordType.COMMENT, text="TEST")]


def test_decode_fileio_record(fileio_record) -> None:
    lines = SpecDecoder().decode(fileio_record(5, 0, "F0101"))

    assert [line.text for line in lines] == ["INSERT INTO Table F0101"]


def test_zero_sequence_uses_fallback(comment_record) -> None:
    lines = SpecDecoder().decode(comment_record("x", sequence=0), fallback_sequence=12)

    assert lines[0].sequence == 12


def test_decode_with_key_hint(comment_record, event_spec_key) -> None:
    result = SpecDecoder().decode_result(comment_record("hinted"), event_spec_key)

    assert result.path == DecodePath.SINGLE
    assert result.lines[0].text == "hinted"


def test_decode_eight_byte_record() -> None:
    record = build_record(RecordType.COMMENT, KEY, comment_payload("wide"), sequence=2, size_length=8)

    assert [line.text for line in SpecDecoder().decode(record)] == ["wide"]


def test_decode_sample_container_in_order() -> None:
    result = SpecDecoder().decode_result(sample_blob(), SAMPLE_EVENT_SPEC_KEY)

    assert result.path == DecodePath.CONTAINER
    assert [(line.sequence, line.text) for line in result.lines] == [
        (1, "Row Is Selected"),
        (2, "Validate order header"),
        (3, "B4200310"),
        (4, "SELECT FROM Table F4201"),
        (5, "FI : CALL(Application: P4210 Form: W4210A)"),
    ]


def test_container_skips_undecodable_records(comment_record) -> None:
    bad = build_record(0, KEY, comment_payload("invisible"), sequence=2)
    blob = build_container(KEY, [comment_record("first", sequence=1), bad, comment_record("third", sequence=3)])

    lines = SpecDecoder().decode(blob)

    assert len(lines) <= 3
    assert [line.text for line in lines] == ["first", "third"]


def test_truncated_container_falls_back_to_single(monkeypatch, truncated_container) -> None:
    seen: list[int] = []
    original = SpecDecoder.decode_single

    def spy(self, record, event_spec_key_hint=None, fallback_sequence=0):
        seen.append(len(record))
        return original(self, record, event_spec_key_hint, fallback_sequence)

    monkeypatch.setattr(SpecDecoder, "decode_single", spy)
    blob = truncated_container()

    result = SpecDecoder().decode_result(blob)

    # Only the whole-blob single-record interpretation is attempted.
    assert seen == [len(blob)]
    assert result.path == DecodePath.NOT_RECOGNIZED
    assert result.lines == []


def test_decode_is_idempotent() -> None:
    decoder = SpecDecoder()
    blob = sample_blob()

    assert decoder.decode(blob) == decoder.decode(blob)


def test_decode_empty_and_garbage() -> None:
    decoder = SpecDecoder()

    assert decoder.decode(b"") == []
    assert decoder.decode(b"\x00\x01\x02") == []
    assert decoder.decode_result(b"\xff" * 300).path == DecodePath.NOT_RECOGNIZED


def test_decode_zlib_wrapped_single(comment_record) -> None:
    result = SpecDecoder().decode_result(zlib.compress(comment_record("packed")))

    assert result.path == DecodePath.COMPRESSED_SINGLE
    assert [line.text for line in result.lines] == ["packed"]


def test_decode_raw_deflate_container() -> None:
    result = SpecDecoder().decode_result(_raw_deflate(sample_blob()))

    assert result.path == DecodePath.COMPRESSED_CONTAINER
    assert len(result.lines) == 5


def test_decompression_can_be_disabled(comment_record) -> None:
    decoder = SpecDecoder(config=DecodeConfig(try_decompression=False))

    assert decoder.decode(zlib.compress(comment_record("packed"))) == []


def test_decompression_limit(comment_record) -> None:
    blob = zlib.compress(comment_record("packed"))

    assert SpecDecoder(config=DecodeConfig(max_decompressed_bytes=16)).decode(blob) == []


def test_native_unpack_is_off_by_default(comment_record) -> None:
    unpacker = _FakeUnpacker(comment_record("unpacked"))

    assert SpecDecoder(unpacker=unpacker).decode(b"\xff" * 120) == []
    assert unpacker.calls == []


def test_native_unpack_when_enabled(comment_record) -> None:
    unpacker = _FakeUnpacker(
        comment_record("unpacked"),
        succeed_on=(UnpackFlavor.B733, ByteOrder.LITTLE_ENDIAN),
    )
    decoder = SpecDecoder(config=DecodeConfig(enable_native_unpack=True), unpacker=unpacker)

    result = decoder.decode_result(b"\xff" * 120)

    assert result.path == DecodePath.UNPACKED
    assert [line.text for line in result.lines] == ["unpacked"]
    assert unpacker.calls == [
        (UnpackFlavor.STANDARD, ByteOrder.LITTLE_ENDIAN),
        (UnpackFlavor.STANDARD, ByteOrder.BIG_ENDIAN),
        (UnpackFlavor.B733, ByteOrder.LITTLE_ENDIAN),
    ]


def test_failing_unpacker_does_not_raise() -> None:
    decoder = SpecDecoder(config=DecodeConfig(enable_native_unpack=True), unpacker=_ExplodingUnpacker())

    assert decoder.decode(b"\xff" * 120) == []


def test_looks_like_spec(comment_record) -> None:
    decoder = SpecDecoder()

    assert decoder.looks_like_spec(comment_record("x"))
    assert decoder.looks_like_spec(sample_blob())
    assert not decoder.looks_like_spec(zlib.compress(sample_blob()))


def test_event_record_trailing_text() -> None:
    record = build_record(RecordType.EVENT, KEY, trailing_text_payload("Button Clicked"), sequence=1)

    assert SpecDecoder().decode(record)[0].text == "Button Clicked"


def _single_byte_text(text: str) -> bytes:
    return b"\x00" + text.encode("ascii") + b"\x00" * 4


def test_decode_single_byte_record() -> None:
    record = build_record(RecordType.EVENT, KEY, _single_byte_text("Row Exited"), sequence=4, char_size=1)

    result = SpecDecoder().decode_result(record)

    assert result.path == DecodePath.SINGLE
    assert [(line.sequence, line.text) for line in result.lines] == [(4, "Row Exited")]


@pytest.mark.parametrize("hint", [None, KEY])
def test_decode_eight_byte_container(hint) -> None:
    records = [
        build_record(RecordType.COMMENT, KEY, comment_payload(text), sequence=i, size_length=8)
        for i, text in enumerate(["a", "b"], 1)
    ]
    blob = build_container(KEY, records, size_length=8)

    result = SpecDecoder().decode_result(blob, hint)

    assert result.path == DecodePath.CONTAINER
    assert [line.text for line in result.lines] == ["a", "b"]


@pytest.mark.parametrize("hint", [None, KEY])
def test_decode_single_byte_container(hint) -> None:
    records = [
        build_record(RecordType.EVENT, KEY, _single_byte_text(text), sequence=i, char_size=1)
        for i, text in enumerate(["Row Exited", "Clicked"], 1)
    ]
    blob = build_container(KEY, records, char_size=1)

    result = SpecDecoder().decode_result(blob, hint)

    assert result.path == DecodePath.CONTAINER
    assert [line.text for line in result.lines] == ["Row Exited", "Clicked"]
