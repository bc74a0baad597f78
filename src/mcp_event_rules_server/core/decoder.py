"""Top-level blob decoding.

This module is the main integration point: it takes a raw event-rules blob and
returns readable lines, trying in order the multi-record container, the single
record, an optional native unpack and finally a decompressed retry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .binary import read_uint16
from .compression import try_decompress
from .config import DecodeConfig
from .framing import ContainerHeaderProbe, FormatCandidateResolver, MultiRecordContainerReader
from .models import DecodedLine, DecodePath, DecodeResult
from .unpack import UNPACK_ATTEMPTS, SpecUnpacker, UnpackStatus
from .variants import RecordVariantDecoder

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SpecDecoder:
    """Decode event-rules spec blobs into ordered DecodedLine lists.

    Stateless across calls: decoding the same blob twice yields the same lines.
    """

    config: DecodeConfig = DecodeConfig()
    unpacker: SpecUnpacker | None = None
    variant_decoder: RecordVariantDecoder = RecordVariantDecoder()

    @property
    def resolver(self) -> FormatCandidateResolver:
        return FormatCandidateResolver(
            container_probe=ContainerHeaderProbe(max_record_count=self.config.max_record_count)
        )

    @property
    def container_reader(self) -> MultiRecordContainerReader:
        return MultiRecordContainerReader(
            probe=ContainerHeaderProbe(max_record_count=self.config.max_record_count)
        )

    def looks_like_spec(self, buffer: bytes) -> bool:
        return self.resolver.looks_like_spec(buffer)

    def decode_single(
        self,
        record: bytes,
        event_spec_key_hint: str | None = None,
        fallback_sequence: int = 0,
    ) -> DecodedLine | None:
        """Decode one record; None when no framing validates."""
        header = self.resolver.resolve_header(record, event_spec_key_hint)
        if header is None:
            return None

        record_length = header.record_length
        if record_length <= 0 or record_length > len(record):
            record_length = len(record)

        text = self.variant_decoder.decode_text(
            header.record_type,
            record,
            header.payload_offset,
            header.char_size,
            record_length,
        )
        sequence = read_uint16(record, header.sequence_offset)
        return DecodedLine(
            sequence=sequence or fallback_sequence,
            record_type=header.base_type,
            text=text,
        )

    def decode_container(
        self,
        buffer: bytes,
        event_spec_key_hint: str | None = None,
        fallback_sequence: int = 0,
    ) -> list[DecodedLine] | None:
        """Decode every sub-record of a container; None if nothing decoded."""
        records = self.container_reader.try_read(buffer, event_spec_key_hint)
        if not records:
            return None

        lines: list[DecodedLine] = []
        for index, record in enumerate(records, start=1):
            line = self.decode_single(record, event_spec_key_hint, fallback_sequence)
            if line is None:
                logger.debug("Skipping undecodable sub-record %s/%s", index, len(records))
                continue
            lines.append(line)
        return lines or None

    def _decode_direct(
        self,
        buffer: bytes,
        event_spec_key_hint: str | None,
        fallback_sequence: int,
    ) -> tuple[list[DecodedLine], bool] | None:
        """Return (lines, from_container) for the first interpretation that works."""
        lines = self.decode_container(buffer, event_spec_key_hint, fallback_sequence)
        if lines:
            return lines, True

        line = self.decode_single(buffer, event_spec_key_hint, fallback_sequence)
        if line is not None:
            return [line], False
        return None

    def _try_unpack(self, blob: bytes) -> bytes | None:
        if not self.config.enable_native_unpack or self.unpacker is None:
            return None
        for flavor, byte_order in UNPACK_ATTEMPTS:
            try:
                outcome = self.unpacker.unpack(blob, byte_order=byte_order, flavor=flavor)
            except Exception as e:
                logger.warning("Native unpack (%s, %s) failed: %s", flavor.value, byte_order.value, e)
                continue
            if outcome.status == UnpackStatus.SUCCESS and outcome.data:
                if len(outcome.data) <= self.config.max_decompressed_bytes:
                    return outcome.data
        return None

    def decode_result(
        self,
        blob: bytes,
        event_spec_key_hint: str | None = None,
        fallback_sequence: int = 0,
    ) -> DecodeResult:
        """Decode a blob and report which interpretation succeeded."""
        if not blob:
            return DecodeResult(lines=[], path=DecodePath.NOT_RECOGNIZED)

        direct = self._decode_direct(blob, event_spec_key_hint, fallback_sequence)
        if direct is not None:
            lines, from_container = direct
            return DecodeResult(
                lines=lines,
                path=DecodePath.CONTAINER if from_container else DecodePath.SINGLE,
            )

        unpacked = self._try_unpack(blob)
        if unpacked is not None:
            direct = self._decode_direct(unpacked, event_spec_key_hint, fallback_sequence)
            if direct is not None:
                return DecodeResult(lines=direct[0], path=DecodePath.UNPACKED)

        if self.config.try_decompression:
            uncompressed = try_decompress(blob, max_bytes=self.config.max_decompressed_bytes)
            if uncompressed is not None:
                direct = self._decode_direct(uncompressed, event_spec_key_hint, fallback_sequence)
                if direct is None:
                    unpacked = self._try_unpack(uncompressed)
                    if unpacked is not None:
                        direct = self._decode_direct(unpacked, event_spec_key_hint, fallback_sequence)
                if direct is not None:
                    lines, from_container = direct
                    return DecodeResult(
                        lines=lines,
                        path=(
                            DecodePath.COMPRESSED_CONTAINER
                            if from_container
                            else DecodePath.COMPRESSED_SINGLE
                        ),
                    )

        logger.debug("Blob format not recognized (%s bytes)", len(blob))
        return DecodeResult(lines=[], path=DecodePath.NOT_RECOGNIZED)

    def decode(
        self,
        blob: bytes,
        event_spec_key_hint: str | None = None,
        fallback_sequence: int = 0,
    ) -> list[DecodedLine]:
        """Decode a blob into lines; empty when the format is not recognized."""
        return self.decode_result(blob, event_spec_key_hint, fallback_sequence).lines
