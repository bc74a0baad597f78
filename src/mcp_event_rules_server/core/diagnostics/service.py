"""Best-effort decode diagnostics.

Runs every framing candidate, unpack flavour and byte order against a blob (raw
and, when it inflates, decompressed) and records each outcome. Nothing here
raises: a failing strategy is reported and the next one still runs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TypeVar

from ..binary import to_hex
from ..compression import try_decompress
from ..config import DecodeConfig
from ..decoder import SpecDecoder
from ..framing import ContainerHeaderProbe, RecordHeaderReader, default_candidates
from ..models import MultiRecordContainer, RecordHeader
from ..unpack import UNPACK_ATTEMPTS, ByteOrder, SpecUnpacker, UnpackFlavor, UnpackStatus
from .models import BlobSource, DecodeDiagnostics, FramingAttempt, UnpackAttempt

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _guard(errors: list[str], label: str, fn: Callable[[], T], default: T) -> T:
    """Run fn, recording any exception under label instead of raising."""
    try:
        return fn()
    except Exception as e:
        logger.warning("Diagnostics step %s failed: %s", label, e)
        errors.append(f"{label}: {e}")
        return default


def _framing_attempts(buffer: bytes, source: BlobSource, cfg: DecodeConfig) -> list[FramingAttempt]:
    header_reader = RecordHeaderReader()
    container_probe = ContainerHeaderProbe(max_record_count=cfg.max_record_count)
    attempts: list[FramingAttempt] = []

    for candidate in default_candidates():
        for kind in ("header", "container"):
            attempt = FramingAttempt(
                source=source,
                kind=kind,
                size_length=candidate.size_length,
                char_size=candidate.char_size,
            )
            try:
                if kind == "header":
                    header: RecordHeader | None = header_reader.read(buffer, candidate)
                    if header is not None:
                        attempt.status = "valid"
                        attempt.length = header.record_length
                        attempt.record_type = header.base_type
                        attempt.event_spec_key = header.event_spec_key
                else:
                    container: MultiRecordContainer | None = container_probe.read(buffer, candidate)
                    if container is not None:
                        attempt.status = "valid"
                        attempt.length = container.total_length
                        attempt.record_count = container.record_count
                        attempt.event_spec_key = container.event_spec_key
            except Exception as e:
                attempt.status = "error"
                attempt.error = str(e)
            attempts.append(attempt)
    return attempts


def _unpack_attempt(
    blob: bytes,
    *,
    source: BlobSource,
    flavor: UnpackFlavor,
    byte_order: ByteOrder,
    cfg: DecodeConfig,
    unpacker: SpecUnpacker | None,
    decoder: SpecDecoder,
) -> UnpackAttempt:
    attempt = UnpackAttempt(source=source, flavor=flavor.value, byte_order=byte_order.value)
    if not blob:
        attempt.status = UnpackStatus.INVALID_NULL_INPUT
        return attempt
    if not cfg.enable_native_unpack or unpacker is None:
        attempt.error = "Native unpack disabled"
        return attempt

    try:
        outcome = unpacker.unpack(blob, byte_order=byte_order, flavor=flavor)
    except Exception as e:
        attempt.error = str(e)
        return attempt

    attempt.status = outcome.status
    if outcome.status != UnpackStatus.SUCCESS or not outcome.data:
        return attempt
    if len(outcome.data) > cfg.max_decompressed_bytes:
        attempt.error = f"Unpacked size {len(outcome.data)} exceeds limit"
        return attempt
    attempt.unpacked_length = len(outcome.data)
    attempt.looks_like_spec = decoder.looks_like_spec(outcome.data)
    return attempt


def _unpack_attempts(
    blob: bytes,
    *,
    source: BlobSource,
    cfg: DecodeConfig,
    unpacker: SpecUnpacker | None,
    decoder: SpecDecoder,
    errors: list[str],
) -> list[UnpackAttempt]:
    out: list[UnpackAttempt] = []
    for flavor, byte_order in UNPACK_ATTEMPTS:
        attempt = _guard(
            errors,
            f"unpack:{source}:{flavor.value}:{byte_order.value}",
            lambda: _unpack_attempt(
                blob,
                source=source,
                flavor=flavor,
                byte_order=byte_order,
                cfg=cfg,
                unpacker=unpacker,
                decoder=decoder,
            ),
            None,
        )
        if attempt is not None:
            out.append(attempt)
    return out


def diagnose(
    blob: bytes,
    *,
    sequence: int = 0,
    config: DecodeConfig | None = None,
    unpacker: SpecUnpacker | None = None,
) -> DecodeDiagnostics:
    """Collect a diagnostics report for one blob."""
    cfg = config or DecodeConfig()
    decoder = SpecDecoder(config=cfg, unpacker=unpacker)
    report = DecodeDiagnostics(sequence=sequence, blob_size=len(blob or b""))
    if not blob:
        return report

    errors = report.errors
    report.head_hex = _guard(errors, "head_hex", lambda: to_hex(blob, cfg.head_hex_bytes), "")
    report.raw_looks_like_spec = _guard(errors, "looks_like:raw", lambda: decoder.looks_like_spec(blob), False)
    report.framing_attempts.extend(
        _guard(errors, "framing:raw", lambda: _framing_attempts(blob, "raw", cfg), [])
    )
    report.unpack_attempts.extend(
        _unpack_attempts(blob, source="raw", cfg=cfg, unpacker=unpacker, decoder=decoder, errors=errors)
    )

    uncompressed = _guard(
        errors,
        "decompress",
        lambda: try_decompress(blob, max_bytes=cfg.max_decompressed_bytes),
        None,
    )
    if uncompressed is not None:
        report.uncompressed = True
        report.uncompressed_size = len(uncompressed)
        report.uncompressed_looks_like_spec = _guard(
            errors, "looks_like:uncompressed", lambda: decoder.looks_like_spec(uncompressed), False
        )
        report.framing_attempts.extend(
            _guard(errors, "framing:uncompressed", lambda: _framing_attempts(uncompressed, "uncompressed", cfg), [])
        )
        report.unpack_attempts.extend(
            _unpack_attempts(
                uncompressed,
                source="uncompressed",
                cfg=cfg,
                unpacker=unpacker,
                decoder=decoder,
                errors=errors,
            )
        )

    result = _guard(errors, "decode", lambda: decoder.decode_result(blob, fallback_sequence=sequence), None)
    if result is not None:
        report.decode_path = result.path.value
        report.line_count = len(result.lines)
    return report


def diagnose_many(
    blobs: Iterable[tuple[int, bytes]],
    *,
    config: DecodeConfig | None = None,
    unpacker: SpecUnpacker | None = None,
) -> list[DecodeDiagnostics]:
    """Diagnose (sequence, blob) pairs, skipping empty blobs; ordered by sequence."""
    results = [
        diagnose(blob, sequence=sequence, config=config, unpacker=unpacker)
        for sequence, blob in blobs
        if blob
    ]
    return sorted(results, key=lambda r: r.sequence)
