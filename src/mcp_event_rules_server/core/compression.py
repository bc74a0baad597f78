"""Bounded decompression of compressed spec wrappers."""

from __future__ import annotations

import logging
import zlib

logger = logging.getLogger(__name__)

MAX_DECOMPRESSED_BYTES = 8 * 1024 * 1024


def _inflate(blob: bytes, *, wbits: int, max_bytes: int) -> bytes | None:
    """Inflate with the given window bits; None on error, overflow or empty output."""
    decoder = zlib.decompressobj(wbits)
    try:
        out = decoder.decompress(blob, max_bytes + 1)
    except zlib.error as exc:
        logger.debug("inflate(wbits=%s) failed: %s", wbits, exc)
        return None
    if len(out) > max_bytes or decoder.unconsumed_tail:
        logger.debug("inflate(wbits=%s) exceeded %s bytes", wbits, max_bytes)
        return None
    if not decoder.eof:
        logger.debug("inflate(wbits=%s) hit a truncated stream", wbits)
        return None
    if not out:
        return None
    return out


def try_decompress(blob: bytes, *, max_bytes: int = MAX_DECOMPRESSED_BYTES) -> bytes | None:
    """Return the decompressed payload, or None when the blob is not compressed.

    Raw deflate is tried before zlib-wrapped data.
    """
    if not blob:
        return None
    out = _inflate(blob, wbits=-zlib.MAX_WBITS, max_bytes=max_bytes)
    if out is not None:
        return out
    return _inflate(blob, wbits=zlib.MAX_WBITS, max_bytes=max_bytes)
