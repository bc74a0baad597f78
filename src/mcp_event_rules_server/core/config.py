"""Decoder configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from .compression import MAX_DECOMPRESSED_BYTES
from .framing import MAX_RECORD_COUNT

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class DecodeConfig:
    max_decompressed_bytes: int = MAX_DECOMPRESSED_BYTES
    max_record_count: int = MAX_RECORD_COUNT
    try_decompression: bool = True

    # Native unpacking needs an external SpecUnpacker; off unless asked for.
    enable_native_unpack: bool = False

    head_hex_bytes: int = 64


def _positive_int_env(name: str) -> int | None:
    env = os.getenv(name)
    if env is None or env == "":
        return None
    try:
        value = int(env)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 1:
        raise ValueError(f"{name} must be >= 1")
    return value


def resolve_decode_config(cfg: DecodeConfig | None = None) -> DecodeConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = DecodeConfig()

    max_bytes = _positive_int_env("ER_DECODE_MAX_DECOMPRESSED_BYTES")
    if max_bytes is not None and max_bytes != cfg.max_decompressed_bytes:
        cfg = replace(cfg, max_decompressed_bytes=max_bytes)

    disable = os.getenv("ER_DECODE_DISABLE_DECOMPRESSION", "")
    if disable.strip().lower() in _TRUTHY and cfg.try_decompression:
        cfg = replace(cfg, try_decompression=False)

    return cfg
