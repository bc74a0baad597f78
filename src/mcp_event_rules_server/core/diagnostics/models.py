"""Diagnostics report models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ..unpack import UnpackStatus

BlobSource = Literal["raw", "uncompressed"]
FramingKind = Literal["header", "container"]


class FramingAttempt(BaseModel):
    source: BlobSource = Field(description="Which buffer was probed.")
    kind: FramingKind = Field(description="Single-record header or multi-record container.")
    size_length: int = Field(description="Length-prefix width in bytes (4 or 8).")
    char_size: int = Field(description="Event spec key char width (2 = UTF-16, 1 = single-byte).")
    status: Literal["valid", "invalid", "error"] = "invalid"
    length: int = Field(default=0, description="Self-reported record/container length when valid.")
    record_type: int | None = Field(default=None, description="Base record type for a valid header.")
    record_count: int | None = Field(default=None, description="Record count for a valid container.")
    event_spec_key: str | None = None
    error: str | None = None


class UnpackAttempt(BaseModel):
    source: BlobSource
    flavor: Literal["standard", "b733"]
    byte_order: Literal["little", "big"]
    status: UnpackStatus = UnpackStatus.UNRESOLVED_BLOB_FORMAT
    unpacked_length: int = 0
    looks_like_spec: bool = False
    error: str | None = None


class DecodeDiagnostics(BaseModel):
    """Every framing/unpack strategy tried against one blob, with its outcome."""

    sequence: int = 0
    blob_size: int = 0
    head_hex: str = ""
    raw_looks_like_spec: bool = False
    uncompressed: bool = False
    uncompressed_size: int = 0
    uncompressed_looks_like_spec: bool = False
    decode_path: str = Field(default="not-recognized", description="Path the decoder would take.")
    line_count: int = 0
    framing_attempts: list[FramingAttempt] = Field(default_factory=list)
    unpack_attempts: list[UnpackAttempt] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
