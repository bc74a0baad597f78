"""Native spec unpacking interface.

The vendor runtime can convert packed specs between code pages, OS types and
byte orders. This package does not ship that runtime; callers that have it plug
in a SpecUnpacker.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Protocol


class ByteOrder(str, Enum):
    LITTLE_ENDIAN = "little"
    BIG_ENDIAN = "big"


class UnpackFlavor(str, Enum):
    """Current unpack entry point vs the legacy (B733) one."""

    STANDARD = "standard"
    B733 = "b733"


class UnpackStatus(IntEnum):
    SUCCESS = 0
    INVALID_NULL_INPUT = 1
    CHECK_FAILS = 2
    OUT_OF_MEMORY = 3
    UNRESOLVED_BLOB_FORMAT = 4
    UNKNOWN_SPEC_TYPE = 5
    INVALID_ER_TYPE = 6
    INVALID_DS_OBJ_TYPE = 7
    INVALID_DR_TYPE = 8
    INVALID_SECTION_TYPE = 9
    CONVERT_BLOB_ERROR = 10


@dataclass(frozen=True, slots=True)
class UnpackOutcome:
    status: UnpackStatus
    data: bytes = b""


class SpecUnpacker(Protocol):
    """Unpacker interface: convert a packed spec blob to the local layout."""

    def unpack(self, blob: bytes, *, byte_order: ByteOrder, flavor: UnpackFlavor) -> UnpackOutcome:
        ...


UNPACK_ATTEMPTS: tuple[tuple[UnpackFlavor, ByteOrder], ...] = (
    (UnpackFlavor.STANDARD, ByteOrder.LITTLE_ENDIAN),
    (UnpackFlavor.STANDARD, ByteOrder.BIG_ENDIAN),
    (UnpackFlavor.B733, ByteOrder.LITTLE_ENDIAN),
    (UnpackFlavor.B733, ByteOrder.BIG_ENDIAN),
)
