"""Core data models for event-rules spec decoding."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class RecordType(IntEnum):
    """Base record types (low byte of the record-type tag)."""

    EVENT = 1
    BF = 2
    WHILE = 3
    ENDWHILE = 4
    IF = 5
    ELSE = 6
    ENDIF = 7
    COMMENT = 9
    ASSIGN = 12
    SLBF = 14
    FI = 15
    OPTIONS = 16
    NER = 17
    VARIABLE = 18
    RI = 19
    FILEIO_OP = 20
    ELSEIF = 23


# High-bit flag carried on disabled ("no-op") records.
NOP_FLAG = 0x100


def base_record_type(tag: int) -> int:
    """Mask off the flag bits of a record-type tag."""
    return tag & 0xFF


class DecodePath(str, Enum):
    """Which interpretation produced the decoded lines."""

    CONTAINER = "container"
    SINGLE = "single"
    UNPACKED = "unpacked"
    COMPRESSED_CONTAINER = "compressed-container"
    COMPRESSED_SINGLE = "compressed-single"
    NOT_RECOGNIZED = "not-recognized"


@dataclass(frozen=True, slots=True)
class FramingCandidate:
    """Framing parameters: length-prefix width and identifier char width."""

    size_length: int  # 4 or 8 bytes
    char_size: int  # 2 = UTF-16LE, 1 = single-byte

    @property
    def label(self) -> str:
        enc = "utf16" if self.char_size == 2 else "ascii"
        return f"size{self.size_length}/{enc}"


@dataclass(frozen=True, slots=True)
class RecordHeader:
    """Header fields of one single record, located with a framing candidate."""

    size_length: int
    record_length: int  # self-reported; validated to be in (0, len(buffer)]
    event_spec_key_offset: int
    event_spec_key_bytes: int
    char_size: int
    sequence_offset: int
    record_type_offset: int
    payload_offset: int
    record_type: int  # raw 16-bit tag, flags included
    event_spec_key: str = ""

    @property
    def base_type(self) -> int:
        return base_record_type(self.record_type)

    @property
    def candidate(self) -> FramingCandidate:
        return FramingCandidate(size_length=self.size_length, char_size=self.char_size)


@dataclass(frozen=True, slots=True)
class MultiRecordContainer:
    """Header of a blob packing several size-prefixed records."""

    total_length: int
    event_spec_key: str
    record_count: int
    records_offset: int
    size_length: int
    char_size: int

    @property
    def candidate(self) -> FramingCandidate:
        return FramingCandidate(size_length=self.size_length, char_size=self.char_size)


@dataclass(frozen=True, slots=True)
class DecodedLine:
    """One human-readable line decoded from a record."""

    sequence: int
    record_type: int  # base type, 0 for non-record lines (e.g. XML)
    text: str
    indent_level: int = 0


@dataclass(frozen=True, slots=True)
class DecodeResult:
    """Decoded lines plus the path that produced them."""

    lines: list[DecodedLine]
    path: DecodePath

    @property
    def recognized(self) -> bool:
        return self.path != DecodePath.NOT_RECOGNIZED


# Record variants (tagged union over the record type).


@dataclass(frozen=True, slots=True)
class Event:
    text: str = ""


@dataclass(frozen=True, slots=True)
class BusinessFunctionCall:
    name: str


@dataclass(frozen=True, slots=True)
class NamedEventRuleCall:
    name: str


@dataclass(frozen=True, slots=True)
class Comment:
    text: str


@dataclass(frozen=True, slots=True)
class Variable:
    name: str


@dataclass(frozen=True, slots=True)
class FormInteraction:
    application: str
    form: str


@dataclass(frozen=True, slots=True)
class ReportInteraction:
    report: str


@dataclass(frozen=True, slots=True)
class FileIoOperation:
    operation_code: int
    file_type_code: int
    file_name: str


@dataclass(frozen=True, slots=True)
class Generic:
    """Any record rendered from its trailing text (or its fallback label)."""

    record_type: int
    text: str = ""


RecordVariant = (
    Event
    | BusinessFunctionCall
    | NamedEventRuleCall
    | Comment
    | Variable
    | FormInteraction
    | ReportInteraction
    | FileIoOperation
    | Generic
)
