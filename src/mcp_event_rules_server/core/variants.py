"""Per-record-type payload decoding.

Payload offsets are relative to the start of the record's union area and follow
the packed layout of the spec structures (UTF-16 text fields, 8-byte pointers).
"""

from __future__ import annotations

from dataclasses import dataclass

from .binary import align_down, read_fixed_string, read_int16, read_uint16
from .models import (
    BusinessFunctionCall,
    Comment,
    Event,
    FileIoOperation,
    FormInteraction,
    Generic,
    NamedEventRuleCall,
    RecordType,
    RecordVariant,
    ReportInteraction,
    Variable,
    base_record_type,
)

BF_NAME_OFFSET = 2  # after u16 param count
BF_NAME_CHARS = 33
COMMENT_TEXT_OFFSET = 0
COMMENT_TEXT_CHARS = 81
VARIABLE_NAME_OFFSET = 0
VARIABLE_NAME_CHARS = 31
NID_CHARS = 11
FI_APPLICATION_OFFSET = 16
FI_FORM_OFFSET = 70
RI_REPORT_OFFSET = 16
FILEIO_OPERATION_OFFSET = 0
FILEIO_TYPE_OFFSET = 2
FILEIO_NAME_OFFSET = 4

FILEIO_LABELS: tuple[str, ...] = (
    "OPEN",
    "CLOSE",
    "SELECT FROM",
    "FETCH_NEXT FROM",
    "INSERT INTO",
    "UPDATE",
    "DELETE FROM",
    "FETCH_SINGLE FROM",
    "SELECT ALL FROM",
)

_FALLBACK_LABELS: dict[int, str] = {
    RecordType.EVENT: "EVENT",
    RecordType.BF: "BUSINESS FUNCTION",
    RecordType.NER: "NAMED EVENT RULE",
    RecordType.IF: "IF",
    RecordType.ELSEIF: "ELSEIF",
    RecordType.ELSE: "ELSE",
    RecordType.ENDIF: "ENDIF",
    RecordType.WHILE: "WHILE",
    RecordType.ENDWHILE: "ENDWHILE",
    RecordType.ASSIGN: "ASSIGN",
    RecordType.SLBF: "SLBF",
    RecordType.FI: "FI",
    RecordType.RI: "RI",
    RecordType.FILEIO_OP: "FILEIO",
    RecordType.OPTIONS: "OPTIONS",
}


def fallback_label(record_type: int) -> str:
    """Label shown when a record carries no readable text."""
    return _FALLBACK_LABELS.get(record_type, f"TYPE {record_type}")


def fileio_label(operation_code: int) -> str:
    if 0 < operation_code <= len(FILEIO_LABELS):
        return FILEIO_LABELS[operation_code - 1]
    return "FILEIO"


def extract_trailing_text(buffer: bytes, record_length: int, char_size: int) -> str:
    """Decode the last non-zero run of the record, skipping its zero padding."""
    start = 0
    end = min(record_length, len(buffer))

    if char_size == 1:
        while end - 1 >= start and buffer[end - 1] == 0:
            end -= 1
        if end <= start:
            return ""
        cursor = end
        while cursor - 1 >= start and buffer[cursor - 1] != 0:
            cursor -= 1
        return read_fixed_string(buffer, cursor, end - cursor, 1)

    end = align_down(end)
    while end - 2 >= start and buffer[end - 2] == 0 and buffer[end - 1] == 0:
        end -= 2
    if end <= start:
        return ""
    cursor = end
    while cursor - 2 >= start and not (buffer[cursor - 2] == 0 and buffer[cursor - 1] == 0):
        cursor -= 2
    if end - cursor <= 0:
        return ""
    return read_fixed_string(buffer, cursor, (end - cursor) // 2, 2)


def _trailing_variant(base: int, text: str) -> RecordVariant:
    if base == RecordType.EVENT:
        return Event(text=text)
    return Generic(record_type=base, text=text)


@dataclass(frozen=True, slots=True)
class RecordVariantDecoder:
    """Turn a record payload into a variant and render it as one line of text."""

    @staticmethod
    def classify(
        record_type: int,
        buffer: bytes,
        payload_offset: int,
        char_size: int,
        record_length: int | None = None,
    ) -> RecordVariant:
        """Read the variant-specific fields; blank fields fall back to trailing text."""
        base = base_record_type(record_type)
        if record_length is None:
            record_length = len(buffer)
        if payload_offset >= len(buffer):
            return _trailing_variant(base, "")
        if char_size == 1:
            # Single-byte blobs do not keep the packed union offsets.
            return _trailing_variant(base, extract_trailing_text(buffer, record_length, char_size))

        start = payload_offset
        if base in (RecordType.BF, RecordType.NER):
            name = read_fixed_string(buffer, start + BF_NAME_OFFSET, BF_NAME_CHARS, char_size)
            if name.strip():
                if base == RecordType.BF:
                    return BusinessFunctionCall(name=name)
                return NamedEventRuleCall(name=name)
        elif base == RecordType.COMMENT:
            text = read_fixed_string(buffer, start + COMMENT_TEXT_OFFSET, COMMENT_TEXT_CHARS, char_size)
            if text.strip():
                return Comment(text=text)
        elif base == RecordType.VARIABLE:
            name = read_fixed_string(buffer, start + VARIABLE_NAME_OFFSET, VARIABLE_NAME_CHARS, char_size)
            if name.strip():
                return Variable(name=name)
        elif base == RecordType.FI:
            app = read_fixed_string(buffer, start + FI_APPLICATION_OFFSET, NID_CHARS, char_size)
            form = read_fixed_string(buffer, start + FI_FORM_OFFSET, NID_CHARS, char_size)
            if app.strip() or form.strip():
                return FormInteraction(application=app, form=form)
        elif base == RecordType.RI:
            report = read_fixed_string(buffer, start + RI_REPORT_OFFSET, NID_CHARS, char_size)
            if report.strip():
                return ReportInteraction(report=report)
        elif base == RecordType.FILEIO_OP:
            op = read_uint16(buffer, start + FILEIO_OPERATION_OFFSET)
            file_type = read_int16(buffer, start + FILEIO_TYPE_OFFSET)
            name = read_fixed_string(buffer, start + FILEIO_NAME_OFFSET, NID_CHARS, char_size)
            if op or name.strip():
                return FileIoOperation(operation_code=op, file_type_code=file_type, file_name=name)

        return _trailing_variant(base, extract_trailing_text(buffer, record_length, char_size))

    @staticmethod
    def render(variant: RecordVariant) -> str:
        """Render a variant; may return blank text for Event/Generic."""
        if isinstance(variant, (BusinessFunctionCall, NamedEventRuleCall)):
            return variant.name
        if isinstance(variant, Comment):
            return variant.text
        if isinstance(variant, Variable):
            return f"VARIABLE - {variant.name}".rstrip()
        if isinstance(variant, FormInteraction):
            return f"FI : CALL(Application: {variant.application} Form: {variant.form})".rstrip()
        if isinstance(variant, ReportInteraction):
            return f"RI : CALL(UBE: {variant.report})".rstrip()
        if isinstance(variant, FileIoOperation):
            kind = "Table" if variant.file_type_code == 0 else "View"
            return f"{fileio_label(variant.operation_code)} {kind} {variant.file_name}".rstrip()
        if isinstance(variant, (Event, Generic)):
            return variant.text
        raise TypeError(f"Unsupported record variant: {type(variant).__name__}")

    def decode_text(
        self,
        record_type: int,
        buffer: bytes,
        payload_offset: int,
        char_size: int,
        record_length: int | None = None,
    ) -> str:
        """Readable text for a record; blank results become the type's fallback label."""
        variant = self.classify(record_type, buffer, payload_offset, char_size, record_length)
        text = self.render(variant)
        if not text.strip():
            return fallback_label(base_record_type(record_type))
        return text
