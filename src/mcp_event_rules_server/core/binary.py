"""Little-endian field readers over raw spec buffers.

Every reader is bounds-checked and returns a neutral value (0 or "") instead of
raising when the field does not fit in the buffer.
"""

from __future__ import annotations

import struct

_INT16 = struct.Struct("<h")
_UINT16 = struct.Struct("<H")
_INT32 = struct.Struct("<i")
_INT64 = struct.Struct("<q")


def _unpack(fmt: struct.Struct, buffer: bytes, offset: int) -> int:
    if offset < 0 or offset + fmt.size > len(buffer):
        return 0
    return fmt.unpack_from(buffer, offset)[0]


def read_int16(buffer: bytes, offset: int) -> int:
    return _unpack(_INT16, buffer, offset)


def read_uint16(buffer: bytes, offset: int) -> int:
    return _unpack(_UINT16, buffer, offset)


def read_int32(buffer: bytes, offset: int) -> int:
    return _unpack(_INT32, buffer, offset)


def read_size(buffer: bytes, offset: int, size_length: int) -> int:
    """Read a signed length prefix of 4 or 8 bytes."""
    if size_length == 8:
        return _unpack(_INT64, buffer, offset)
    return _unpack(_INT32, buffer, offset)


def read_fixed_string(buffer: bytes, offset: int, char_count: int, char_size: int = 2) -> str:
    """Read a fixed-width text field, trimming trailing NULs and spaces."""
    if offset < 0 or offset >= len(buffer) or char_count <= 0:
        return ""
    if char_size <= 1:
        count = min(char_count, len(buffer) - offset)
        if count <= 0:
            return ""
        text = buffer[offset : offset + count].decode("ascii", errors="replace")
        return text.rstrip("\x00 ")

    byte_count = min(char_count * 2, len(buffer) - offset)
    text = buffer[offset : offset + byte_count].decode("utf-16-le", errors="replace")
    return text.rstrip("\x00 ")


def align_down(value: int) -> int:
    """Align a byte offset down to a UTF-16 code unit boundary."""
    return value & ~1


def find_pattern(buffer: bytes, pattern: bytes) -> int:
    """Return the first offset of pattern in buffer, or -1."""
    if not pattern or len(pattern) > len(buffer):
        return -1
    return buffer.find(pattern)


def to_hex(data: bytes, max_bytes: int) -> str:
    """Uppercase, space separated hex dump of the first max_bytes bytes."""
    if not data:
        return ""
    return " ".join(f"{b:02X}" for b in data[:max_bytes])
