"""Framing probe interface, candidate order and event spec key matching."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

from ..binary import find_pattern
from ..models import FramingCandidate

EVENT_SPEC_KEY_CHARS = 37
FORMAT_SIZE = 4
SEQUENCE_SIZE = 2
RECORD_TYPE_SIZE = 2
RECORD_COUNT_SIZE = 4

MAX_BASE_RECORD_TYPE = 40
MAX_RECORD_COUNT = 200_000

SIZE_LENGTH_CANDIDATES: tuple[int, ...] = (4, 8)
CHAR_SIZE_CANDIDATES: tuple[int, ...] = (2, 1)

T_co = TypeVar("T_co", covariant=True)


class FramingProbe(Protocol[T_co]):
    """Probe interface: return the located structure if the candidate fits, else None."""

    def read(self, buffer: bytes, candidate: FramingCandidate) -> T_co | None:
        """Validate the buffer at offset 0 under the given framing."""
        ...

    def size_length_for_match(self, match: KeyMatch) -> int:
        """Length-prefix width implied by an event spec key found at match.offset."""
        ...


@dataclass(frozen=True, slots=True)
class KeyMatch:
    """Offset of a literal event spec key hint and the char width it matched as."""

    offset: int
    char_size: int


def default_candidates() -> Sequence[FramingCandidate]:
    """Blind-scan order: size 4 before 8, UTF-16 before single-byte."""
    return tuple(
        FramingCandidate(size_length=size_length, char_size=char_size)
        for size_length in SIZE_LENGTH_CANDIDATES
        for char_size in CHAR_SIZE_CANDIDATES
    )


def is_size_length_candidate(size_length: int) -> bool:
    return size_length in SIZE_LENGTH_CANDIDATES


def has_valid_event_spec_key(key: str) -> bool:
    """Event spec keys are GUID-like; a separator is the cheap plausibility check."""
    return bool(key.strip()) and "-" in key.strip()


def find_key_offsets(buffer: bytes, event_spec_key: str) -> Iterator[KeyMatch]:
    """Yield the first UTF-16LE match of the key, then the first single-byte match."""
    if not event_spec_key or not event_spec_key.strip():
        return

    offset = find_pattern(buffer, event_spec_key.encode("utf-16-le"))
    if offset >= 0:
        yield KeyMatch(offset=offset, char_size=2)

    offset = find_pattern(buffer, event_spec_key.encode("ascii", errors="replace"))
    if offset >= 0:
        yield KeyMatch(offset=offset, char_size=1)


def read_at_match(probe: FramingProbe[T_co], buffer: bytes, match: KeyMatch) -> T_co | None:
    """Validate the buffer with the framing implied by a key match."""
    size_length = probe.size_length_for_match(match)
    if not is_size_length_candidate(size_length):
        return None
    return probe.read(buffer, FramingCandidate(size_length=size_length, char_size=match.char_size))


def scan_candidates(
    probe: FramingProbe[T_co],
    buffer: bytes,
    candidates: Sequence[FramingCandidate] | None = None,
) -> T_co | None:
    """Blind scan at offset 0; first candidate that validates wins."""
    for candidate in candidates or default_candidates():
        found = probe.read(buffer, candidate)
        if found is not None:
            return found
    return None


def resolve_with(
    probe: FramingProbe[T_co],
    buffer: bytes,
    event_spec_key_hint: str | None = None,
    *,
    candidates: Sequence[FramingCandidate] | None = None,
) -> T_co | None:
    """Anchor on the key hint first, then blind-scan the candidates at offset 0.

    First success wins; nothing here raises for malformed input.
    """
    for match in find_key_offsets(buffer, event_spec_key_hint or ""):
        found = read_at_match(probe, buffer, match)
        if found is not None:
            return found
    return scan_candidates(probe, buffer, candidates)
