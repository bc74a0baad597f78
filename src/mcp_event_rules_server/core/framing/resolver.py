"""Framing parameter discovery."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..models import FramingCandidate, MultiRecordContainer, RecordHeader
from .base import find_key_offsets, read_at_match, resolve_with, scan_candidates
from .container import ContainerHeaderProbe
from .header import RecordHeaderReader

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FormatCandidateResolver:
    """Find the framing that makes a buffer's structural fields self-consistent.

    Key hint matches are tried under both interpretations before any blind
    scan; at each step the single-record interpretation goes before the
    container one.
    """

    header_reader: RecordHeaderReader = RecordHeaderReader()
    container_probe: ContainerHeaderProbe = ContainerHeaderProbe()
    candidates: Sequence[FramingCandidate] | None = None

    def resolve_header(self, buffer: bytes, event_spec_key_hint: str | None = None) -> RecordHeader | None:
        return resolve_with(self.header_reader, buffer, event_spec_key_hint, candidates=self.candidates)

    def resolve_container(
        self, buffer: bytes, event_spec_key_hint: str | None = None
    ) -> MultiRecordContainer | None:
        return resolve_with(self.container_probe, buffer, event_spec_key_hint, candidates=self.candidates)

    def resolve(self, buffer: bytes, event_spec_key_hint: str | None = None) -> FramingCandidate | None:
        """Return the framing of the buffer, or None when nothing validates."""
        for match in find_key_offsets(buffer, event_spec_key_hint or ""):
            header = read_at_match(self.header_reader, buffer, match)
            if header is not None:
                return self._found("single-record", header)
            container = read_at_match(self.container_probe, buffer, match)
            if container is not None:
                return self._found("container", container)

        header = scan_candidates(self.header_reader, buffer, self.candidates)
        if header is not None:
            return self._found("single-record", header)
        container = scan_candidates(self.container_probe, buffer, self.candidates)
        if container is not None:
            return self._found("container", container)
        return None

    def looks_like_spec(self, buffer: bytes) -> bool:
        """True when either interpretation validates without a key hint."""
        return self.resolve(buffer) is not None

    @staticmethod
    def _found(kind: str, located: RecordHeader | MultiRecordContainer) -> FramingCandidate:
        logger.debug("Resolved %s framing %s", kind, located.candidate.label)
        return located.candidate
