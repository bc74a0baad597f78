"""Decode diagnostics package."""

from __future__ import annotations

from .models import DecodeDiagnostics, FramingAttempt, UnpackAttempt
from .service import diagnose, diagnose_many

__all__ = [
    "DecodeDiagnostics",
    "FramingAttempt",
    "UnpackAttempt",
    "diagnose",
    "diagnose_many",
]
