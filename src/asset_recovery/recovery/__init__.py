"""Structured-output recovery pipeline for LLM asset completions."""

from .fallback import FallbackExtraction, extract_fallback
from .fences import strip_fences
from .models import (
    CanonicalRecord,
    FailureCause,
    RecoveryFailure,
    RecoveryResult,
    RepairTelemetry,
)
from .pipeline import recover
from .sanitizer import sanitize
from .schema import parse_document
from .structure import repair_structure

__all__ = [
    "CanonicalRecord",
    "FailureCause",
    "FallbackExtraction",
    "RecoveryFailure",
    "RecoveryResult",
    "RepairTelemetry",
    "extract_fallback",
    "parse_document",
    "recover",
    "repair_structure",
    "sanitize",
    "strip_fences",
]
