"""Structured-output recovery pipeline.

    fences -> sanitizer -> structure -> duplicates -> schema
                                                       |
                                            (parse failure only)
                                                       v
                                                    fallback

``recover`` is a pure function: every piece of state, including the repair
telemetry, lives in the value it returns, so concurrent calls cannot see
each other's results.
"""

from __future__ import annotations

import logging

from ..config import RecoveryConfig
from ..exceptions import EmptyOrNullCompletion, NoJsonFound, StructuralParseError
from .duplicates import resolve_duplicate_keys
from .fallback import extract_fallback
from .fences import strip_fences
from .models import FailureCause, RecoveryFailure, RecoveryResult, RepairTelemetry
from .sanitizer import sanitize
from .schema import parse_document
from .structure import repair_structure

logger = logging.getLogger("asset-recovery")


def _preview(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + f"... [{len(text) - limit} more chars]"


def recover(
    raw_completion: str | None, config: RecoveryConfig | None = None
) -> RecoveryResult | RecoveryFailure:
    """Recover asset records from a raw LLM completion.

    Returns a RecoveryResult on success (possibly via fallback extraction)
    or a RecoveryFailure describing why nothing could be recovered. Never
    raises for malformed input.
    """
    if config is None:
        config = RecoveryConfig()

    try:
        candidate = strip_fences(raw_completion)
    except EmptyOrNullCompletion as e:
        logger.warning("Completion is empty; nothing to recover")
        return RecoveryFailure(
            cause=FailureCause.EMPTY_OR_NULL_COMPLETION,
            raw_text=raw_completion or "",
            detail=str(e),
        )
    except NoJsonFound as e:
        logger.warning(
            "No JSON in completion: %s",
            _preview(raw_completion, config.log_preview_chars),
        )
        return RecoveryFailure(
            cause=FailureCause.NO_JSON_FOUND,
            raw_text=raw_completion,
            partially_cleaned_text=raw_completion.strip(),
            detail=str(e),
        )

    sanitized = sanitize(candidate)
    if sanitized != candidate:
        logger.debug(
            "Sanitized string values (%d -> %d chars)", len(candidate), len(sanitized)
        )
    repair = repair_structure(sanitized, config)
    deduped = resolve_duplicate_keys(repair.text, config.duplicable_fields)
    telemetry = RepairTelemetry(
        repair_attempted=repair.repair_attempted,
        objects_saved=repair.objects_saved,
        duplicates_removed=deduped.removed,
    )

    try:
        parsed = parse_document(deduped.text, raw_text=raw_completion, config=config)
    except StructuralParseError as e:
        logger.warning("Full-document parse failed: %s", e)
        if config.fallback.enabled:
            extraction = extract_fallback(raw_completion, config)
            if extraction.records:
                return RecoveryResult(
                    records=extraction.records,
                    telemetry=extraction.telemetry,
                )
        logger.warning(
            "Unrecoverable completion: %s",
            _preview(raw_completion, config.log_preview_chars),
        )
        return RecoveryFailure(
            cause=FailureCause.STRUCTURAL_PARSE_ERROR,
            raw_text=raw_completion,
            partially_cleaned_text=e.cleaned_text or deduped.text,
            detail=str(e),
        )

    logger.debug(
        "Recovered %d record(s); objects_saved=%d duplicates_removed=%d",
        len(parsed.records),
        telemetry.objects_saved,
        telemetry.duplicates_removed,
    )
    return RecoveryResult(
        records=parsed.records,
        reasoning=parsed.reasoning,
        confidence=parsed.confidence,
        telemetry=telemetry,
    )
