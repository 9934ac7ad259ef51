"""Fallback extraction for completions that never parse as a whole.

Two strategies, tried in order:

  1. Regex-match individual ``{"asset_name": ...}`` object spans anywhere
     in the text and repair/parse each one on its own.
  2. Only if (1) found nothing: find the start of the records array even if
     it is never closed, split the rest on ``}, {`` boundaries, and
     repair/parse each fragment.

Either way a record is kept only if it has both a name and a
specification. Losing some records is acceptable here; this is the last
step before the caller falls back to rule-generated assets.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field

from ..config import RecoveryConfig
from ..exceptions import StructuralParseError
from .duplicates import resolve_duplicate_keys
from .models import CanonicalRecord, RepairTelemetry
from .sanitizer import sanitize
from .scanner import TokenKind, find_matching, tokenize
from .schema import parse_document
from .structure import repair_structure

logger = logging.getLogger("asset-recovery")

_FRAGMENT_BOUNDARY = re.compile(r"(?<=\})\s*,\s*(?=\{)")


@dataclass
class FallbackExtraction:
    records: list[CanonicalRecord] = field(default_factory=list)
    telemetry: RepairTelemetry = field(default_factory=RepairTelemetry)
    strategy: str | None = None  # "object_spans" | "array_fragments" | None


def _object_pattern(primary_key: str, max_chars: int) -> re.Pattern:
    # Strings are matched whole, so a "}" inside a value does not end the span.
    return re.compile(
        r'\{\s*"' + re.escape(primary_key) + r'"\s*:'
        r'(?:"(?:[^"\\]|\\.)*"|[^{}"]){0,' + str(max_chars) + r"}\}",
        re.DOTALL,
    )


def _repair_and_parse(
    candidate: str, config: RecoveryConfig
) -> tuple[list[CanonicalRecord], RepairTelemetry]:
    """Run sanitize -> structural repair -> dedupe -> parse on one object.

    The object is wrapped in a one-element records array first, so a
    merged span can still be split into several records.
    """
    array_key = config.document.array_keys[0]
    document = "{" + json.dumps(array_key) + ": [" + candidate + "]}"
    sanitized = sanitize(document)
    repair = repair_structure(sanitized, config)
    deduped = resolve_duplicate_keys(repair.text, config.duplicable_fields)
    parsed = parse_document(deduped.text, raw_text=candidate, config=config)
    telemetry = RepairTelemetry(
        repair_attempted=repair.repair_attempted,
        objects_saved=repair.objects_saved,
        duplicates_removed=deduped.removed,
    )
    return parsed.records, telemetry


def _complete(record: CanonicalRecord) -> bool:
    return bool(record.name and record.specification_text)


def _collect(
    candidates: list[str], config: RecoveryConfig
) -> tuple[list[CanonicalRecord], RepairTelemetry]:
    records: list[CanonicalRecord] = []
    telemetry = RepairTelemetry()
    for candidate in candidates:
        try:
            parsed, candidate_telemetry = _repair_and_parse(candidate, config)
        except StructuralParseError as e:
            logger.debug("Fallback candidate rejected: %s", e)
            continue
        kept = [record for record in parsed if _complete(record)]
        if kept:
            records.extend(kept)
            telemetry = telemetry.merge(candidate_telemetry)
    return records, telemetry


def _object_spans(text: str, config: RecoveryConfig) -> list[str]:
    pattern = _object_pattern(
        config.document.primary_key, config.fallback.max_span_chars
    )
    return [match.group(0) for match in pattern.finditer(text)]


def _leading_object(fragment: str) -> str | None:
    """The first balanced ``{ ... }`` of a fragment, or None if truncated."""
    tokens = tokenize(fragment)
    for index, token in enumerate(tokens):
        if token.kind is TokenKind.OPEN_OBJECT:
            close = find_matching(tokens, index)
            if close is None:
                return None
            return fragment[token.start : tokens[close].end]
    return None


def _array_fragments(text: str, config: RecoveryConfig) -> list[str]:
    keys = "|".join(re.escape(key) for key in config.document.array_keys)
    start = re.search(r'"(?:' + keys + r')"\s*:\s*\[', text)
    if start is None:
        return []
    fragments = []
    for piece in _FRAGMENT_BOUNDARY.split(text[start.end() :]):
        candidate = _leading_object(piece)
        if candidate is not None:
            fragments.append(candidate)
    return fragments


def extract_fallback(text: str | None, config: RecoveryConfig) -> FallbackExtraction:
    """Best-effort record extraction. Never raises; may return no records."""
    if not text:
        return FallbackExtraction()

    records, telemetry = _collect(_object_spans(text, config), config)
    if records:
        logger.info("Fallback recovered %d record(s) from object spans", len(records))
        return FallbackExtraction(
            records=records,
            telemetry=telemetry.merge(RepairTelemetry(fallback_used=True)),
            strategy="object_spans",
        )

    records, telemetry = _collect(_array_fragments(text, config), config)
    if records:
        logger.info(
            "Fallback recovered %d record(s) from array fragments", len(records)
        )
        return FallbackExtraction(
            records=records,
            telemetry=telemetry.merge(RepairTelemetry(fallback_used=True)),
            strategy="array_fragments",
        )

    logger.debug("Fallback extraction found no complete records")
    return FallbackExtraction()
