"""Structural repair of merged asset records.

The most damaging failure mode of long completions is a *merged object*:
the model forgets to close one record and open the next, so two records
run together inside a single ``{ ... }``:

    [{"asset_name": "A", "tags": ["X"] "asset_name": "B", "tags": ["Y"]}]

Parsing that either fails or, with a lenient parser, silently keeps only
"B". The repairer finds such merge points and splices ``}, {`` into them.

A merge point is a record-level primary key (``"asset_name"``) directly
preceded, ignoring commas and whitespace, by either

  A. the ``]`` closing an array field, or
  B. the closing quote of a ``"key": "value"`` string field,

where a forward brace-depth scan from the previous primary key never sees
that earlier record close. Everything is computed on the scanner's token
stream, so braces and brackets inside strings never count.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ..config import RecoveryConfig
from .scanner import (
    Token,
    TokenKind,
    find_matching,
    previous_significant,
    splice,
    tokenize,
)

logger = logging.getLogger("asset-recovery")

RECORD_SEPARATOR = "}, {"


@dataclass(frozen=True)
class StructuralRepair:
    text: str
    repair_attempted: bool = False
    objects_saved: int = 0


def strip_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a ``}`` or ``]``."""
    tokens = tokenize(text)
    edits = []
    for index, token in enumerate(tokens[:-1]):
        if token.kind is TokenKind.COMMA and tokens[index + 1].kind in (
            TokenKind.CLOSE_OBJECT,
            TokenKind.CLOSE_ARRAY,
        ):
            edits.append((token.start, token.end, ""))
    return splice(text, edits) if edits else text


def find_array_span(
    text: str, array_keys: list[str], tokens: list[Token] | None = None
) -> tuple[int, int | None] | None:
    """Locate the records array.

    Returns ``(open_index, close_index)`` as token indices. ``close_index``
    is None when the array is never closed (truncated completion). Returns
    None when no configured array key is followed by ``[``.
    """
    if tokens is None:
        tokens = tokenize(text)
    for key in array_keys:
        needle = f'"{key}"'
        if needle not in text:
            continue
        for index, token in enumerate(tokens):
            if token.kind is not TokenKind.KEY or token.text(text) != needle:
                continue
            cursor = index + 1
            if cursor < len(tokens) and tokens[cursor].kind is TokenKind.COLON:
                cursor += 1
            if cursor < len(tokens) and tokens[cursor].kind is TokenKind.OPEN_ARRAY:
                close = find_matching(
                    tokens, cursor, (TokenKind.OPEN_ARRAY, TokenKind.CLOSE_ARRAY)
                )
                return cursor, close
    return None


def _merge_signature(tokens: list[Token], index: int | None) -> str | None:
    """Classify the token that ends the field before a primary key."""
    if index is None:
        return None
    token = tokens[index]
    if token.kind is TokenKind.CLOSE_ARRAY:
        return "A"
    if (
        token.kind is TokenKind.STRING
        and token.terminated
        and index >= 2
        and tokens[index - 1].kind is TokenKind.COLON
        and tokens[index - 2].kind is TokenKind.KEY
    ):
        return "B"
    return None


def _record_closed_between(tokens: list[Token], start: int, stop: int) -> bool:
    """Forward brace-depth scan; True if the record open at ``start`` closes."""
    depth = 0
    for token in tokens[start:stop]:
        if token.kind is TokenKind.OPEN_OBJECT:
            depth += 1
        elif token.kind is TokenKind.CLOSE_OBJECT:
            depth -= 1
            if depth < 0:
                return True
    return False


def repair_structure(text: str, config: RecoveryConfig) -> StructuralRepair:
    """Split merged records in the records array and strip trailing commas."""
    text = strip_trailing_commas(text)
    tokens = tokenize(text)
    span = find_array_span(text, config.document.array_keys, tokens)
    if span is None:
        return StructuralRepair(text=text)

    open_index, close_index = span
    stop = close_index if close_index is not None else len(tokens)
    body_start = tokens[open_index].end
    body_end = tokens[close_index].start if close_index is not None else len(text)

    primary = f'"{config.document.primary_key}"'
    body = text[body_start:body_end]
    if len(re.findall(re.escape(primary) + r"\s*:", body)) <= 1:
        return StructuralRepair(text=text)

    # Direct fields of a record sit one level below the array.
    record_depth = tokens[open_index].depth + 2
    edits: list[tuple[int, int, str]] = []
    last_primary: int | None = None

    for index in range(open_index + 1, stop):
        token = tokens[index]
        if (
            token.kind is not TokenKind.KEY
            or token.depth != record_depth
            or token.text(text) != primary
        ):
            continue
        if last_primary is not None:
            before = previous_significant(tokens, index)
            signature = _merge_signature(tokens, before)
            if signature and not _record_closed_between(tokens, last_primary, index):
                logger.debug(
                    "Merged record at offset %d (pattern %s)", token.start, signature
                )
                edits.append((tokens[before].end, token.start, RECORD_SEPARATOR))
        last_primary = index

    if not edits:
        return StructuralRepair(text=text)

    repaired = splice(text, edits)
    logger.info("Structural repair split %d merged record(s)", len(edits))
    return StructuralRepair(
        text=repaired, repair_attempted=True, objects_saved=len(edits)
    )
