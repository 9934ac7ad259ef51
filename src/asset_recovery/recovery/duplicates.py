"""Last-occurrence-wins resolution for a fixed set of duplicable keys.

Repeated keys inside one object come from the same failure that produces
merged records (and from plain model repetition). ``json.loads`` already
keeps the last value, but a half-repaired object can still carry an
earlier, stale entry next to a malformed one, so the earlier entries are
removed from the text itself.

Only the configured field names are handled; any other repeated key is
left alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .scanner import (
    CLOSERS,
    OPENERS,
    Token,
    TokenKind,
    find_matching,
    splice,
    tokenize,
)

logger = logging.getLogger("asset-recovery")


@dataclass(frozen=True)
class DuplicateResolution:
    text: str
    removed: int = 0


def _entry_span(text: str, tokens: list[Token], key_index: int) -> tuple[int, int]:
    """Character span of ``"key": value`` plus its trailing comma."""
    last = key_index
    cursor = key_index + 1
    if cursor < len(tokens) and tokens[cursor].kind is TokenKind.COLON:
        last = cursor
        cursor += 1
    if cursor < len(tokens):
        value = tokens[cursor]
        if value.kind in OPENERS:
            close = find_matching(tokens, cursor)
            last = close if close is not None else len(tokens) - 1
        elif value.kind in (TokenKind.STRING, TokenKind.SCALAR):
            last = cursor

    end = tokens[last].end
    following = last + 1
    if following < len(tokens) and tokens[following].kind is TokenKind.COMMA:
        end = tokens[following].end
        while end < len(text) and text[end] in " \t\r\n":
            end += 1
    return tokens[key_index].start, end


def resolve_duplicate_keys(text: str, fields: list[str]) -> DuplicateResolution:
    """Keep only the last occurrence of each listed field within an object."""
    wanted = {f'"{field}"' for field in fields}
    if not wanted or not any(name in text for name in wanted):
        return DuplicateResolution(text=text)

    tokens = tokenize(text)
    open_stack: list[int] = []
    occurrences: dict[tuple[int, str], list[int]] = {}

    for index, token in enumerate(tokens):
        if token.kind in OPENERS:
            open_stack.append(index)
        elif token.kind in CLOSERS:
            if open_stack:
                open_stack.pop()
        elif token.kind is TokenKind.KEY and open_stack:
            owner = open_stack[-1]
            name = token.text(text)
            if name in wanted and tokens[owner].kind is TokenKind.OPEN_OBJECT:
                occurrences.setdefault((owner, name), []).append(index)

    edits = []
    for (_, name), indices in occurrences.items():
        for index in indices[:-1]:
            start, end = _entry_span(text, tokens, index)
            edits.append((start, end, ""))
            logger.debug("Dropping earlier duplicate %s at offset %d", name, start)

    # An entry nested inside one already being removed goes with it.
    kept: list[tuple[int, int, str]] = []
    for edit in sorted(edits):
        if kept and edit[0] < kept[-1][1]:
            continue
        kept.append(edit)

    if not kept:
        return DuplicateResolution(text=text)
    return DuplicateResolution(text=splice(text, kept), removed=len(kept))
