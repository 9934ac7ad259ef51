"""Character-level JSON tokenizer for malformed LLM output.

A small finite-state scanner shared by the sanitizer, the structural
repairer and the duplicate-key resolver. It never fails: unbalanced
brackets, missing commas and unterminated strings all produce a token
stream, so each stage can reason about structure outside string content
without layering regular expressions over the raw text.

States:
  STRUCTURE  between tokens (punctuation, whitespace, bare scalars)
  IN_KEY     inside a quoted string in key position of an object
  IN_VALUE   inside any other quoted string
  ESCAPED    the character after a backslash inside a string
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ScanState(Enum):
    STRUCTURE = "structure"
    IN_KEY = "in_key"
    IN_VALUE = "in_value"
    ESCAPED = "escaped"


class TokenKind(Enum):
    KEY = "key"
    STRING = "string"
    SCALAR = "scalar"
    OPEN_OBJECT = "{"
    CLOSE_OBJECT = "}"
    OPEN_ARRAY = "["
    CLOSE_ARRAY = "]"
    COMMA = ","
    COLON = ":"


OPENERS = (TokenKind.OPEN_OBJECT, TokenKind.OPEN_ARRAY)
CLOSERS = (TokenKind.CLOSE_OBJECT, TokenKind.CLOSE_ARRAY)

_PUNCTUATION = {
    "{": TokenKind.OPEN_OBJECT,
    "}": TokenKind.CLOSE_OBJECT,
    "[": TokenKind.OPEN_ARRAY,
    "]": TokenKind.CLOSE_ARRAY,
    ",": TokenKind.COMMA,
    ":": TokenKind.COLON,
}


@dataclass(frozen=True)
class Token:
    """One lexical unit. ``end`` is exclusive.

    ``depth`` is the number of containers enclosing the token; an opener
    and its matching closer carry the same depth.
    """

    kind: TokenKind
    start: int
    end: int
    depth: int
    terminated: bool = True

    def text(self, source: str) -> str:
        return source[self.start : self.end]

    def content_bounds(self) -> tuple[int, int]:
        """Bounds of a string token's content, without the quotes."""
        end = self.end - 1 if self.terminated else self.end
        return self.start + 1, end


def tokenize(text: str) -> list[Token]:
    """Scan ``text`` once and return its tokens in order."""
    tokens: list[Token] = []
    stack: list[TokenKind] = []
    state = ScanState.STRUCTURE
    resume = ScanState.STRUCTURE
    last_kind: TokenKind | None = None
    string_start = 0
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if state is ScanState.ESCAPED:
            state = resume
        elif state is not ScanState.STRUCTURE:
            if ch == "\\":
                resume = state
                state = ScanState.ESCAPED
            elif ch == '"':
                kind = TokenKind.KEY if state is ScanState.IN_KEY else TokenKind.STRING
                tokens.append(Token(kind, string_start, i + 1, len(stack)))
                last_kind = kind
                state = ScanState.STRUCTURE
        elif ch == '"':
            string_start = i
            in_object = bool(stack) and stack[-1] is TokenKind.OPEN_OBJECT
            # Any string in an object that does not follow a colon is a key,
            # including one that directly follows a value (missing comma/brace).
            if in_object and last_kind is not TokenKind.COLON:
                state = ScanState.IN_KEY
            else:
                state = ScanState.IN_VALUE
        elif ch in _PUNCTUATION:
            kind = _PUNCTUATION[ch]
            if kind in OPENERS:
                tokens.append(Token(kind, i, i + 1, len(stack)))
                stack.append(kind)
            elif kind in CLOSERS:
                if stack:
                    stack.pop()
                tokens.append(Token(kind, i, i + 1, len(stack)))
            else:
                tokens.append(Token(kind, i, i + 1, len(stack)))
            last_kind = kind
        elif not ch.isspace():
            j = i + 1
            while j < n and text[j] not in _PUNCTUATION and text[j] != '"':
                if text[j].isspace():
                    break
                j += 1
            tokens.append(Token(TokenKind.SCALAR, i, j, len(stack)))
            last_kind = TokenKind.SCALAR
            i = j
            continue
        i += 1

    if state is not ScanState.STRUCTURE:
        open_state = resume if state is ScanState.ESCAPED else state
        kind = TokenKind.KEY if open_state is ScanState.IN_KEY else TokenKind.STRING
        tokens.append(Token(kind, string_start, n, len(stack), terminated=False))

    return tokens


def find_matching(
    tokens: list[Token],
    open_index: int,
    kinds: tuple[TokenKind, TokenKind] | None = None,
) -> int | None:
    """Index of the closer matching ``tokens[open_index]``, or None.

    With ``kinds`` given as ``(opener, closer)`` only those two kinds move
    the depth counter; otherwise every container does.
    """
    depth = 0
    for index in range(open_index, len(tokens)):
        kind = tokens[index].kind
        if kinds is None:
            opening = kind in OPENERS
            closing = kind in CLOSERS
        else:
            opening = kind is kinds[0]
            closing = kind is kinds[1]
        if opening:
            depth += 1
        elif closing:
            depth -= 1
            if depth == 0:
                return index
    return None


def previous_significant(tokens: list[Token], index: int) -> int | None:
    """Index of the nearest token before ``index`` that is not a comma."""
    index -= 1
    while index >= 0 and tokens[index].kind is TokenKind.COMMA:
        index -= 1
    return index if index >= 0 else None


def splice(text: str, edits: list[tuple[int, int, str]]) -> str:
    """Apply ``(start, end, replacement)`` edits, back to front.

    Edits must not overlap. Working from the end keeps earlier offsets valid.
    """
    for start, end, replacement in sorted(edits, key=lambda e: e[0], reverse=True):
        text = text[:start] + replacement + text[end:]
    return text
