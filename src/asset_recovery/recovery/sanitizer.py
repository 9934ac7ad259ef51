"""String-value sanitizer.

Rewrites the content of quoted string *values* so that ``json.loads`` can
read them, leaving keys and all punctuation byte-for-byte intact:

  a. degree notation (``360^{\\circ}``, ``$90^\\circ$``) -> ``360 degrees``
  b. backslashes that do not start a valid JSON escape are doubled
  c. raw control characters are escaped (``\\n``, ``\\t``, ...)
  d. leftover ``$...$`` math spans lose their delimiters and LaTeX
     command backslashes inside them are doubled

``sanitize`` is idempotent.
"""

from __future__ import annotations

import re

from .scanner import TokenKind, tokenize

# Optional $-delimiter, numeral, optional ^ and braces around \circ. A closing
# $ is consumed only when an opening one (before or after the numeral) was.
_DEGREES = re.compile(
    r"(?P<open>\$\s*)?(?P<num>\d+(?:\.\d+)?)\s*(?P<mid>\$)?"
    r"\s*(?:\^\s*)?\{?\s*\\{1,2}circ\s*\}?"
    r"(?(open)\s*\$|(?(mid)\s*\$))"
)
# Inline $...$ or display $$...$$, with matching delimiters.
_MATH_SPAN = re.compile(r"(\$\$?)([^$\n]{1,400}?)\1")
_MATH_MARKERS = ("\\", "^", "_", "{")
_HEX4 = re.compile(r"[0-9a-fA-F]{4}")

_SIMPLE_ESCAPES = frozenset('"\\/bfnrt')
_CONTROL_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\f": "\\f",
    "\b": "\\b",
}


def _convert_degrees(content: str) -> str:
    return _DEGREES.sub(r"\g<num> degrees", content)


def _escape_content(content: str) -> str:
    """Rules b and c in one pass.

    Valid escape pairs are consumed whole, so an existing ``\\n`` or ``\\\\``
    is copied through instead of being escaped a second time.
    """
    out: list[str] = []
    i = 0
    n = len(content)
    while i < n:
        ch = content[i]
        if ch == "\\":
            nxt = content[i + 1] if i + 1 < n else ""
            if nxt and nxt in _SIMPLE_ESCAPES:
                out.append(content[i : i + 2])
                i += 2
                continue
            if nxt == "u" and _HEX4.fullmatch(content[i + 2 : i + 6]):
                out.append(content[i : i + 6])
                i += 6
                continue
            out.append("\\\\")
        elif ch in _CONTROL_ESCAPES:
            out.append(_CONTROL_ESCAPES[ch])
        elif ord(ch) < 0x20:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def _unwrap_math(match: re.Match) -> str:
    inner = match.group(2)
    if not any(marker in inner for marker in _MATH_MARKERS):
        # Currency like "$500 to $800", not math.
        return match.group(0)

    out: list[str] = []
    i = 0
    while i < len(inner):
        if inner[i] == "\\" and i + 1 < len(inner):
            nxt = inner[i + 1]
            # \theta and \frac arrive here as \t and \f escapes.
            out.append("\\\\" + nxt if nxt.isalpha() else inner[i : i + 2])
            i += 2
            continue
        out.append(inner[i])
        i += 1
    return "".join(out)


def _sanitize_pass(content: str) -> str:
    content = _convert_degrees(content)
    content = _escape_content(content)
    content = _MATH_SPAN.sub(_unwrap_math, content)
    return _convert_degrees(content)


def sanitize_value(content: str) -> str:
    """Sanitize the raw content of one string value (without its quotes).

    Passes repeat until the content stops changing: unwrapping one math span
    can expose a degree sign or pair up ``$`` signs into a new span. Every
    pass after the first either removes a ``$`` or a ``circ`` or only doubles
    backslashes, so the loop terminates.
    """
    previous = None
    while content != previous:
        previous = content
        content = _sanitize_pass(content)
    return content


def sanitize(text: str) -> str:
    """Sanitize every string value in ``text``. Keys are never touched."""
    parts: list[str] = []
    cursor = 0
    for token in tokenize(text):
        if token.kind is not TokenKind.STRING:
            continue
        start, end = token.content_bounds()
        parts.append(text[cursor:start])
        parts.append(sanitize_value(text[start:end]))
        cursor = end
    parts.append(text[cursor:])
    return "".join(parts)
