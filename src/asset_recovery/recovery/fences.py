"""Markdown fence stripping for LLM completions.

Models asked for "ONLY valid JSON" still tend to answer with
```json ... ``` wrappers and a sentence or two of prose. This is the first
pipeline stage: unwrap the fence, then slice to the outermost { } span.
"""

from __future__ import annotations

from ..exceptions import EmptyOrNullCompletion, NoJsonFound


def strip_fences(text: str | None) -> str:
    """Return the candidate JSON text inside ``text``.

    Handles:
    - Markdown code fences, with or without a language tag
    - A missing closing fence (truncated completions)
    - Leading/trailing prose around the JSON

    Raises EmptyOrNullCompletion for None or blank input, and NoJsonFound
    if there is no ``{ ... }`` span at all.
    """
    if text is None or not text.strip():
        raise EmptyOrNullCompletion("Completion was empty or null")
    text = text.strip()

    if text.startswith("```") and "\n" in text:
        lines = text.split("\n")
        end = len(lines)
        for index in range(len(lines) - 1, 0, -1):
            if lines[index].strip().startswith("```"):
                end = index
                break
        text = "\n".join(lines[1:end]).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise NoJsonFound("Could not find a JSON object in the completion")
    return text[start : end + 1]
