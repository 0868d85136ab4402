"""Best-effort extraction of a JSON object from free-form LLM output.

Despite explicit instructions to return bare JSON, models regularly wrap
their answer in markdown fences or prose ("Here is what I found: {...}").
:func:`extract_json_object` tries progressively looser strategies and
stops at the first one that yields a JSON *object*:

1. Direct ``json.loads`` of the stripped text.
2. The contents of the first fenced code block (```` ```json ```` or bare
   ```` ``` ````).
3. The first balanced ``{...}`` span, found by a scanner that respects
   string literals and escapes so braces inside values do not confuse it.

When all three fail, :class:`ResponseParseError` is raised.  Extraction is
best-effort: a successful return guarantees a ``dict``, not that the dict
follows any particular schema.
"""

from __future__ import annotations

import json
import re
from typing import Any

from consensus_verifier.utils.errors import ResponseParseError

# DOTALL lets the capture group span multiple lines.
_JSON_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)\n?\s*```", re.DOTALL)


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def find_balanced_object(text: str, start: int = 0) -> tuple[int, int] | None:
    """Return ``(begin, end)`` of the first balanced ``{...}`` at or after *start*.

    ``end`` is exclusive.  Returns ``None`` when no opening brace exists or
    the text ends before the braces balance.
    """
    begin = text.find("{", start)
    if begin == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for idx in range(begin, len(text)):
        char = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return begin, idx + 1
    return None


def extract_json_object(text: str, provider_name: str | None = None) -> dict[str, Any]:
    """Recover the JSON object embedded in *text*.

    Parameters
    ----------
    text:
        Raw model output.
    provider_name:
        Attached to the raised error for log attribution.

    Raises
    ------
    ResponseParseError
        If no strategy produces a JSON object.
    """
    stripped = (text or "").strip()
    if not stripped:
        raise ResponseParseError("Empty response text", provider_name=provider_name)

    # --- Strategy 1: the whole reply is JSON ---
    parsed = _loads_object(stripped)
    if parsed is not None:
        return parsed

    # --- Strategy 2: fenced code block ---
    fence_match = _JSON_FENCE_RE.search(stripped)
    if fence_match:
        parsed = _loads_object(fence_match.group(1).strip())
        if parsed is not None:
            return parsed

    # --- Strategy 3: balanced brace span ---
    # A span that balances but is not valid JSON (e.g. "{braces in prose}")
    # is skipped and the scan resumes after its opening brace.
    cursor = 0
    while True:
        span = find_balanced_object(stripped, cursor)
        if span is None:
            break
        begin, end = span
        parsed = _loads_object(stripped[begin:end])
        if parsed is not None:
            return parsed
        cursor = begin + 1

    raise ResponseParseError(
        "No JSON object found in response",
        provider_name=provider_name,
    )
