"""Canonicalization rules for comparing facts across oracles.

Two oracles "say the same thing" only when their normalized keys are
equal, so these rules are exact and deterministic.  There is deliberately
no fuzzy matching here: collapsing "Tresor" and "Tresor Records" would
merge facts that may be different in the real world.

- Strings: lowercase, trim, collapse internal whitespace runs to one space.
- Years: keep digits only, take the first four, reject anything that is
  not exactly four digits.
- Dates: only the standalone year (1800-2099) in a full date is kept, so
  "June 18, 1963" and "June 18, 1970" stay distinct.
- Noise: empty, whitespace-only and single-character strings are dropped.
"""

from __future__ import annotations

import re
from typing import Any

_WHITESPACE_RE = re.compile(r"\s+")
_NON_DIGIT_RE = re.compile(r"\D")
_YEAR_IN_TEXT_RE = re.compile(r"(?<!\d)(1[89]\d{2}|20\d{2})(?!\d)")


def normalize_text(value: str) -> str:
    """Lowercase, trim and collapse whitespace.

    >>> normalize_text("  Tresor   Records ")
    'tresor records'
    """
    return _WHITESPACE_RE.sub(" ", value).strip().lower()


def clean_display_text(value: str) -> str:
    """Trim and collapse whitespace but keep the original casing."""
    return _WHITESPACE_RE.sub(" ", value).strip()


def normalize_year(value: Any) -> str | None:
    """Return a four-digit year string, or ``None`` if *value* is not one.

    ``"c. 1963"`` -> ``"1963"``; ``"1963-06-18"`` -> ``"1963"``;
    ``"63"`` -> ``None``; ``True`` -> ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (str, int, float)):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    digits = _NON_DIGIT_RE.sub("", str(value))[:4]
    if len(digits) != 4:
        return None
    return digits


def year_from_date(value: Any) -> str | None:
    """Return the year named in a full date, or ``None``.

    ``"June 18, 1963"`` -> ``"1963"``; ``"18.06.1963"`` -> ``"1963"``;
    ``"June 18"`` -> ``None``.  Numbers go through :func:`normalize_year`.
    """
    if isinstance(value, str):
        match = _YEAR_IN_TEXT_RE.search(value)
        return match.group(1) if match else None
    return normalize_year(value)


def is_noise(value: str) -> bool:
    """True for strings too short to be a real fact (after normalization)."""
    return len(normalize_text(value)) < 2


def coerce_scalar(value: Any) -> str | None:
    """Return *value* as a non-noise string, or ``None``.

    Numbers are stringified (some models emit ``"birthplace": 0``-style
    junk or numeric names); containers and booleans are rejected.
    """
    if value is None or isinstance(value, (bool, dict, list, tuple, set)):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        return None
    if is_noise(value):
        return None
    return value
