"""Confidence scoring for quorum-accepted facts.

Three operations:

1. **agreement_confidence** -- ``min(cap, base + step * n)`` where ``n`` is
   the number of distinct oracles that produced the same normalized fact.
   With the defaults (0.7 / 0.1 / 0.95) two agreeing oracles score 0.9 and
   three or more hit the 0.95 cap.  The constants are empirical, so they
   are parameters rather than literals.
2. **fact_status_for** -- maps a score to the per-fact verification tier
   stored alongside each accepted fact.
3. **verification_level_for** -- derives the run-level verdict from how
   many oracles answered and whether anything cleared quorum.
"""

from __future__ import annotations

from enum import Enum


class VerificationLevel(str, Enum):  # noqa: UP042
    """Verification tier, used for whole runs and for individual facts."""

    VERIFIED = "verified"
    PARTIALLY_VERIFIED = "partially_verified"
    UNVERIFIED = "unverified"


DEFAULT_CONFIDENCE_BASE = 0.7
DEFAULT_CONFIDENCE_STEP = 0.1
DEFAULT_CONFIDENCE_CAP = 0.95

# Per-fact tiers.
VERIFIED_THRESHOLD = 0.85
PARTIALLY_VERIFIED_THRESHOLD = 0.7


def agreement_confidence(
    agreeing_oracles: int,
    base: float = DEFAULT_CONFIDENCE_BASE,
    step: float = DEFAULT_CONFIDENCE_STEP,
    cap: float = DEFAULT_CONFIDENCE_CAP,
) -> float:
    """Score a fact by how many distinct oracles agree on it.

    Args:
        agreeing_oracles: Distinct oracle count, must be >= 1.
        base: Score offset; the floor for anything that cleared quorum.
        step: Increment per agreeing oracle.
        cap: Upper bound, kept below 1.0 so certainty is never claimed.

    Returns:
        Confidence in (0.0, cap], rounded to 4 places to keep float drift
        out of persisted values and comparisons.

    Raises:
        ValueError: If ``agreeing_oracles`` is below 1.
    """
    if agreeing_oracles < 1:
        raise ValueError("agreeing_oracles must be at least 1")
    return round(min(cap, base + step * agreeing_oracles), 4)


def fact_status_for(score: float) -> VerificationLevel:
    """Map a fact's confidence to its stored verification status."""
    if score >= VERIFIED_THRESHOLD:
        return VerificationLevel.VERIFIED
    if score >= PARTIALLY_VERIFIED_THRESHOLD:
        return VerificationLevel.PARTIALLY_VERIFIED
    return VerificationLevel.UNVERIFIED


def verification_level_for(oracles_responded: int, accepted_count: int) -> VerificationLevel:
    """Derive a run's verification level.

    ``verified`` needs three answering oracles, ``partially_verified`` two;
    either way at least one fact must have cleared quorum.
    """
    if accepted_count > 0 and oracles_responded >= 3:
        return VerificationLevel.VERIFIED
    if accepted_count > 0 and oracles_responded >= 2:
        return VerificationLevel.PARTIALLY_VERIFIED
    return VerificationLevel.UNVERIFIED
