"""Quorum filter: turns per-oracle candidates into accepted facts.

Candidates from every oracle in a run are grouped by ``normalized_key``.
A group becomes an :class:`AcceptedFact` only when at least ``quorum``
*distinct* oracles contributed to it; everything else is dropped without
being persisted or surfaced.

The aggregation is a pure function of the candidate multiset: input
order never changes which facts are accepted, their scores, or the
display value chosen for them.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

import structlog

from consensus_verifier.models.facts import AcceptedFact, FactType, NormalizedFact
from consensus_verifier.models.verification import ConsensusPolicy
from consensus_verifier.utils.confidence import agreement_confidence, fact_status_for
from consensus_verifier.utils.logging import get_logger

_VALUE_TEMPLATES: dict[FactType, str] = {
    FactType.REAL_NAME: "Real name is {value}",
    FactType.BIRTHPLACE: "Born in {value}",
    FactType.NATIONALITY: "Nationality: {value}",
    FactType.LABEL: "Released music on {value}",
    FactType.ALIAS: "Also known as {value}",
    FactType.COLLABORATOR: "Collaborated with {value}",
    FactType.STYLE: "Musical style: {value}",
}


def render_claim(fact_type: FactType, display_value: dict[str, Any]) -> str:
    """Render the claim sentence for one fact, omitting absent sub-fields.

    >>> render_claim(FactType.RELEASE, {"title": "Cycle 30", "year": "1994"})
    'Released "Cycle 30" (1994)'
    """
    if fact_type is FactType.BIRTH_YEAR:
        return f"Born in {display_value.get('year', '')}".strip()
    if fact_type is FactType.RELEASE:
        text = f'Released "{display_value.get("title", "")}"'
        if display_value.get("year"):
            text += f" ({display_value['year']})"
        if display_value.get("label"):
            text += f" on {display_value['label']}"
        return text
    return _VALUE_TEMPLATES[fact_type].format(value=display_value.get("value", ""))


def _canonical(display_value: dict[str, Any]) -> str:
    return json.dumps(display_value, sort_keys=True, ensure_ascii=False)


class QuorumAggregator:
    """Applies a :class:`ConsensusPolicy` to a run's candidate facts."""

    def __init__(self, policy: ConsensusPolicy | None = None) -> None:
        self._policy = policy or ConsensusPolicy()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def policy(self) -> ConsensusPolicy:
        return self._policy

    def aggregate(self, candidates: Iterable[NormalizedFact]) -> list[AcceptedFact]:
        """Group candidates by key and keep the groups that reach quorum.

        Returns an empty list for empty input.  The result is sorted by
        descending confidence, then key, only so output is stable; callers
        must not rely on order for meaning.
        """
        oracles_by_key: dict[str, set[str]] = {}
        fact_type_by_key: dict[str, FactType] = {}
        displays_by_key: dict[str, list[dict[str, Any]]] = {}

        for candidate in candidates:
            key = candidate.normalized_key
            oracles_by_key.setdefault(key, set()).update(candidate.contributing_oracles)
            fact_type_by_key.setdefault(key, candidate.fact_type)
            displays_by_key.setdefault(key, []).append(candidate.display_value)

        accepted: list[AcceptedFact] = []
        rejected = 0
        for key, oracles in oracles_by_key.items():
            if len(oracles) < self._policy.quorum:
                rejected += 1
                continue

            score = agreement_confidence(
                len(oracles),
                base=self._policy.confidence_base,
                step=self._policy.confidence_step,
                cap=self._policy.confidence_cap,
            )
            display = min(displays_by_key[key], key=_canonical)
            fact_type = fact_type_by_key[key]
            accepted.append(
                AcceptedFact(
                    fact_type=fact_type,
                    normalized_key=key,
                    display_value=display,
                    contributing_oracles=frozenset(oracles),
                    confidence_score=score,
                    claim_text=render_claim(fact_type, display),
                    verification_status=fact_status_for(score),
                )
            )

        accepted.sort(key=lambda f: (-f.confidence_score, f.normalized_key))
        self._logger.debug(
            "quorum_applied",
            quorum=self._policy.quorum,
            accepted=len(accepted),
            rejected=rejected,
        )
        return accepted
