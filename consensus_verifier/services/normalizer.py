"""Maps one oracle's parsed JSON into typed, comparable fact candidates.

Oracles do not agree on field names (``collaborators`` vs
``collaborations``, ``releases`` vs ``notable_albums``), so each fact type
has a list of accepted source keys; the first one present wins.  Values
are canonicalized with the exact rules in
:mod:`consensus_verifier.utils.text_normalizer` and turned into
``"<fact_type>:<canonical value>"`` keys.

Releases are keyed on title and year only.  Label spellings vary a lot
between models ("Tresor" vs "Tresor Records"), and including them in the
key would split one release into several sub-quorum facts.

Anything that cannot be canonicalized is dropped, never guessed at.  One
response contributes at most one candidate per key.
"""

from __future__ import annotations

from typing import Any

import structlog

from consensus_verifier.models.facts import FactType, NormalizedFact
from consensus_verifier.utils.logging import get_logger
from consensus_verifier.utils.text_normalizer import (
    clean_display_text,
    coerce_scalar,
    normalize_text,
    normalize_year,
    year_from_date,
)

# Source keys per fact type, in priority order.
SCALAR_FIELDS: dict[FactType, tuple[str, ...]] = {
    FactType.REAL_NAME: ("real_name",),
    FactType.BIRTHPLACE: ("birthplace",),
    FactType.NATIONALITY: ("nationality",),
    FactType.STYLE: ("style",),
}
YEAR_FIELDS: dict[FactType, tuple[str, ...]] = {
    FactType.BIRTH_YEAR: ("birth_year",),
}
# Full dates, read only when the year key is absent.
DATE_FIELDS: dict[FactType, tuple[str, ...]] = {
    FactType.BIRTH_YEAR: ("birth_date",),
}
LIST_FIELDS: dict[FactType, tuple[str, ...]] = {
    FactType.LABEL: ("labels",),
    FactType.ALIAS: ("aliases",),
    FactType.COLLABORATOR: ("collaborators", "collaborations"),
}
RELEASE_FIELDS: tuple[str, ...] = ("releases", "notable_albums", "albums")


def _first_present(parsed: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = parsed.get(key)
        if value is not None:
            return value
    return None


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    # A lone string where a list was asked for still counts as one element.
    if isinstance(value, str):
        return [value]
    return []


def release_key(title: str, year: str | None) -> str:
    """Build the normalized key for a release."""
    canonical_title = normalize_text(title)
    if year:
        return f"{FactType.RELEASE.value}:{canonical_title}|{year}"
    return f"{FactType.RELEASE.value}:{canonical_title}"


class FactNormalizer:
    """Stateless: the same input always yields the same candidates."""

    def __init__(self) -> None:
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def normalize(self, parsed: dict[str, Any], oracle_id: str) -> list[NormalizedFact]:
        """Extract candidate facts from one parsed oracle reply.

        Parameters
        ----------
        parsed:
            The JSON object an oracle returned.
        oracle_id:
            Recorded as the sole contributing oracle of every candidate.

        Returns
        -------
        list[NormalizedFact]
            At most one candidate per distinct normalized key, in
            extraction order.
        """
        candidates: dict[str, NormalizedFact] = {}
        contributors = frozenset({oracle_id})

        def add(fact_type: FactType, canonical: str, display: dict[str, Any]) -> None:
            key = f"{fact_type.value}:{canonical}"
            if key in candidates:
                return
            candidates[key] = NormalizedFact(
                fact_type=fact_type,
                normalized_key=key,
                display_value=display,
                contributing_oracles=contributors,
            )

        for fact_type, keys in SCALAR_FIELDS.items():
            value = coerce_scalar(_first_present(parsed, keys))
            if value is not None:
                add(fact_type, normalize_text(value), {"value": clean_display_text(value)})

        for fact_type, keys in YEAR_FIELDS.items():
            raw_year = _first_present(parsed, keys)
            if raw_year is not None:
                year = normalize_year(raw_year)
            else:
                year = year_from_date(_first_present(parsed, DATE_FIELDS.get(fact_type, ())))
            if year is not None:
                add(fact_type, year, {"year": year})

        for fact_type, keys in LIST_FIELDS.items():
            for item in _as_list(_first_present(parsed, keys)):
                # Numbers inside lists are more likely junk than names.
                if not isinstance(item, str):
                    continue
                value = coerce_scalar(item)
                if value is not None:
                    add(fact_type, normalize_text(value), {"value": clean_display_text(value)})

        for item in _as_list(_first_present(parsed, RELEASE_FIELDS)):
            fact = self._release_candidate(item, contributors)
            if fact is not None and fact.normalized_key not in candidates:
                candidates[fact.normalized_key] = fact

        facts = list(candidates.values())
        self._logger.debug("facts_normalized", oracle=oracle_id, candidates=len(facts))
        return facts

    @staticmethod
    def _release_candidate(item: Any, contributors: frozenset[str]) -> NormalizedFact | None:
        if isinstance(item, str):
            item = {"title": item}
        if not isinstance(item, dict):
            return None

        title = coerce_scalar(_first_present(item, ("title", "name")))
        if title is None:
            return None
        year = normalize_year(item.get("year"))
        label = coerce_scalar(item.get("label"))

        display: dict[str, Any] = {"title": clean_display_text(title)}
        if year is not None:
            display["year"] = year
        if label is not None:
            display["label"] = clean_display_text(label)

        return NormalizedFact(
            fact_type=FactType.RELEASE,
            normalized_key=release_key(title, year),
            display_value=display,
            contributing_oracles=contributors,
        )
