"""Fact models: the units that oracles vote on and the store persists.

Lifecycle:
    oracle JSON -> NormalizedFact (one per distinct key per response)
                -> merged across responses by normalized_key
                -> AcceptedFact (only if enough distinct oracles agree)
                -> StoredFact (as read back from the fact store)

All models are frozen; an AcceptedFact is never mutated after the
aggregator creates it.  Re-running verification produces a new generation
that the store upserts over the old rows.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from consensus_verifier.utils.confidence import VerificationLevel


class FactType(str, Enum):  # noqa: UP042
    """Categories of fact the normalizer knows how to extract."""

    REAL_NAME = "real_name"
    BIRTH_YEAR = "birth_year"
    BIRTHPLACE = "birthplace"
    NATIONALITY = "nationality"
    LABEL = "label"
    ALIAS = "alias"
    COLLABORATOR = "collaborator"
    RELEASE = "release"
    STYLE = "style"


class NormalizedFact(BaseModel):
    """A canonical, comparable fact candidate.

    ``normalized_key`` is ``"<fact_type>:<canonical value>"``, e.g.
    ``"label:tresor"`` or ``"release:waveform transmission vol. 1|1992"``.
    Two candidates describe the same fact if and only if their keys match.
    """

    model_config = ConfigDict(frozen=True)

    fact_type: FactType
    normalized_key: str = Field(min_length=3)
    # Human-readable payload persisted with the fact, e.g. {"label": "Tresor"}.
    display_value: dict[str, Any] = Field(default_factory=dict)
    contributing_oracles: frozenset[str] = Field(default_factory=frozenset)


class AcceptedFact(NormalizedFact):
    """A NormalizedFact that cleared quorum, with score and claim prose."""

    confidence_score: float = Field(gt=0.0, le=1.0)
    claim_text: str
    verification_status: VerificationLevel


class StoredFact(BaseModel):
    """An accepted fact as persisted for one subject."""

    model_config = ConfigDict(frozen=True)

    fact_id: int
    subject_id: str
    fact_type: FactType
    normalized_key: str
    claim_text: str
    display_value: dict[str, Any] = Field(default_factory=dict)
    confidence_score: float = Field(ge=0.0, le=1.0)
    verification_status: VerificationLevel
    contributing_oracles: list[str] = Field(default_factory=list)
    created_at: str
    updated_at: str


class FactFilter(BaseModel):
    """Selection criteria for :meth:`IFactStore.query`.

    Results are always ordered by descending confidence.
    """

    model_config = ConfigDict(frozen=True)

    min_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    fact_types: list[FactType] | None = None
    limit: int | None = Field(default=None, ge=1)
