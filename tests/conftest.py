"""Shared pytest fixtures for the consensus verifier test suite."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from consensus_verifier.config.settings import Settings
from consensus_verifier.interfaces.llm_provider import ILLMProvider
from consensus_verifier.interfaces.oracle import IOracle
from consensus_verifier.models.oracle import OracleResponse
from consensus_verifier.providers.archive.sqlite_document_archive import SQLiteDocumentArchive
from consensus_verifier.providers.fact_store.sqlite_fact_store import SQLiteFactStore
from consensus_verifier.providers.oracle.llm_oracle import is_refusal

# ---------------------------------------------------------------------------
# Oracle doubles
# ---------------------------------------------------------------------------


class StubOracle(IOracle):
    """In-memory oracle that answers with a fixed payload.

    ``payload`` is serialized to JSON and run through the same refusal
    rule as LLMOracle.  ``raises`` makes ``query`` raise instead, which a
    real oracle never does; the fan-out must still cope.  ``delay`` is
    awaited before answering.
    """

    def __init__(
        self,
        oracle_id: str,
        payload: dict[str, Any] | None = None,
        *,
        raises: BaseException | None = None,
        delay: float = 0.0,
    ) -> None:
        self._oracle_id = oracle_id
        self._payload = payload or {}
        self._raises = raises
        self._delay = delay
        self.calls: list[tuple[str, str]] = []

    @property
    def oracle_id(self) -> str:
        return self._oracle_id

    async def query(self, subject_display_name: str, prompt_contract: str) -> OracleResponse:
        self.calls.append((subject_display_name, prompt_contract))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._raises is not None:
            raise self._raises
        raw = json.dumps(self._payload)
        if is_refusal(self._payload):
            return OracleResponse.refusal(self._oracle_id, raw, self._payload)
        return OracleResponse.with_claims(self._oracle_id, raw, self._payload)


# ---------------------------------------------------------------------------
# Sample oracle payloads
# ---------------------------------------------------------------------------

JEFF_MILLS_A: dict[str, Any] = {
    "real_name": "Jeffrey Mills",
    "labels": ["Axis", "Tresor"],
    "birth_year": 1963,
    "confidence_level": "high",
}
JEFF_MILLS_B: dict[str, Any] = {
    "labels": ["Axis"],
    "birth_year": "1963",
    "confidence_level": "medium",
}
LOW_CONFIDENCE: dict[str, Any] = {"confidence_level": "low"}


@pytest.fixture
def jeff_mills_oracles() -> list[StubOracle]:
    """Two agreeing oracles and one that refuses."""
    return [
        StubOracle("oracle-a", JEFF_MILLS_A),
        StubOracle("oracle-b", JEFF_MILLS_B),
        StubOracle("oracle-c", LOW_CONFIDENCE),
    ]


# ---------------------------------------------------------------------------
# Settings and storage
# ---------------------------------------------------------------------------


def make_settings(tmp_path: Path, **overrides: Any) -> Settings:
    """Settings with every credential blank and storage under *tmp_path*."""
    defaults: dict[str, Any] = {
        "openai_api_key": "",
        "anthropic_api_key": "",
        "gateway_api_key": "",
        "xai_api_key": "",
        "synthesis_provider": "",
        "fact_db_path": str(tmp_path / "facts.db"),
        "archive_db_path": str(tmp_path / "raw_documents.db"),
        "batch_delay_seconds": 0.0,
        "app_env": "development",
        "log_level": "WARNING",
    }
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
async def fact_store(tmp_path: Path) -> SQLiteFactStore:
    store = SQLiteFactStore(db_path=tmp_path / "facts.db")
    await store.initialize()
    return store


@pytest.fixture
async def document_archive(tmp_path: Path) -> SQLiteDocumentArchive:
    archive = SQLiteDocumentArchive(db_path=tmp_path / "raw_documents.db")
    await archive.initialize()
    return archive


# ---------------------------------------------------------------------------
# LLM provider mock
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """ILLMProvider mock whose completion is a short fixed profile."""
    mock = MagicMock(spec=ILLMProvider)
    mock.complete = AsyncMock(
        return_value="Jeff Mills is a techno artist who released music on Axis."
    )
    mock.get_provider_name.return_value = "mock:writer"
    mock.is_available.return_value = True
    mock.validate_credentials = AsyncMock(return_value=True)
    return mock
