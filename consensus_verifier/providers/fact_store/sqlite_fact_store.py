"""SQLite-backed fact store.

Persists accepted facts and evidence documents to a local SQLite database
at ``data/facts.db``.  Uses ``aiosqlite`` for async I/O.  Facts are keyed
on ``(subject_id, normalized_key)`` so re-running verification replaces
the previous generation of a fact instead of duplicating it.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite
import structlog

from consensus_verifier.interfaces.fact_store import IFactStore
from consensus_verifier.models.facts import AcceptedFact, FactFilter, StoredFact
from consensus_verifier.models.verification import EvidenceDocument, StoreStats
from consensus_verifier.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/facts.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS facts (
    id                   INTEGER PRIMARY KEY AUTOINCREMENT,
    subject_id           TEXT    NOT NULL,
    fact_type            TEXT    NOT NULL,
    normalized_key       TEXT    NOT NULL,
    claim_text           TEXT    NOT NULL,
    display_value        TEXT    NOT NULL DEFAULT '{}',
    confidence_score     REAL    NOT NULL,
    verification_status  TEXT    NOT NULL,
    contributing_oracles TEXT    NOT NULL DEFAULT '[]',
    created_at           TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at           TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    UNIQUE(subject_id, normalized_key)
);
""",
    """\
CREATE TABLE IF NOT EXISTS documents (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    subject_id  TEXT    NOT NULL,
    title       TEXT    NOT NULL,
    content     TEXT    NOT NULL,
    metadata    TEXT    NOT NULL DEFAULT '{}',
    created_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_facts_subject ON facts(subject_id);",
    "CREATE INDEX IF NOT EXISTS idx_facts_confidence ON facts(confidence_score);",
    "CREATE INDEX IF NOT EXISTS idx_documents_subject ON documents(subject_id);",
]

_UPSERT_SQL = """\
INSERT INTO facts (
    subject_id, fact_type, normalized_key, claim_text, display_value,
    confidence_score, verification_status, contributing_oracles
)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(subject_id, normalized_key)
DO UPDATE SET claim_text           = excluded.claim_text,
              display_value        = excluded.display_value,
              confidence_score     = excluded.confidence_score,
              verification_status  = excluded.verification_status,
              contributing_oracles = excluded.contributing_oracles,
              updated_at           = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_FACT_COLUMNS = (
    "id, subject_id, fact_type, normalized_key, claim_text, display_value, "
    "confidence_score, verification_status, contributing_oracles, created_at, updated_at"
)


def _row_to_fact(row: aiosqlite.Row) -> StoredFact:
    r = dict(row)
    return StoredFact(
        fact_id=r["id"],
        subject_id=r["subject_id"],
        fact_type=r["fact_type"],
        normalized_key=r["normalized_key"],
        claim_text=r["claim_text"],
        display_value=json.loads(r["display_value"] or "{}"),
        confidence_score=r["confidence_score"],
        verification_status=r["verification_status"],
        contributing_oracles=json.loads(r["contributing_oracles"] or "[]"),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
    )


class SQLiteFactStore(IFactStore):
    """SQLite-backed fact persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self, operation: str) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection; backend errors surface as StorageError."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except (aiosqlite.Error, OSError) as exc:
            logger.error("fact_store_error", operation=operation, error=str(exc))
            raise StorageError(
                message=f"{operation} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def initialize(self) -> None:
        """Create the facts/documents tables and indices if they don't exist."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(
                message=f"cannot create {self._db_path.parent}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        async with self._connect("initialize") as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("fact_store_initialized", path=str(self._db_path))

    async def upsert(self, subject_id: str, fact: AcceptedFact) -> StoredFact:
        async with self._connect("upsert") as db:
            await db.execute(
                _UPSERT_SQL,
                (
                    subject_id,
                    fact.fact_type.value,
                    fact.normalized_key,
                    fact.claim_text,
                    json.dumps(fact.display_value, sort_keys=True),
                    fact.confidence_score,
                    fact.verification_status.value,
                    json.dumps(sorted(fact.contributing_oracles)),
                ),
            )
            await db.commit()
            cursor = await db.execute(
                f"SELECT {_FACT_COLUMNS} FROM facts WHERE subject_id = ? AND normalized_key = ?",
                (subject_id, fact.normalized_key),
            )
            row = await cursor.fetchone()
        return _row_to_fact(row)

    async def query(self, subject_id: str, fact_filter: FactFilter | None = None) -> list[StoredFact]:
        fact_filter = fact_filter or FactFilter()
        clauses = ["subject_id = ?", "confidence_score >= ?"]
        params: list[Any] = [subject_id, fact_filter.min_confidence]
        if fact_filter.fact_types:
            placeholders = ", ".join("?" for _ in fact_filter.fact_types)
            clauses.append(f"fact_type IN ({placeholders})")
            params.extend(t.value for t in fact_filter.fact_types)

        sql = (
            f"SELECT {_FACT_COLUMNS} FROM facts WHERE {' AND '.join(clauses)} "
            "ORDER BY confidence_score DESC, fact_type, normalized_key"
        )
        if fact_filter.limit is not None:
            sql += " LIMIT ?"
            params.append(fact_filter.limit)

        async with self._connect("query") as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        return [_row_to_fact(r) for r in rows]

    async def delete_where(
        self,
        below_confidence: float | None = None,
        statuses: Iterable[str] = (),
    ) -> int:
        clauses: list[str] = []
        params: list[Any] = []
        if below_confidence is not None:
            clauses.append("confidence_score < ?")
            params.append(below_confidence)
        status_list = list(statuses)
        if status_list:
            placeholders = ", ".join("?" for _ in status_list)
            clauses.append(f"verification_status IN ({placeholders})")
            params.extend(status_list)
        if not clauses:
            return 0

        async with self._connect("delete_where") as db:
            cursor = await db.execute(f"DELETE FROM facts WHERE {' OR '.join(clauses)}", params)
            await db.commit()
            deleted = cursor.rowcount
        logger.info("facts_deleted", count=deleted)
        return deleted

    async def count(self, subject_id: str | None = None) -> int:
        async with self._connect("count") as db:
            if subject_id is None:
                cursor = await db.execute("SELECT COUNT(*) FROM facts")
            else:
                cursor = await db.execute(
                    "SELECT COUNT(*) FROM facts WHERE subject_id = ?", (subject_id,)
                )
            row = await cursor.fetchone()
        return int(row[0])

    async def subjects_with_facts(self, subject_ids: Iterable[str]) -> set[str]:
        ids = list(subject_ids)
        if not ids:
            return set()
        placeholders = ", ".join("?" for _ in ids)
        async with self._connect("subjects_with_facts") as db:
            cursor = await db.execute(
                f"SELECT DISTINCT subject_id FROM facts WHERE subject_id IN ({placeholders})",
                ids,
            )
            rows = await cursor.fetchall()
        return {r["subject_id"] for r in rows}

    async def save_document(self, document: EvidenceDocument) -> int:
        async with self._connect("save_document") as db:
            cursor = await db.execute(
                "INSERT INTO documents (subject_id, title, content, metadata) VALUES (?, ?, ?, ?)",
                (
                    document.subject_id,
                    document.title,
                    document.content,
                    document.metadata.model_dump_json(),
                ),
            )
            await db.commit()
            doc_id = cursor.lastrowid
        logger.info("evidence_document_saved", subject_id=document.subject_id, document_id=doc_id)
        return int(doc_id)

    async def stats(self) -> StoreStats:
        async with self._connect("stats") as db:
            cursor = await db.execute(
                "SELECT COUNT(DISTINCT subject_id) AS subjects, COUNT(*) AS facts FROM facts"
            )
            totals = dict(await cursor.fetchone())
            cursor = await db.execute(
                "SELECT verification_status, COUNT(*) AS n FROM facts GROUP BY verification_status"
            )
            by_status = {r["verification_status"]: r["n"] for r in await cursor.fetchall()}
            cursor = await db.execute("SELECT COUNT(*) FROM documents")
            documents = (await cursor.fetchone())[0]

        return StoreStats(
            total_subjects=totals["subjects"],
            total_facts=totals["facts"],
            by_status=by_status,
            documents=documents,
        )

    def get_provider_name(self) -> str:
        return "sqlite_fact_store"
