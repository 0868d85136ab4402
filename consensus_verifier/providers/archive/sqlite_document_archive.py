"""SQLite-backed archive of raw oracle replies.

Each oracle's verbatim reply is appended to ``raw_documents`` so a
verification run can be reconstructed later.  Rows are never updated or
deleted by this module.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from consensus_verifier.interfaces.document_archive import IDocumentArchive
from consensus_verifier.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/raw_documents.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS raw_documents (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    subject_id  TEXT    NOT NULL,
    oracle_id   TEXT    NOT NULL,
    raw_text    TEXT    NOT NULL,
    parsed      TEXT,
    created_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_CREATE_INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS idx_raw_documents_subject ON raw_documents(subject_id);"
)


class SQLiteDocumentArchive(IDocumentArchive):
    """Append-only raw reply archive."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_CREATE_TABLE_SQL)
                await db.execute(_CREATE_INDEX_SQL)
                await db.commit()
        except (aiosqlite.Error, OSError) as exc:
            raise StorageError(
                message=f"initialize failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("document_archive_initialized", path=str(self._db_path))

    async def append(
        self,
        subject_id: str,
        oracle_id: str,
        raw_text: str,
        parsed: dict[str, Any] | None = None,
    ) -> None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    "INSERT INTO raw_documents (subject_id, oracle_id, raw_text, parsed) "
                    "VALUES (?, ?, ?, ?)",
                    (
                        subject_id,
                        oracle_id,
                        raw_text,
                        json.dumps(parsed) if parsed is not None else None,
                    ),
                )
                await db.commit()
        except (aiosqlite.Error, OSError) as exc:
            raise StorageError(
                message=f"append failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def count(self, subject_id: str | None = None) -> int:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                if subject_id is None:
                    cursor = await db.execute("SELECT COUNT(*) FROM raw_documents")
                else:
                    cursor = await db.execute(
                        "SELECT COUNT(*) FROM raw_documents WHERE subject_id = ?",
                        (subject_id,),
                    )
                row = await cursor.fetchone()
        except (aiosqlite.Error, OSError) as exc:
            raise StorageError(
                message=f"count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return int(row[0])

    def get_provider_name(self) -> str:
        return "sqlite_document_archive"
