from consensus_verifier.providers.fact_store.sqlite_fact_store import SQLiteFactStore

__all__ = ["SQLiteFactStore"]
