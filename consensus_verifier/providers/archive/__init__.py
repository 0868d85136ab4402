from consensus_verifier.providers.archive.sqlite_document_archive import SQLiteDocumentArchive

__all__ = ["SQLiteDocumentArchive"]
