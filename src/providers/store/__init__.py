"""Record store implementations."""

from src.providers.store.sqlite_record_store import SQLiteRecordStore

__all__ = ["SQLiteRecordStore"]
