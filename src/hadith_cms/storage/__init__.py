"""Device-local storage."""

from hadith_cms.storage.kv import SqliteStore
from hadith_cms.storage.local import LocalPersistence

__all__ = ["LocalPersistence", "SqliteStore"]
