"""Local persistence adapter for collections and notifications."""

import copy

from loguru import logger

from hadith_cms.config import SEED_COLLECTIONS
from hadith_cms.models.local import Collection, Notification
from hadith_cms.protocols import KeyValueStoreProtocol

COLLECTIONS_KEY = "collections"
NOTIFICATIONS_KEY = "notifications"


class LocalPersistence:
    """Read-all / write-all access to the two device-local aggregates.

    Neither aggregate has a remote mirror; clearing the store loses them.
    """

    def __init__(self, store: KeyValueStoreProtocol) -> None:
        self._store = store

    def read_collections(self) -> list[Collection]:
        raw = self._store.get(COLLECTIONS_KEY)
        if raw is None:
            # First-ever read: seed the illustrative defaults.
            raw = copy.deepcopy(SEED_COLLECTIONS)
            self._store.set(COLLECTIONS_KEY, raw)
            logger.debug("Seeded {} default collections", len(raw))
        return [Collection.from_dict(item) for item in raw]

    def write_collections(self, collections: list[Collection]) -> None:
        self._store.set(COLLECTIONS_KEY, [c.to_dict() for c in collections])

    def read_notifications(self) -> list[Notification]:
        raw = self._store.get(NOTIFICATIONS_KEY) or []
        return [Notification.from_dict(item) for item in raw]

    def write_notifications(self, notifications: list[Notification]) -> None:
        self._store.set(NOTIFICATIONS_KEY, [n.to_dict() for n in notifications])

    def clear_notifications(self) -> None:
        self._store.remove(NOTIFICATIONS_KEY)
