"""Wire the services together with an explicit start/close lifecycle."""

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from hadith_cms.config import LOCAL_DB_NAME
from hadith_cms.core.cache import ContentCache
from hadith_cms.core.collections import CollectionManager
from hadith_cms.core.notifications import NotificationFeed
from hadith_cms.protocols import ErrorSurface, GatewayProtocol
from hadith_cms.session import SessionState
from hadith_cms.storage.kv import SqliteStore
from hadith_cms.storage.local import LocalPersistence


@dataclass
class LocalServices:
    """Everything that lives on this device and needs no network."""

    store: SqliteStore
    persistence: LocalPersistence
    feed: NotificationFeed
    collections: CollectionManager

    @classmethod
    def open(cls, data_dir: Path) -> "LocalServices":
        store = SqliteStore.open(data_dir / LOCAL_DB_NAME)
        persistence = LocalPersistence(store)
        return cls(
            store=store,
            persistence=persistence,
            feed=NotificationFeed(persistence),
            collections=CollectionManager(persistence),
        )

    def close(self) -> None:
        self.store.close()


@dataclass
class Services:
    """Local services plus the session and entry cache over a gateway."""

    local: LocalServices
    gateway: GatewayProtocol
    session: SessionState
    cache: ContentCache

    @classmethod
    def build(
        cls,
        local: LocalServices,
        gateway: GatewayProtocol,
        *,
        surface: ErrorSurface | None = None,
    ) -> "Services":
        session = SessionState(gateway)
        cache = ContentCache(gateway, session, feed=local.feed, surface=surface)
        return cls(local=local, gateway=gateway, session=session, cache=cache)

    def start(self) -> None:
        """Subscribe the cache, then resolve the session (which triggers the first load)."""
        self.cache.start()
        self.session.start()
        logger.debug(
            "Services started: user {}, {} entries",
            self.session.current_user.id if self.session.current_user else None,
            len(self.cache.entries),
        )

    def close(self) -> None:
        self.cache.close()
        self.session.close()
        self.local.close()
