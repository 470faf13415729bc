"""User-curated collections of entry references, stored on this device only."""

import time
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from loguru import logger

from hadith_cms.models.entry import Entry
from hadith_cms.models.local import Collection
from hadith_cms.storage.local import LocalPersistence


class CollectionManager:
    """CRUD over collections. Every write reads the whole set, edits it, writes it back."""

    def __init__(self, persistence: LocalPersistence) -> None:
        self._persistence = persistence

    def all(self) -> list[Collection]:
        return self._persistence.read_collections()

    def get(self, collection_id: int) -> Collection | None:
        for c in self._persistence.read_collections():
            if c.id == collection_id:
                return c
        return None

    @staticmethod
    def _new_id(existing: list[Collection]) -> int:
        taken = {c.id for c in existing}
        new_id = int(time.time() * 1000)
        while new_id in taken:
            new_id += 1
        return new_id

    def create(self, name: str, description: str = "") -> dict[str, Any]:
        name = name.strip()
        if not name:
            return {"success": False, "error": "Collection name is required."}
        collections = self._persistence.read_collections()
        collection = Collection(id=self._new_id(collections), name=name, description=description)
        self._persistence.write_collections([*collections, collection])
        logger.info('Collection "{}" has been created', name)
        return {"success": True, "data": collection}

    def update(self, collection_id: int, name: str, description: str = "") -> dict[str, Any]:
        name = name.strip()
        if not name:
            return {"success": False, "error": "Collection name is required."}
        return self._modify(
            collection_id, lambda c: replace(c, name=name, description=description)
        )

    def delete(self, collection_id: int) -> dict[str, Any]:
        """Remove the collection. Referenced entries are untouched."""
        collections = self._persistence.read_collections()
        remaining = [c for c in collections if c.id != collection_id]
        if len(remaining) == len(collections):
            return {"success": False, "error": "Collection not found."}
        self._persistence.write_collections(remaining)
        return {"success": True}

    def add_entry(self, collection_id: int, entry_id: str) -> dict[str, Any]:
        """Append entry_id unless the collection already holds it."""
        return self._modify(collection_id, lambda c: c.with_entry(entry_id))

    def remove_entry(self, collection_id: int, entry_id: str) -> dict[str, Any]:
        return self._modify(collection_id, lambda c: c.without_entry(entry_id))

    def _modify(
        self, collection_id: int, change: Callable[[Collection], Collection]
    ) -> dict[str, Any]:
        collections = self._persistence.read_collections()
        updated: Collection | None = None
        result: list[Collection] = []
        for c in collections:
            if c.id == collection_id:
                c = updated = change(c)
            result.append(c)
        if updated is None:
            return {"success": False, "error": "Collection not found."}
        self._persistence.write_collections(result)
        return {"success": True, "data": updated}


def resolve_entries(
    collection: Collection, lookup: Callable[[str], Entry | None]
) -> list[Entry]:
    """Entries a collection points at, in order. Dangling ids are dropped silently."""
    resolved = (lookup(entry_id) for entry_id in collection.entry_ids)
    return [e for e in resolved if e is not None]
