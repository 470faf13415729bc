"""Tests for device-local collections."""

from hadith_cms.core.cache import ContentCache
from hadith_cms.core.collections import CollectionManager, resolve_entries
from hadith_cms.storage.local import LocalPersistence


def _manager(persistence: LocalPersistence) -> CollectionManager:
    persistence.write_collections([])
    return CollectionManager(persistence)


def test_seeded_on_first_use(persistence: LocalPersistence) -> None:
    names = [c.name for c in CollectionManager(persistence).all()]
    assert names == ["Sahih Bukhari", "Favorite Ayat"]


def test_create_assigns_unique_ids(persistence: LocalPersistence) -> None:
    manager = _manager(persistence)
    a = manager.create("A")["data"]
    b = manager.create("B", "second")["data"]

    assert a.id != b.id
    assert b.description == "second"
    assert [c.name for c in manager.all()] == ["A", "B"]


def test_create_requires_name(persistence: LocalPersistence) -> None:
    manager = _manager(persistence)
    assert manager.create("   ") == {"success": False, "error": "Collection name is required."}
    assert manager.all() == []


def test_update(persistence: LocalPersistence) -> None:
    manager = _manager(persistence)
    created = manager.create("Old")["data"]

    result = manager.update(created.id, "New", "desc")

    assert result["success"] is True
    assert manager.get(created.id).name == "New"


def test_update_unknown(persistence: LocalPersistence) -> None:
    result = _manager(persistence).update(42, "Name")
    assert result == {"success": False, "error": "Collection not found."}


def test_delete(persistence: LocalPersistence) -> None:
    manager = _manager(persistence)
    created = manager.create("Gone")["data"]

    assert manager.delete(created.id) == {"success": True}
    assert manager.get(created.id) is None
    assert manager.delete(created.id)["success"] is False


def test_add_entry_is_idempotent(persistence: LocalPersistence) -> None:
    manager = _manager(persistence)
    created = manager.create("C")["data"]

    manager.add_entry(created.id, "e1")
    manager.add_entry(created.id, "e2")
    manager.add_entry(created.id, "e1")

    assert manager.get(created.id).entry_ids == ("e1", "e2")


def test_remove_entry(persistence: LocalPersistence) -> None:
    manager = _manager(persistence)
    created = manager.create("C")["data"]
    manager.add_entry(created.id, "e1")

    manager.remove_entry(created.id, "e1")

    assert manager.get(created.id).entry_ids == ()


def test_add_entry_to_missing_collection(persistence: LocalPersistence) -> None:
    result = _manager(persistence).add_entry(99, "e1")
    assert result["success"] is False


def test_deleted_entry_dangles_silently(
    persistence: LocalPersistence, cache: ContentCache
) -> None:
    manager = _manager(persistence)
    created = manager.create("C")["data"]
    first, second = cache.entries
    manager.add_entry(created.id, first.id)
    manager.add_entry(created.id, second.id)

    cache.delete(first.id)

    collection = manager.get(created.id)
    assert collection.entry_ids == (first.id, second.id)
    assert resolve_entries(collection, cache.lookup_by_id) == [second]
