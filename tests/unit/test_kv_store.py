"""Tests for the SQLite key-value store and local persistence."""

import sqlite3
from pathlib import Path

from hadith_cms.models.local import Collection, Notification
from hadith_cms.storage.kv import SCHEMA_VERSION, SqliteStore, get_schema_version
from hadith_cms.storage.local import COLLECTIONS_KEY, LocalPersistence


class TestSqliteStore:
    def test_schema_version_recorded(self) -> None:
        conn = sqlite3.connect(":memory:")
        assert get_schema_version(conn) is None
        SqliteStore(conn)
        assert get_schema_version(conn) == SCHEMA_VERSION

    def test_missing_key_is_none(self, store: SqliteStore) -> None:
        assert store.get("nothing") is None

    def test_set_replaces_whole_value(self, store: SqliteStore) -> None:
        store.set("k", {"a": 1, "b": 2})
        store.set("k", {"c": "نص"})
        assert store.get("k") == {"c": "نص"}

    def test_remove(self, store: SqliteStore) -> None:
        store.set("k", [1])
        store.remove("k")
        assert store.get("k") is None

    def test_corrupt_value_reads_as_missing(self) -> None:
        conn = sqlite3.connect(":memory:")
        store = SqliteStore(conn)
        conn.execute("INSERT INTO kv (key, value, updated_at) VALUES ('bad', '{nope', 0)")
        assert store.get("bad") is None

    def test_open_creates_parent_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "local.db"
        store = SqliteStore.open(path)
        store.set("k", 1)
        store.close()

        reopened = SqliteStore.open(path)
        assert reopened.get("k") == 1
        reopened.close()


class TestLocalPersistence:
    def test_first_read_seeds_defaults(self, store: SqliteStore) -> None:
        collections = LocalPersistence(store).read_collections()
        assert [c.name for c in collections] == ["Sahih Bukhari", "Favorite Ayat"]
        assert store.get(COLLECTIONS_KEY) is not None

    def test_empty_list_is_not_reseeded(self, persistence: LocalPersistence) -> None:
        persistence.write_collections([])
        assert persistence.read_collections() == []

    def test_seed_is_not_shared_between_stores(self, store: SqliteStore) -> None:
        first = LocalPersistence(store)
        first.write_collections([c.with_entry("extra") for c in first.read_collections()])

        other = LocalPersistence(SqliteStore(sqlite3.connect(":memory:")))
        assert all("extra" not in c.entry_ids for c in other.read_collections())

    def test_collections_round_trip(self, persistence: LocalPersistence) -> None:
        items = [Collection(id=5, name="Mine", entry_ids=("a", "b"))]
        persistence.write_collections(items)
        assert persistence.read_collections() == items

    def test_notifications_default_empty(self, persistence: LocalPersistence) -> None:
        assert persistence.read_notifications() == []

    def test_clear_notifications(self, persistence: LocalPersistence) -> None:
        persistence.write_notifications(
            [Notification(id="1", type="info", title="t", message="m", timestamp="ts")]
        )
        persistence.clear_notifications()
        assert persistence.read_notifications() == []
