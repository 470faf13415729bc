"""Tests for the content cache: refresh, writes and consistency policy."""

from hadith_cms.core.cache import Consistency, ContentCache
from hadith_cms.core.notifications import NotificationFeed
from hadith_cms.models.entry import AyatEntry, EntryKind, HadithEntry
from hadith_cms.session import SessionState
from tests.unit.conftest import HADITH_ROW
from tests.unit.fakes import FakeGateway, RecordingSurface, make_session

NEW_HADITH = {
    "type": "hadith",
    "arabic_text": "الدين النصيحة",
    "urdu_translation": "دین خیر خواہی ہے",
    "reference_full": "Sahih Muslim 55",
}


def test_initial_load_fetches_newest_first(cache: ContentCache) -> None:
    kinds = [e.kind for e in cache.entries]
    assert kinds == [EntryKind.AYAT, EntryKind.HADITH]
    assert cache.loading is False


def test_refresh_is_noop_while_session_restoring(gateway: FakeGateway) -> None:
    session = SessionState(gateway)
    content = ContentCache(gateway, session)

    content.refresh()

    assert gateway.calls_to("list_entries") == []
    assert content.entries == ()


def test_refresh_without_user_clears_list() -> None:
    gateway = FakeGateway(session=None)
    gateway.add_row(**HADITH_ROW)
    session = SessionState(gateway)
    content = ContentCache(gateway, session)
    content.start()
    session.start()

    assert content.entries == ()
    assert content.loading is False
    assert gateway.calls_to("list_entries") == []


def test_first_load_failure_is_not_surfaced(
    feed: NotificationFeed, surface: RecordingSurface
) -> None:
    gateway = FakeGateway(session=make_session())
    gateway.fail.add("list_entries")
    session = SessionState(gateway)
    content = ContentCache(gateway, session, feed=feed, surface=surface)
    content.start()
    session.start()

    assert content.entries == ()
    assert surface.errors == []


def test_later_refresh_failure_clears_and_surfaces(
    cache: ContentCache, gateway: FakeGateway, surface: RecordingSurface
) -> None:
    assert len(cache.entries) == 2
    gateway.fail.add("list_entries")

    cache.refresh()

    assert cache.entries == ()
    assert surface.errors == [("Error", "Could not fetch data. Please check your connection.")]


def test_create_then_refresh_replaces_with_gateway_rows(
    cache: ContentCache, gateway: FakeGateway
) -> None:
    # Another client inserts a row we have not seen yet.
    gateway.add_row(**HADITH_ROW)

    result = cache.create(NEW_HADITH)

    assert result["success"] is True
    new_id = result["data"].id
    entry = cache.lookup_by_id(new_id)
    assert isinstance(entry, HadithEntry)
    assert entry.creator_name == "Admin User"
    assert entry.reference_full == "Sahih Muslim 55"
    # Length follows the gateway, not previous length + 1.
    assert len(cache.entries) == len(gateway.rows) == 4


def test_create_stamps_creator_and_notifies(
    cache: ContentCache, gateway: FakeGateway, feed: NotificationFeed
) -> None:
    cache.create({**NEW_HADITH, "created_by": "someone-else"})

    sent = gateway.calls_to("insert_entry")[0]
    assert sent["created_by"] == "u1"
    assert feed.unread_count == 1
    assert feed.notifications[0].title == "Content Added"
    assert "hadith" in feed.notifications[0].message


def test_create_requires_user() -> None:
    gateway = FakeGateway(session=None)
    session = SessionState(gateway)
    content = ContentCache(gateway, session)
    session.start()

    result = content.create(NEW_HADITH)

    assert result == {"success": False, "error": "User not authenticated"}
    assert gateway.calls_to("insert_entry") == []


def test_create_reports_every_missing_field(cache: ContentCache, gateway: FakeGateway) -> None:
    result = cache.create({"type": "ayat", "arabic_text": ""})

    assert result["success"] is False
    assert set(result["errors"]) == {"arabic_text", "urdu_translation", "quran_reference"}
    assert gateway.calls_to("insert_entry") == []


def test_create_accepts_entry_objects(cache: ContentCache, gateway: FakeGateway) -> None:
    entry = AyatEntry(
        id="ignored",
        arabic_text="قل هو الله أحد",
        urdu_translation="کہو وہ اللہ ایک ہے",
        quran_reference="112:1",
        creator_name="Not Sent",
    )

    result = cache.create(entry)

    assert result["success"] is True
    sent = gateway.calls_to("insert_entry")[0]
    assert sent["type"] == "ayat"
    assert "id" not in sent
    assert "creator_name" not in sent


def test_create_failure_leaves_list_unchanged(
    cache: ContentCache, gateway: FakeGateway, surface: RecordingSurface
) -> None:
    before = cache.entries
    gateway.fail.add("insert_entry")

    result = cache.create(NEW_HADITH)

    assert result["success"] is False
    assert "insert_entry failed" in result["error"]
    assert cache.entries == before
    assert surface.errors


def test_bulk_create_stamps_every_record(cache: ContentCache, gateway: FakeGateway) -> None:
    records = [NEW_HADITH, {**NEW_HADITH, "reference_full": "Sahih Muslim 56"}]

    result = cache.bulk_create(records)

    assert result == {"success": True, "count": 2}
    sent = gateway.calls_to("insert_entries")[0]
    assert [r["created_by"] for r in sent] == ["u1", "u1"]
    assert len(cache.entries) == 4


def test_bulk_create_fails_as_a_whole(cache: ContentCache, gateway: FakeGateway) -> None:
    gateway.fail.add("insert_entries")

    result = cache.bulk_create([NEW_HADITH, NEW_HADITH])

    assert result["success"] is False
    assert len(gateway.rows) == 2
    assert len(cache.entries) == 2


def test_update_strips_immutable_and_derived_fields(
    cache: ContentCache, gateway: FakeGateway
) -> None:
    target = next(e for e in cache.entries if e.kind is EntryKind.HADITH)

    result = cache.update(
        target.id,
        {
            "creator_name": "X",
            "id": "other",
            "created_at": "1999-01-01",
            "arabic_text": "نص جديد",
            "urdu_translation": "نیا ترجمہ",
        },
    )

    assert result["success"] is True
    entry_id, payload = gateway.calls_to("update_entry")[0]
    assert entry_id == target.id
    assert "creator_name" not in payload
    assert "id" not in payload
    assert "created_at" not in payload
    assert "updated_at" in payload
    refreshed = cache.lookup_by_id(target.id)
    assert refreshed is not None
    assert refreshed.arabic_text == "نص جديد"
    assert refreshed.creator_name == "Admin User"


def test_update_rejects_kind_change(cache: ContentCache, gateway: FakeGateway) -> None:
    target = next(e for e in cache.entries if e.kind is EntryKind.HADITH)

    result = cache.update(target.id, {"type": "ayat", "quran_reference": "2:255"})

    assert result["success"] is False
    assert "kind" in result["error"]
    assert gateway.calls_to("update_entry") == []


def test_update_never_sends_kind(cache: ContentCache, gateway: FakeGateway) -> None:
    target = next(e for e in cache.entries if e.kind is EntryKind.HADITH)

    cache.update(target.id, {"type": "HADITH", "note": "checked"})

    _, payload = gateway.calls_to("update_entry")[0]
    assert "type" not in payload
    assert payload["note"] == "checked"


def test_update_of_unknown_entry_is_rejected_locally(
    cache: ContentCache, gateway: FakeGateway, surface: RecordingSurface
) -> None:
    result = cache.update("missing", {"note": "x"})

    assert result["success"] is False
    assert "not found" in result["error"]
    assert surface.errors
    assert gateway.calls_to("update_entry") == []


def test_delete_removes_locally_without_refetch(
    cache: ContentCache, gateway: FakeGateway
) -> None:
    target = cache.entries[0]
    fetches = len(gateway.calls_to("list_entries"))

    result = cache.delete(target.id)

    assert result == {"success": True}
    assert cache.lookup_by_id(target.id) is None
    assert len(gateway.calls_to("list_entries")) == fetches


def test_delete_failure_keeps_entry(cache: ContentCache, gateway: FakeGateway) -> None:
    target = cache.entries[0]
    gateway.fail.add("delete_entry")

    result = cache.delete(target.id)

    assert result["success"] is False
    assert cache.lookup_by_id(target.id) == target


def test_local_patch_policy_skips_refetch_on_create(
    gateway: FakeGateway, session_state: SessionState
) -> None:
    content = ContentCache(gateway, session_state, policy={"create": Consistency.LOCAL_PATCH})
    content.start()
    session_state.start()
    fetches = len(gateway.calls_to("list_entries"))

    result = content.create(NEW_HADITH)

    assert len(gateway.calls_to("list_entries")) == fetches
    assert content.entries[0].id == result["data"].id
    # The base-table row has no creator name; only a refetch would add it.
    assert content.entries[0].creator_name is None


def test_refetch_policy_on_delete(gateway: FakeGateway, session_state: SessionState) -> None:
    content = ContentCache(gateway, session_state, policy={"delete": Consistency.REFETCH})
    content.start()
    session_state.start()
    fetches = len(gateway.calls_to("list_entries"))

    content.delete(content.entries[0].id)

    assert len(gateway.calls_to("list_entries")) == fetches + 1
    assert len(content.entries) == 1


def test_sign_out_clears_cache(
    cache: ContentCache, gateway: FakeGateway, session_state: SessionState
) -> None:
    assert cache.entries

    session_state.sign_out()

    assert cache.entries == ()


def test_lookup_before_first_load_is_absent(gateway: FakeGateway) -> None:
    content = ContentCache(gateway, SessionState(gateway))
    assert content.lookup_by_id("row-1") is None


def test_entries_snapshot_is_immutable(cache: ContentCache) -> None:
    snapshot = cache.entries
    assert isinstance(snapshot, tuple)


def test_update_rejects_blanking_required_fields(
    cache: ContentCache, gateway: FakeGateway
) -> None:
    target = next(e for e in cache.entries if e.kind is EntryKind.HADITH)

    result = cache.update(target.id, {"arabic_text": "", "reference_full": "  "})

    assert result["success"] is False
    assert set(result["errors"]) == {"arabic_text", "reference_full"}
    assert gateway.calls_to("update_entry") == []


def test_update_validates_merged_entry(cache: ContentCache, gateway: FakeGateway) -> None:
    target = next(e for e in cache.entries if e.kind is EntryKind.AYAT)

    result = cache.update(target.id, {"surah_name": "Al-Fatiha (The Opening)"})

    assert result["success"] is True
    _, payload = gateway.calls_to("update_entry")[0]
    assert set(payload) == {"surah_name", "updated_at"}



def test_update_gateway_failure_surfaces(
    cache: ContentCache, gateway: FakeGateway, surface: RecordingSurface
) -> None:
    target = cache.entries[0]
    gateway.fail.add("update_entry")

    result = cache.update(target.id, {"note": "x"})

    assert result["success"] is False
    assert "update_entry failed" in result["error"]
    assert surface.errors


def test_update_rejects_fields_of_other_kind(
    cache: ContentCache, gateway: FakeGateway
) -> None:
    target = next(e for e in cache.entries if e.kind is EntryKind.HADITH)

    result = cache.update(target.id, {"quran_reference": "2:255", "surah_name": "Al-Baqarah"})

    assert result["success"] is False
    assert set(result["errors"]) == {"quran_reference", "surah_name"}
    assert gateway.calls_to("update_entry") == []


def test_update_rejects_kind_key_change(cache: ContentCache, gateway: FakeGateway) -> None:
    target = next(e for e in cache.entries if e.kind is EntryKind.HADITH)

    result = cache.update(target.id, {"kind": EntryKind.AYAT, "note": "n"})

    assert result == {"success": False, "error": "Entry kind cannot be changed after creation."}
    assert gateway.calls_to("update_entry") == []


def test_update_accepts_matching_kind_key(cache: ContentCache, gateway: FakeGateway) -> None:
    target = next(e for e in cache.entries if e.kind is EntryKind.AYAT)

    result = cache.update(target.id, {"kind": "ayat", "note": "n"})

    assert result["success"] is True
    _, payload = gateway.calls_to("update_entry")[0]
    assert "kind" not in payload


def test_create_validates_entry_objects(cache: ContentCache, gateway: FakeGateway) -> None:
    empty = AyatEntry(id="x", arabic_text="", urdu_translation="", quran_reference="")

    result = cache.create(empty)

    assert result["success"] is False
    assert set(result["errors"]) == {"arabic_text", "urdu_translation", "quran_reference"}
    assert gateway.calls_to("insert_entry") == []


def test_create_rejects_fields_of_other_kind(cache: ContentCache, gateway: FakeGateway) -> None:
    result = cache.create({**NEW_HADITH, "surah_name": "Al-Ikhlas"})

    assert result["success"] is False
    assert "surah_name" in result["error"]
    assert gateway.calls_to("insert_entry") == []


def test_bulk_create_drops_fields_of_other_kind(
    cache: ContentCache, gateway: FakeGateway
) -> None:
    cache.bulk_create([{**NEW_HADITH, "quran_reference": "2:255", "ayat_number": ""}])

    (sent,) = gateway.calls_to("insert_entries")[0]
    assert "quran_reference" not in sent
    assert "ayat_number" not in sent
    assert sent["reference_full"] == "Sahih Muslim 55"


def test_bulk_create_rejects_unknown_kind(cache: ContentCache, gateway: FakeGateway) -> None:
    result = cache.bulk_create([NEW_HADITH, {**NEW_HADITH, "type": "poem"}])

    assert result["success"] is False
    assert gateway.calls_to("insert_entries") == []
