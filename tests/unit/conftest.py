"""Shared test fixtures."""

import sqlite3

import pytest

from hadith_cms.core.cache import ContentCache
from hadith_cms.core.notifications import NotificationFeed
from hadith_cms.session import SessionState
from hadith_cms.storage.kv import SqliteStore
from hadith_cms.storage.local import LocalPersistence
from tests.unit.fakes import FakeGateway, RecordingSurface, make_session

HADITH_ROW = {
    "type": "hadith",
    "arabic_text": "إنما الأعمال بالنيات",
    "urdu_translation": "اعمال کا دارومدار نیتوں پر ہے",
    "reference_full": "Sahih al-Bukhari 1",
    "hadith_number": "1",
    "created_by": "u1",
}

AYAT_ROW = {
    "type": "ayat",
    "arabic_text": "بسم الله الرحمن الرحيم",
    "urdu_translation": "اللہ کے نام سے جو بڑا مہربان نہایت رحم والا ہے",
    "quran_reference": "1:1",
    "surah_name": "Al-Fatiha",
    "ayat_number": "1",
    "created_by": "u1",
}


@pytest.fixture
def store() -> SqliteStore:
    """Return an in-memory local store."""
    return SqliteStore(sqlite3.connect(":memory:"))


@pytest.fixture
def persistence(store: SqliteStore) -> LocalPersistence:
    return LocalPersistence(store)


@pytest.fixture
def feed(persistence: LocalPersistence) -> NotificationFeed:
    return NotificationFeed(persistence)


@pytest.fixture
def gateway() -> FakeGateway:
    """A signed-in gateway holding one Hadith and one Ayat row."""
    gw = FakeGateway(session=make_session())
    gw.add_row(**HADITH_ROW)
    gw.add_row(**AYAT_ROW)
    return gw


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def session_state(gateway: FakeGateway) -> SessionState:
    return SessionState(gateway)


@pytest.fixture
def cache(
    gateway: FakeGateway,
    session_state: SessionState,
    feed: NotificationFeed,
    surface: RecordingSurface,
) -> ContentCache:
    """A started cache whose first load has completed."""
    content = ContentCache(gateway, session_state, feed=feed, surface=surface)
    content.start()
    session_state.start()
    return content
