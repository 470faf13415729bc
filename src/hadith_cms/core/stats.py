"""Dashboard figures computed from the cached entry list."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from hadith_cms.models.entry import Entry, EntryKind


@dataclass(frozen=True)
class DashboardStats:
    total_hadith: int
    total_ayat: int
    today_hadith: int
    today_ayat: int
    yesterday_hadith: int
    hadith_change: int


def _created_on(entry: Entry) -> date | None:
    if not entry.created_at:
        return None
    try:
        return datetime.fromisoformat(entry.created_at).astimezone().date()
    except ValueError:
        return None


def compute_stats(entries: Sequence[Entry], today: date | None = None) -> DashboardStats:
    """Per-kind totals plus today's and yesterday's additions (local time)."""
    today = today or date.today()
    yesterday = today - timedelta(days=1)

    def count(kind: EntryKind, day: date | None = None) -> int:
        return sum(
            1 for e in entries if e.kind is kind and (day is None or _created_on(e) == day)
        )

    today_hadith = count(EntryKind.HADITH, today)
    yesterday_hadith = count(EntryKind.HADITH, yesterday)
    return DashboardStats(
        total_hadith=count(EntryKind.HADITH),
        total_ayat=count(EntryKind.AYAT),
        today_hadith=today_hadith,
        today_ayat=count(EntryKind.AYAT, today),
        yesterday_hadith=yesterday_hadith,
        hadith_change=today_hadith - yesterday_hadith,
    )


def recent_entries(entries: Sequence[Entry], limit: int = 5) -> list[Entry]:
    """The newest entries. The cache already keeps newest first."""
    return list(entries[:limit])
