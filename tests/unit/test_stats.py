"""Tests for dashboard statistics."""

from datetime import date

from hadith_cms.core.stats import compute_stats, recent_entries
from hadith_cms.models.entry import AyatEntry, HadithEntry

TODAY = date(2024, 3, 10)


def _hadith(i: int, created_at: str | None) -> HadithEntry:
    return HadithEntry(
        id=f"h{i}",
        arabic_text="a",
        urdu_translation="u",
        reference_full="r",
        created_at=created_at,
    )


def _ayat(i: int, created_at: str | None) -> AyatEntry:
    return AyatEntry(
        id=f"q{i}",
        arabic_text="a",
        urdu_translation="u",
        quran_reference="1:1",
        created_at=created_at,
    )


def test_counts_by_kind_and_day() -> None:
    entries = [
        _hadith(1, "2024-03-10T12:00:00"),
        _hadith(2, "2024-03-10T12:30:00"),
        _hadith(3, "2024-03-09T12:00:00"),
        _hadith(4, "2024-01-01T12:00:00"),
        _ayat(1, "2024-03-10T12:00:00"),
        _ayat(2, None),
    ]

    stats = compute_stats(entries, today=TODAY)

    assert stats.total_hadith == 4
    assert stats.total_ayat == 2
    assert stats.today_hadith == 2
    assert stats.today_ayat == 1
    assert stats.yesterday_hadith == 1
    assert stats.hadith_change == 1


def test_unparseable_dates_only_affect_daily_counts() -> None:
    stats = compute_stats([_hadith(1, "yesterday-ish")], today=TODAY)
    assert stats.total_hadith == 1
    assert stats.today_hadith == 0


def test_empty() -> None:
    stats = compute_stats([], today=TODAY)
    assert stats.total_hadith == stats.total_ayat == stats.hadith_change == 0


def test_negative_change() -> None:
    stats = compute_stats([_hadith(1, "2024-03-09T12:00:00")], today=TODAY)
    assert stats.hadith_change == -1


def test_recent_entries_keeps_order() -> None:
    entries = [_hadith(i, None) for i in range(8)]
    assert [e.id for e in recent_entries(entries)] == ["h0", "h1", "h2", "h3", "h4"]
    assert recent_entries(entries[:2], limit=5) == entries[:2]
