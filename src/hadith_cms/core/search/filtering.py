"""Stateless filtering and pagination over the cached entry list."""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from hadith_cms.config import DEFAULT_PAGE_SIZE
from hadith_cms.models.entry import Entry, EntryKind, entry_values
from hadith_cms.models.local import Collection

T = TypeVar("T")

ALL_KINDS = "all"


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a filtered result."""

    items: tuple[T, ...]
    page: int
    page_size: int
    total_pages: int
    total: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def matches_query(entry: Entry, query: str) -> bool:
    """Case-insensitive substring match against every populated field."""
    if not query:
        return True
    needle = query.lower()
    return any(needle in value.lower() for value in entry_values(entry))


def matches_kind(entry: Entry, kind: str | EntryKind) -> bool:
    """Kind filter; ``"all"`` (any case) passes everything."""
    if str(kind).strip().lower() == ALL_KINDS:
        return True
    return entry.kind == EntryKind.parse(kind)


def filter_entries(
    entries: Sequence[Entry],
    *,
    query: str = "",
    kind: str | EntryKind = ALL_KINDS,
) -> list[Entry]:
    """Entries passing both the free-text query and the kind filter, input order kept."""
    return [e for e in entries if matches_kind(e, kind) and matches_query(e, query)]


def total_pages(count: int, page_size: int) -> int:
    return max(1, math.ceil(count / page_size))


def paginate(items: Sequence[T], *, page_size: int = DEFAULT_PAGE_SIZE, page: int = 1) -> Page[T]:
    """Slice ``[(page-1)*page_size, page*page_size)`` with the page clamped into range.

    A page past the end (e.g. after a filter shrank the result) falls back to
    the last page; anything below 1 becomes 1.
    """
    if page_size < 1:
        msg = f"page_size must be positive, got {page_size}"
        raise ValueError(msg)
    pages = total_pages(len(items), page_size)
    page = min(max(page, 1), pages)
    start = (page - 1) * page_size
    return Page(
        items=tuple(items[start : start + page_size]),
        page=page,
        page_size=page_size,
        total_pages=pages,
        total=len(items),
    )


def browse(
    entries: Sequence[Entry],
    *,
    query: str = "",
    kind: str | EntryKind = ALL_KINDS,
    page_size: int = DEFAULT_PAGE_SIZE,
    page: int = 1,
) -> Page[Entry]:
    """Filter then paginate, as the browse view does."""
    return paginate(filter_entries(entries, query=query, kind=kind), page_size=page_size, page=page)


def filter_collections(collections: Sequence[Collection], term: str) -> list[Collection]:
    """Collections whose name or description contains term (case-insensitive)."""
    if not term:
        return list(collections)
    needle = term.lower()
    return [
        c for c in collections if needle in c.name.lower() or needle in c.description.lower()
    ]
