"""Domain models for hadith-cms."""

from hadith_cms.models.entry import AyatEntry, Entry, EntryKind, HadithEntry
from hadith_cms.models.local import Collection, Notification
from hadith_cms.models.user import User

__all__ = ["AyatEntry", "Collection", "Entry", "EntryKind", "HadithEntry", "Notification", "User"]
