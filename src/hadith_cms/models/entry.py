"""Entry domain model: a tagged union over Hadith and Ayat records."""

from dataclasses import dataclass, field, fields
from enum import StrEnum
from typing import Any


class EntryKind(StrEnum):
    """Which content type an entry is. Fixed at creation."""

    HADITH = "hadith"
    AYAT = "ayat"

    @classmethod
    def parse(cls, value: object) -> "EntryKind":
        """Parse a kind case-insensitively, raising ValueError when unknown."""
        text = str(value or "").strip().lower()
        try:
            return cls(text)
        except ValueError:
            msg = f"Unknown entry kind: {value!r}"
            raise ValueError(msg) from None


# Columns the client may write. Anything else coming from the read view is derived.
COMMON_FIELDS = ("arabic_text", "urdu_translation", "source_link", "note")
HADITH_FIELDS = ("reference_full", "in_book_reference", "hadith_number")
AYAT_FIELDS = ("quran_reference", "surah_name", "ayat_number")
WRITABLE_FIELDS = ("type", *COMMON_FIELDS, *HADITH_FIELDS, *AYAT_FIELDS, "created_by", "updated_at")

# Never sent back to the base table on update.
IMMUTABLE_FIELDS = frozenset({"id", "created_at", "creator_name"})

KIND_FIELDS = {
    EntryKind.HADITH: HADITH_FIELDS,
    EntryKind.AYAT: AYAT_FIELDS,
}

REQUIRED_REFERENCE = {
    EntryKind.HADITH: "reference_full",
    EntryKind.AYAT: "quran_reference",
}


@dataclass(frozen=True)
class _EntryBase:
    id: str
    arabic_text: str
    urdu_translation: str
    source_link: str | None = None
    note: str | None = None
    created_by: str | None = None
    creator_name: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class HadithEntry(_EntryBase):
    """A Hadith record."""

    reference_full: str = ""
    in_book_reference: str | None = None
    hadith_number: str | None = None
    kind: EntryKind = field(default=EntryKind.HADITH, init=False)

    @property
    def reference(self) -> str:
        return self.reference_full


@dataclass(frozen=True)
class AyatEntry(_EntryBase):
    """A Quran verse record."""

    quran_reference: str = ""
    surah_name: str | None = None
    ayat_number: str | None = None
    kind: EntryKind = field(default=EntryKind.AYAT, init=False)

    @property
    def reference(self) -> str:
        return self.quran_reference


Entry = HadithEntry | AyatEntry


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def entry_from_row(row: dict[str, Any]) -> Entry:
    """Build an Entry from a gateway row (base table or joined view).

    Raises:
        ValueError: if the row's ``type`` is not a known kind.
    """
    kind = EntryKind.parse(row.get("type"))
    common: dict[str, Any] = {
        "id": str(row["id"]),
        "arabic_text": row.get("arabic_text") or "",
        "urdu_translation": row.get("urdu_translation") or "",
        "source_link": _opt_str(row.get("source_link")),
        "note": _opt_str(row.get("note")),
        "created_by": _opt_str(row.get("created_by")),
        "creator_name": _opt_str(row.get("creator_name")),
        "created_at": _opt_str(row.get("created_at")),
        "updated_at": _opt_str(row.get("updated_at")),
    }
    if kind is EntryKind.HADITH:
        return HadithEntry(
            **common,
            reference_full=row.get("reference_full") or "",
            in_book_reference=_opt_str(row.get("in_book_reference")),
            hadith_number=_opt_str(row.get("hadith_number")),
        )
    return AyatEntry(
        **common,
        quran_reference=row.get("quran_reference") or "",
        surah_name=_opt_str(row.get("surah_name")),
        ayat_number=_opt_str(row.get("ayat_number")),
    )


def entry_to_row(entry: Entry) -> dict[str, Any]:
    """Serialize an Entry to the writable columns of the base table.

    ``id``, ``created_at`` and ``creator_name`` are never included.
    """
    row: dict[str, Any] = {"type": entry.kind.value}
    for f in fields(entry):
        if f.name == "kind" or f.name in IMMUTABLE_FIELDS:
            continue
        value = getattr(entry, f.name)
        if value is not None:
            row[f.name] = value
    return row


def entry_values(entry: Entry) -> list[str]:
    """String form of every populated field, used by free-text search."""
    values: list[str] = []
    for f in fields(entry):
        value = getattr(entry, f.name)
        if value is None:
            continue
        values.append(str(value))
    return values


def validate_entry_fields(data: dict[str, Any], kind: EntryKind) -> dict[str, str]:
    """Check a manual entry form, returning field -> message for every omission."""
    errors: dict[str, str] = {}
    if not str(data.get("arabic_text") or "").strip():
        errors["arabic_text"] = "Arabic text is required."
    if not str(data.get("urdu_translation") or "").strip():
        errors["urdu_translation"] = "Urdu translation is required."
    ref_field = REQUIRED_REFERENCE[kind]
    if not str(data.get(ref_field) or "").strip():
        label = "Full reference" if kind is EntryKind.HADITH else "Quran reference"
        errors[ref_field] = f"{label} is required."
    return errors


def writable_fields(kind: EntryKind) -> tuple[str, ...]:
    """Columns a row of this kind may carry."""
    return ("type", *COMMON_FIELDS, *KIND_FIELDS[kind], "created_by", "updated_at")


def foreign_fields(data: dict[str, Any], kind: EntryKind) -> list[str]:
    """Populated fields that belong to the other kind."""
    own = set(KIND_FIELDS[kind])
    return sorted(
        name
        for fields_of_kind in KIND_FIELDS.values()
        for name in fields_of_kind
        if name not in own and data.get(name) not in (None, "")
    )
