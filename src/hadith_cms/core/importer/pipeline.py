"""Validate parsed records and hand the valid ones to the cache."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from loguru import logger

from hadith_cms.models.entry import WRITABLE_FIELDS, EntryKind


class BulkCreator(Protocol):
    def bulk_create(self, records: list[dict[str, Any]]) -> dict[str, Any]:
        ...


@dataclass(frozen=True)
class ImportCandidate:
    """A parsed record with its validation outcome, for user review."""

    fields: dict[str, Any]
    errors: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def kind_label(self) -> str:
        return str(self.fields.get("type") or "N/A")


def _text(record: dict[str, Any], key: str) -> str:
    value = record.get(key)
    return "" if value is None else str(value).strip()


def validate_record(record: dict[str, Any]) -> list[str]:
    """Every reason this record cannot be imported (empty when valid)."""
    errors: list[str] = []
    try:
        EntryKind.parse(record.get("type"))
    except ValueError:
        errors.append('Invalid or missing "type"')
    if not _text(record, "arabic_text"):
        errors.append('Missing "arabic_text"')
    if not _text(record, "urdu_translation"):
        errors.append('Missing "urdu_translation"')
    return errors


def review_records(records: Sequence[dict[str, Any]]) -> list[ImportCandidate]:
    """Annotate each record independently; nothing is sent anywhere."""
    candidates = [
        ImportCandidate(fields=dict(r), errors=tuple(validate_record(r))) for r in records
    ]
    valid = sum(1 for c in candidates if c.is_valid)
    logger.info(
        "Reviewed {} records: {} valid, {} invalid", len(candidates), valid, len(candidates) - valid
    )
    return candidates


def normalize_record(record: dict[str, Any]) -> dict[str, Any]:
    """Keep known columns, lowercase the kind, drop blank optional values."""
    out: dict[str, Any] = {}
    for key in WRITABLE_FIELDS:
        if key in ("created_by", "updated_at"):
            continue
        value = record.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            out[key] = text
    out["type"] = EntryKind.parse(record.get("type")).value
    return out


def confirm_import(candidates: Sequence[ImportCandidate], cache: BulkCreator) -> dict[str, Any]:
    """Send only the valid candidates to ``cache.bulk_create``.

    Invalid candidates are skipped silently here; their reasons stay on the
    candidate for display.
    """
    valid = [normalize_record(c.fields) for c in candidates if c.is_valid]
    skipped = len(candidates) - len(valid)
    if not valid:
        return {
            "success": False,
            "error": "There are no valid entries to import.",
            "skipped": skipped,
        }

    result = cache.bulk_create(valid)
    return {**result, "skipped": skipped}
