"""Bulk import of JSON and CSV uploads."""

from hadith_cms.core.importer.pipeline import (
    ImportCandidate,
    confirm_import,
    review_records,
    validate_record,
)
from hadith_cms.core.importer.reader import ImportFormatError, parse_import_file, parse_import_text

__all__ = [
    "ImportCandidate",
    "ImportFormatError",
    "confirm_import",
    "parse_import_file",
    "parse_import_text",
    "review_records",
    "validate_record",
]
