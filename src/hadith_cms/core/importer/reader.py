"""Parse uploaded JSON or CSV files into candidate records."""

import csv
import io
import json
from pathlib import Path
from typing import Any

SUPPORTED_FORMATS = ("json", "csv")


class ImportFormatError(ValueError):
    """The file could not be turned into a non-empty list of records."""


def detect_format(path: Path) -> str:
    """Pick the parser from the file extension."""
    suffix = path.suffix.lower().lstrip(".")
    if suffix not in SUPPORTED_FORMATS:
        msg = f"Unsupported file type {path.suffix!r}: please upload a JSON or CSV file."
        raise ImportFormatError(msg)
    return suffix


def _parse_json(text: str) -> list[Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Could not parse the file: {e}"
        raise ImportFormatError(msg) from e
    if not isinstance(data, list):
        msg = "The file is not in the correct format: expected an array of records."
        raise ImportFormatError(msg)
    return data


def _parse_csv(text: str) -> list[Any]:
    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        return []
    records: list[dict[str, Any]] = []
    try:
        for row in reader:
            # Skip blank lines (every cell empty).
            if not any((v or "").strip() for k, v in row.items() if k is not None):
                continue
            records.append({k.strip(): (v or "") for k, v in row.items() if k is not None})
    except csv.Error as e:
        msg = f"Could not parse the file: {e}"
        raise ImportFormatError(msg) from e
    return records


def parse_import_text(text: str, fmt: str) -> list[dict[str, Any]]:
    """Parse file contents in the given format.

    Raises:
        ImportFormatError: on malformed content, an empty result, or an unknown format.
    """
    text = text.lstrip("\ufeff")
    if fmt == "json":
        data = _parse_json(text)
    elif fmt == "csv":
        data = _parse_csv(text)
    else:
        msg = f"Unsupported file type {fmt!r}: please upload a JSON or CSV file."
        raise ImportFormatError(msg)

    if not data:
        msg = "The file is empty or not in the correct format."
        raise ImportFormatError(msg)
    if not all(isinstance(item, dict) for item in data):
        msg = "The file is not in the correct format: every record must be an object."
        raise ImportFormatError(msg)
    return data


def parse_import_file(path: Path) -> list[dict[str, Any]]:
    """Read and parse an upload, choosing the format from its extension."""
    fmt = detect_format(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        msg = f"Could not read {path.name}: not UTF-8 text"
        raise ImportFormatError(msg) from e
    return parse_import_text(text, fmt)


def sample_file(fmt: str) -> str:
    """Example upload showing the minimal columns."""
    if fmt == "json":
        sample = [{"type": "hadith", "arabic_text": "...", "urdu_translation": "..."}]
        return json.dumps(sample, indent=2, ensure_ascii=False) + "\n"
    if fmt == "csv":
        return 'type,arabic_text,urdu_translation\nhadith,"...","..."\n'
    msg = f"Unsupported sample format: {fmt!r}"
    raise ImportFormatError(msg)
