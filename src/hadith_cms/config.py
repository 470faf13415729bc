"""Configuration constants for hadith-cms."""

import os
from pathlib import Path
from typing import Any

# Backend credentials. Environment wins; otherwise the first file found is used.
# Each file holds two lines: the project URL and the public (anon) API key.
BACKEND_URL_ENV = "HADITH_CMS_URL"
BACKEND_KEY_ENV = "HADITH_CMS_ANON_KEY"
CREDENTIAL_FILES: list[Path] = [
    Path("~/.config/hadith-cms/backend.txt").expanduser(),
    Path("~/.config/secret/hadith-cms-backend.txt").expanduser(),
]

# Directory with local state. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/hadith-cms").expanduser(),
    Path("~/.hadith-cms").expanduser(),
    Path("~/.config/hadith-cms").expanduser(),
]

LOCAL_DB_NAME = "local.db"

# Remote table and read view.
ENTRIES_TABLE = "entries"
ENTRIES_VIEW = "entries_with_users"

# Seconds before an HTTP request is abandoned.
REQUEST_TIMEOUT: float = 30.0

# TrueType font for PDF export. The built-in Helvetica only covers Latin-1, so
# Arabic and Urdu text needs a font such as Noto Naskh Arabic.
PDF_FONT_ENV = "HADITH_CMS_PDF_FONT"

DEFAULT_PAGE_SIZE = 10
PAGE_SIZE_CHOICES: tuple[int, ...] = (5, 10, 20, 50)

# Shown on the very first read of the collections key.
SEED_COLLECTIONS: list[dict[str, Any]] = [
    {
        "id": 1,
        "name": "Sahih Bukhari",
        "description": "Authentic Hadith Collection",
        "entryIds": ["h1", "h2"],
    },
    {
        "id": 2,
        "name": "Favorite Ayat",
        "description": "Bookmarked Quran Verses",
        "entryIds": ["q1"],
    },
]

MIN_PASSWORD_LENGTH = 8


def resolve_data_directory() -> Path:
    """Return the first existing data directory, or the default one."""
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]


def resolve_backend_credentials() -> tuple[str, str]:
    """Return (url, anon_key) for the hosted backend.

    Raises:
        RuntimeError: if neither the environment nor a credential file provides them.
    """
    url = os.environ.get(BACKEND_URL_ENV, "").strip()
    key = os.environ.get(BACKEND_KEY_ENV, "").strip()
    if url and key:
        return url.rstrip("/"), key

    for cred_path in CREDENTIAL_FILES:
        try:
            lines = cred_path.read_text(encoding="utf-8").split()
        except FileNotFoundError:
            continue
        if len(lines) >= 2:
            return lines[0].rstrip("/"), lines[1]

    msg = (
        f"Cannot find backend credentials: set {BACKEND_URL_ENV} and {BACKEND_KEY_ENV}, "
        f"or create one of {CREDENTIAL_FILES!r}"
    )
    raise RuntimeError(msg)


def resolve_pdf_font() -> Path | None:
    """Return the configured PDF font file, or None to use the built-in font."""
    value = os.environ.get(PDF_FONT_ENV, "").strip()
    if not value:
        return None
    path = Path(value).expanduser()
    if not path.is_file():
        msg = f"{PDF_FONT_ENV} points to {path}, which is not a file"
        raise RuntimeError(msg)
    return path
