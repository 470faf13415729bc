"""Export entries and collections to a workbook, a PDF or a markdown document."""

import io
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any

from fpdf import FPDF
from fpdf.fonts import FontFace
from loguru import logger
from openpyxl import Workbook

from hadith_cms.core.collections import resolve_entries
from hadith_cms.models.entry import Entry, EntryKind
from hadith_cms.models.local import Collection

EXPORT_SCOPES = ("all", "hadith", "ayat", "collections")
EXPORT_FORMATS = ("excel", "pdf", "markdown")

# Excel rejects longer sheet names.
_MAX_SHEET_NAME = 31

_PDF_HEADER_FILL = (22, 160, 133)


@dataclass(frozen=True)
class Section:
    """One sheet of a workbook, or one titled table of a document."""

    title: str
    columns: tuple[str, ...]
    rows: tuple[tuple[Any, ...], ...]


def _format_created(created_at: str | None) -> str:
    if not created_at:
        return "N/A"
    try:
        return datetime.fromisoformat(created_at).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return created_at


def _entry_row(entry: Entry, *, with_kind: bool, with_created: bool = True) -> tuple[Any, ...]:
    row: list[Any] = [entry.id]
    if with_kind:
        row.append(entry.kind.value)
    row += [entry.arabic_text, entry.urdu_translation, entry.reference]
    if with_created:
        row.append(_format_created(entry.created_at))
    return tuple(row)


def build_sections(
    scope: str,
    entries: Sequence[Entry],
    collections: Sequence[Collection] = (),
    *,
    per_collection: bool = True,
) -> list[Section]:
    """Project the requested scope into titled tables.

    For ``collections``, ``per_collection`` gives one table of entries per
    collection; otherwise a single summary table of the collections.
    """
    if scope == "all":
        return [
            Section(
                title="All Content",
                columns=("ID", "Type", "Arabic", "Urdu", "Reference", "Created At"),
                rows=tuple(_entry_row(e, with_kind=True) for e in entries),
            )
        ]
    if scope in ("hadith", "ayat"):
        kind = EntryKind(scope)
        title = "All Hadith" if kind is EntryKind.HADITH else "All Ayat"
        return [
            Section(
                title=title,
                columns=("ID", "Arabic", "Urdu", "Reference", "Created At"),
                rows=tuple(_entry_row(e, with_kind=False) for e in entries if e.kind is kind),
            )
        ]
    if scope == "collections":
        if not per_collection:
            return [
                Section(
                    title="Collections",
                    columns=("ID", "Name", "Description", "Entries"),
                    rows=tuple(
                        (c.id, c.name, c.description, len(c.entry_ids)) for c in collections
                    ),
                )
            ]
        by_id = {e.id: e for e in entries}
        lookup: Callable[[str], Entry | None] = by_id.get
        return [
            Section(
                title=c.name,
                columns=("ID", "Type", "Arabic", "Urdu", "Reference"),
                rows=tuple(
                    _entry_row(e, with_kind=True, with_created=False)
                    for e in resolve_entries(c, lookup)
                ),
            )
            for c in collections
        ]
    msg = f"Unknown export scope: {scope!r} (expected one of {EXPORT_SCOPES})"
    raise ValueError(msg)


def _unique_sheet_title(title: str, used: set[str]) -> str:
    base = (title.replace("/", "_").replace("\\", "_") or "Sheet")[:_MAX_SHEET_NAME]
    name = base
    count = 0
    while name.lower() in used:
        count += 1
        suffix = f"-{count}"
        name = base[: _MAX_SHEET_NAME - len(suffix)] + suffix
    used.add(name.lower())
    return name


def write_workbook(sections: Sequence[Section], path: Path) -> Path:
    """Write one sheet per section."""
    wb = Workbook()
    default = wb.active
    used: set[str] = set()
    for section in sections:
        ws = wb.create_sheet(_unique_sheet_title(section.title, used))
        ws.append(list(section.columns))
        for row in section.rows:
            ws.append(list(row))
    if sections and default is not None:
        wb.remove(default)
    wb.save(path)
    logger.info("Wrote workbook {} ({} sheets)", path, len(sections))
    return path


def _md_cell(value: Any) -> str:
    return str(value).replace("|", "\\|").replace("\n", "<br>")


def render_markdown(sections: Sequence[Section], *, title: str = "Export") -> str:
    """Render sections as a markdown document with one table each."""
    out = io.StringIO()
    out.write(f"# {title}\n")
    for section in sections:
        out.write(f"\n## {section.title}\n\n")
        if not section.rows:
            out.write("_No entries._\n")
            continue
        out.write("| " + " | ".join(section.columns) + " |\n")
        out.write("|" + "---|" * len(section.columns) + "\n")
        for row in section.rows:
            out.write("| " + " | ".join(_md_cell(v) for v in row) + " |\n")
    return out.getvalue()


def _pdf_text(value: Any, unicode_font: bool) -> str:
    text = str(value)
    if unicode_font:
        return text
    # Core fonts are Latin-1 only.
    return text.encode("latin-1", "replace").decode("latin-1")


def write_pdf(
    sections: Sequence[Section], path: Path, *, title: str, font_path: Path | None = None
) -> Path:
    """Write a paginated PDF: the title, then one table per section.

    Without ``font_path`` the built-in Helvetica is used and characters outside
    Latin-1 are replaced with ``?``.
    """
    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    family = "helvetica"
    if font_path is not None:
        pdf.add_font("body", fname=str(font_path))
        family = "body"
    else:
        logger.warning("No PDF font configured; non-Latin text is replaced with '?'")
    unicode_font = font_path is not None

    pdf.add_page()
    pdf.set_font(family, size=14)
    pdf.cell(0, 10, _pdf_text(title, unicode_font), new_x="LMARGIN", new_y="NEXT")
    heading = FontFace(color=255, fill_color=_PDF_HEADER_FILL)
    for section in sections:
        if len(sections) > 1:
            pdf.set_font(family, size=11)
            pdf.cell(0, 8, _pdf_text(section.title, unicode_font), new_x="LMARGIN", new_y="NEXT")
        pdf.set_font(family, size=8)
        with pdf.table(headings_style=heading) as table:
            header = table.row()
            for column in section.columns:
                header.cell(_pdf_text(column, unicode_font))
            for values in section.rows:
                row = table.row()
                for value in values:
                    row.cell(_pdf_text(value, unicode_font))
        pdf.ln(4)
    pdf.output(str(path))
    logger.info("Wrote PDF {} ({} pages)", path, pdf.page_no())
    return path


def default_filename(
    fmt: str, scope: str, today: date | None = None, *, title: str | None = None
) -> str:
    stamp = (today or date.today()).isoformat()
    if fmt == "excel":
        return f"islamic_cms_export_{stamp}.xlsx"
    if fmt == "pdf":
        slug = re.sub(r"\s+", "_", title or scope).lower()
        return f"{slug}_{stamp}.pdf"
    return f"{scope}_{stamp}.md"


def export_data(
    fmt: str,
    scope: str,
    entries: Sequence[Entry],
    collections: Sequence[Collection],
    output_dir: Path,
    *,
    font_path: Path | None = None,
) -> Path:
    """Export the scope in the chosen format into output_dir. Returns the file written."""
    if fmt not in EXPORT_FORMATS:
        msg = f"Unknown export format: {fmt!r} (expected one of {EXPORT_FORMATS})"
        raise ValueError(msg)
    # Documents list collections as a summary; a workbook gets a sheet per collection.
    sections = build_sections(scope, entries, collections, per_collection=fmt == "excel")
    title = sections[0].title if len(sections) == 1 else "Collections"
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / default_filename(fmt, scope, title=title)
    if fmt == "excel":
        return write_workbook(sections, path)
    if fmt == "pdf":
        return write_pdf(sections, path, title=title, font_path=font_path)
    path.write_text(render_markdown(sections, title=title), encoding="utf-8")
    logger.info("Wrote document {}", path)
    return path
