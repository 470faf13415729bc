"""CLI for hadith-cms: browse, edit, import, export and organize entries."""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from hadith_cms.api import SupabaseGateway
from hadith_cms.app import LocalServices, Services
from hadith_cms.config import DEFAULT_PAGE_SIZE, resolve_data_directory, resolve_pdf_font
from hadith_cms.core.collections import resolve_entries
from hadith_cms.core.export import EXPORT_FORMATS, EXPORT_SCOPES, export_data
from hadith_cms.core.importer import (
    ImportFormatError,
    confirm_import,
    parse_import_file,
    review_records,
)
from hadith_cms.core.importer.reader import sample_file
from hadith_cms.core.search.filtering import ALL_KINDS, browse, filter_collections
from hadith_cms.core.stats import compute_stats, recent_entries
from hadith_cms.logging_config import configure_logging
from hadith_cms.models.entry import Entry, EntryKind, HadithEntry
from hadith_cms.protocols import GatewayProtocol
from hadith_cms.storage.kv import SqliteStore

app = typer.Typer(help="Hadith & Quran CMS: curate bilingual Hadith and Ayat entries.")
collections_app = typer.Typer(help="Organize entries into local collections.")
notifications_app = typer.Typer(help="Review the local activity feed.")
app.add_typer(collections_app, name="collections")
app.add_typer(notifications_app, name="notifications")

_state: dict[str, Any] = {"data_dir": None}


def _echo_surface(title: str, message: str, *, destructive: bool = False) -> None:
    typer.echo(f"{title}: {message}", err=destructive)


def _make_gateway(store: SqliteStore) -> GatewayProtocol:
    """Build the remote gateway. Replaced in tests."""
    return SupabaseGateway(store)


def _data_dir() -> Path:
    return _state["data_dir"] or resolve_data_directory()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", "-d", help="Directory holding local state"),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write debug logs to this file"),
    ] = None,
) -> None:
    configure_logging(verbose=verbose, log_file=log_file)
    _state["data_dir"] = data_dir.expanduser() if data_dir else None


@contextmanager
def _local() -> Iterator[LocalServices]:
    local = LocalServices.open(_data_dir())
    try:
        yield local
    finally:
        local.close()


@contextmanager
def _services(*, require_user: bool = True) -> Iterator[Services]:
    """Open all services and load the cache. Exits when sign-in is required but missing."""
    local = LocalServices.open(_data_dir())
    try:
        gateway = _make_gateway(local.store)
    except RuntimeError as e:
        local.close()
        logger.error("{}", e)
        raise typer.Exit(1) from e
    services = Services.build(local, gateway, surface=_echo_surface)
    try:
        services.start()
        if require_user and services.session.current_user is None:
            typer.echo("Not signed in. Run 'hadith-cms login' first.", err=True)
            raise typer.Exit(1)
        yield services
    finally:
        services.close()


def _check(result: dict[str, Any]) -> dict[str, Any]:
    """Exit non-zero on a failed outcome, printing per-field errors."""
    if not result.get("success"):
        for field, message in (result.get("errors") or {}).items():
            typer.echo(f"  {field}: {message}", err=True)
        typer.echo(f"Error: {result.get('error')}", err=True)
        raise typer.Exit(1)
    return result


def _entry_summary(entry: Entry) -> str:
    return f"[{entry.kind.value}] {entry.arabic_text[:60]}  ({entry.reference or 'no reference'})"


def _entry_dict(entry: Entry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "type": entry.kind.value,
        "arabic_text": entry.arabic_text,
        "urdu_translation": entry.urdu_translation,
        "reference": entry.reference,
        "creator_name": entry.creator_name,
        "created_at": entry.created_at,
    }


# --- auth ---


@app.command()
def login(
    email: str = typer.Argument(..., help="Account email"),
    password: str = typer.Option(..., prompt=True, hide_input=True),
) -> None:
    """Sign in and remember the session on this device."""
    with _services(require_user=False) as services:
        _check(services.session.sign_in(email, password))
        typer.echo(f"Signed in as {email}. {len(services.cache.entries)} entries loaded.")


@app.command()
def logout() -> None:
    """Sign out and forget the stored session."""
    with _services(require_user=False) as services:
        _check(services.session.sign_out())
        typer.echo("You have been successfully logged out.")


@app.command()
def signup(
    email: str = typer.Argument(..., help="Account email"),
    name: str = typer.Option("", "--name", help="Display name"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
) -> None:
    """Create an account."""
    with _services(require_user=False) as services:
        _check(services.session.sign_up(email, password, name or None))
        typer.echo("Account created. Check your email to confirm it, then log in.")


@app.command()
def whoami() -> None:
    """Show the signed-in account."""
    with _services(require_user=False) as services:
        user = services.session.current_user
        if user is None:
            typer.echo("Not signed in.")
            return
        typer.echo(f"{user.display_name} <{user.email}>  [id={user.id}]")


@app.command()
def profile(name: str = typer.Option(..., "--name", help="New display name")) -> None:
    """Update the display name."""
    with _services() as services:
        _check(services.session.update_profile(name))
        typer.echo("Your profile has been successfully updated.")


@app.command()
def password(
    new_password: str = typer.Option(
        ..., "--new", prompt="New password", hide_input=True, confirmation_prompt=True
    ),
) -> None:
    """Change the password. You are signed out afterwards."""
    with _services() as services:
        _check(services.session.update_password(new_password))
        typer.echo("Your password has been changed. Please log in again.")


# --- entries ---


@app.command(name="list")
def list_cmd(
    query: str = typer.Option("", "--query", "-q", help="Free-text search over every field"),
    kind: str = typer.Option(ALL_KINDS, "--type", "-t", help="all, hadith or ayat"),
    page: int = typer.Option(1, "--page", "-p", help="Page number (1-based)"),
    page_size: int = typer.Option(DEFAULT_PAGE_SIZE, "--page-size", "-n", help="Entries per page"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Browse entries with search, type filter and pagination."""
    if kind.lower() not in {ALL_KINDS, *(k.value for k in EntryKind)}:
        typer.echo(f"Unknown type '{kind}'. Use all, hadith or ayat.", err=True)
        raise typer.Exit(1)
    if page_size < 1:
        typer.echo("Page size must be at least 1.", err=True)
        raise typer.Exit(1)

    with _services() as services:
        result = browse(
            services.cache.entries, query=query, kind=kind, page_size=page_size, page=page
        )

    if output_json:
        data = {
            "results": [_entry_dict(e) for e in result.items],
            "page": result.page,
            "total_pages": result.total_pages,
            "total": result.total,
        }
        typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return

    typer.echo(
        f"Found {result.total} entries (page {result.page} of {result.total_pages}):\n"
    )
    for entry in result.items:
        typer.echo(f"  {_entry_summary(entry)}")
        typer.echo(f"    {entry.urdu_translation[:80]}")
        typer.echo(f"    id={entry.id}  by={entry.creator_name or '?'}")
        typer.echo()


@app.command()
def show(entry_id: str = typer.Argument(..., help="Entry ID")) -> None:
    """Show every field of one entry."""
    with _services() as services:
        entry = services.cache.lookup_by_id(entry_id)
    if entry is None:
        typer.echo(f"Entry '{entry_id}' not found.")
        raise typer.Exit(1)

    typer.echo(f"{entry.kind.value.capitalize()}  [id={entry.id}]\n")
    typer.echo(f"Arabic:  {entry.arabic_text}")
    typer.echo(f"Urdu:    {entry.urdu_translation}")
    for label, value in _kind_fields(entry):
        if value:
            typer.echo(f"{label}: {value}")
    if entry.source_link:
        typer.echo(f"Source:  {entry.source_link}")
    if entry.note:
        typer.echo(f"Note:    {entry.note}")
    typer.echo(f"Added by {entry.creator_name or '?'} at {entry.created_at or 'N/A'}")
    if entry.updated_at:
        typer.echo(f"Updated at {entry.updated_at}")


def _kind_fields(entry: Entry) -> list[tuple[str, str | None]]:
    if isinstance(entry, HadithEntry):
        return [
            ("Reference", entry.reference_full),
            ("In-book reference", entry.in_book_reference),
            ("Hadith number", entry.hadith_number),
        ]
    return [
        ("Quran reference", entry.quran_reference),
        ("Surah", entry.surah_name),
        ("Ayat number", entry.ayat_number),
    ]


_FIELD_OPTIONS = {
    "arabic_text": "arabic",
    "urdu_translation": "urdu",
    "reference_full": "reference",
    "in_book_reference": "in_book",
    "hadith_number": "hadith_number",
    "quran_reference": "quran_reference",
    "surah_name": "surah",
    "ayat_number": "ayat_number",
    "source_link": "source",
    "note": "note",
}


def _collect_fields(values: dict[str, str | None]) -> dict[str, str]:
    return {
        column: values[option]  # type: ignore[misc]
        for column, option in _FIELD_OPTIONS.items()
        if values.get(option) is not None
    }


@app.command()
def add(
    kind: str = typer.Option(..., "--type", "-t", help="hadith or ayat"),
    arabic: str | None = typer.Option(None, "--arabic", help="Arabic text"),
    urdu: str | None = typer.Option(None, "--urdu", help="Urdu translation"),
    reference: str | None = typer.Option(None, "--reference", help="Full Hadith reference"),
    in_book: str | None = typer.Option(None, "--in-book", help="In-book reference"),
    hadith_number: str | None = typer.Option(None, "--hadith-number"),
    quran_reference: str | None = typer.Option(None, "--quran-reference"),
    surah: str | None = typer.Option(None, "--surah", help="Surah name"),
    ayat_number: str | None = typer.Option(None, "--ayat-number"),
    source: str | None = typer.Option(None, "--source", help="Source link (URL)"),
    note: str | None = typer.Option(None, "--note"),
) -> None:
    """Add a Hadith or Ayat entry."""
    fields = _collect_fields(locals())
    with _services() as services:
        result = _check(services.cache.create({"type": kind, **fields}))
        typer.echo(f"Created entry {result['data'].id}")


@app.command()
def edit(
    entry_id: str = typer.Argument(..., help="Entry ID"),
    arabic: str | None = typer.Option(None, "--arabic", help="Arabic text"),
    urdu: str | None = typer.Option(None, "--urdu", help="Urdu translation"),
    reference: str | None = typer.Option(None, "--reference", help="Full Hadith reference"),
    in_book: str | None = typer.Option(None, "--in-book", help="In-book reference"),
    hadith_number: str | None = typer.Option(None, "--hadith-number"),
    quran_reference: str | None = typer.Option(None, "--quran-reference"),
    surah: str | None = typer.Option(None, "--surah", help="Surah name"),
    ayat_number: str | None = typer.Option(None, "--ayat-number"),
    source: str | None = typer.Option(None, "--source", help="Source link (URL)"),
    note: str | None = typer.Option(None, "--note"),
) -> None:
    """Edit an entry. Only the given fields change; the type is fixed."""
    fields = _collect_fields(locals())
    if not fields:
        typer.echo("No fields to update.", err=True)
        raise typer.Exit(1)
    with _services() as services:
        if services.cache.lookup_by_id(entry_id) is None:
            typer.echo(f"Entry '{entry_id}' not found.")
            raise typer.Exit(1)
        _check(services.cache.update(entry_id, fields))


@app.command()
def delete(
    entry_id: str = typer.Argument(..., help="Entry ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete an entry permanently."""
    if not yes:
        typer.confirm(f"Delete entry {entry_id}? This cannot be undone", abort=True)
    with _services() as services:
        _check(services.cache.delete(entry_id))


@app.command()
def stats() -> None:
    """Dashboard figures and the most recent entries."""
    with _services() as services:
        entries = services.cache.entries
    figures = compute_stats(entries)
    typer.echo(f"Total Hadith:    {figures.total_hadith}")
    typer.echo(f"Total Quran Ayat: {figures.total_ayat}")
    typer.echo(f"Today's Hadith:  {figures.today_hadith} ({figures.hadith_change:+d} vs yesterday)")
    typer.echo(f"Today's Ayat:    {figures.today_ayat}")
    recent = recent_entries(entries)
    if recent:
        typer.echo("\nRecent entries:")
        for entry in recent:
            typer.echo(f"  {_entry_summary(entry)}  id={entry.id}")


# --- import / export ---


@app.command(name="import")
def import_cmd(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON or CSV file"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Import without asking"),
) -> None:
    """Review a JSON/CSV upload, then import its valid records."""
    try:
        records = parse_import_file(file)
    except ImportFormatError as e:
        typer.echo(f"Invalid file: {e}", err=True)
        raise typer.Exit(1) from e

    candidates = review_records(records)
    for candidate in candidates:
        mark = "ok " if candidate.is_valid else "ERR"
        arabic = str(candidate.fields.get("arabic_text") or "No Arabic text")[:60]
        typer.echo(f"  {mark} {candidate.kind_label}: {arabic}")
        if not candidate.is_valid:
            typer.echo(f"      {', '.join(candidate.errors)}")

    valid = sum(1 for c in candidates if c.is_valid)
    typer.echo(f"\n{valid} valid entries out of {len(candidates)} will be imported.")
    if valid == 0:
        typer.echo("There are no valid entries to import.", err=True)
        raise typer.Exit(1)
    if not yes:
        typer.confirm("Confirm import?", abort=True)

    with _services() as services:
        result = _check(confirm_import(candidates, services.cache))
    typer.echo(
        f"{result['count']} entries imported successfully. {result['skipped']} entries failed."
    )


@app.command(name="sample")
def sample_cmd(fmt: str = typer.Argument("json", help="json or csv")) -> None:
    """Print a sample import file."""
    try:
        typer.echo(sample_file(fmt), nl=False)
    except ImportFormatError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1) from e


@app.command(name="export")
def export_cmd(
    scope: str = typer.Option("all", "--scope", "-s", help=f"One of {', '.join(EXPORT_SCOPES)}"),
    fmt: str = typer.Option("excel", "--format", "-f", help=f"One of {', '.join(EXPORT_FORMATS)}"),
    output_dir: Path = typer.Option(Path("."), "--output-dir", "-o", help="Where to write"),
) -> None:
    """Export entries or collections to a workbook, a PDF or a markdown document.

    Set HADITH_CMS_PDF_FONT to a TrueType font to render Arabic and Urdu in PDFs.
    """
    if scope not in EXPORT_SCOPES or fmt not in EXPORT_FORMATS:
        typer.echo(
            f"Scope must be one of {EXPORT_SCOPES}, format one of {EXPORT_FORMATS}.", err=True
        )
        raise typer.Exit(1)
    try:
        font_path = resolve_pdf_font() if fmt == "pdf" else None
    except RuntimeError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1) from e
    with _services() as services:
        entries = services.cache.entries
        collections = services.local.collections.all()
    path = export_data(fmt, scope, entries, collections, output_dir, font_path=font_path)
    typer.echo(f"Exported to {path}")


# --- collections ---


@collections_app.command(name="list")
def collections_list(
    search: str = typer.Option("", "--search", "-s", help="Filter by name or description"),
) -> None:
    """List collections."""
    with _local() as local:
        found = filter_collections(local.collections.all(), search)
    typer.echo(f"{len(found)} collections:\n")
    for c in found:
        typer.echo(f"  {c.name} - {len(c.entry_ids)} entries  [id={c.id}]")
        if c.description:
            typer.echo(f"    {c.description}")


@collections_app.command(name="create")
def collections_create(
    name: str = typer.Argument(..., help="Collection name"),
    description: str = typer.Option("", "--description", "-D"),
) -> None:
    """Create an empty collection."""
    with _local() as local:
        result = _check(local.collections.create(name, description))
    typer.echo(f'"{name}" has been created. [id={result["data"].id}]')


@collections_app.command(name="update")
def collections_update(
    collection_id: int = typer.Argument(..., help="Collection ID"),
    name: str = typer.Option(..., "--name"),
    description: str = typer.Option("", "--description", "-D"),
) -> None:
    """Rename a collection or change its description."""
    with _local() as local:
        _check(local.collections.update(collection_id, name, description))
    typer.echo(f'"{name}" has been updated.')


@collections_app.command(name="delete")
def collections_delete(collection_id: int = typer.Argument(..., help="Collection ID")) -> None:
    """Delete a collection. Its entries are kept."""
    with _local() as local:
        _check(local.collections.delete(collection_id))
    typer.echo("The collection has been deleted.")


@collections_app.command(name="add")
def collections_add(
    collection_id: int = typer.Argument(..., help="Collection ID"),
    entry_id: str = typer.Argument(..., help="Entry ID"),
) -> None:
    """Add an entry to a collection."""
    with _local() as local:
        result = _check(local.collections.add_entry(collection_id, entry_id))
    typer.echo(f'Entry added to "{result["data"].name}".')


@collections_app.command(name="remove")
def collections_remove(
    collection_id: int = typer.Argument(..., help="Collection ID"),
    entry_id: str = typer.Argument(..., help="Entry ID"),
) -> None:
    """Remove an entry from a collection."""
    with _local() as local:
        _check(local.collections.remove_entry(collection_id, entry_id))
    typer.echo("The entry has been removed from this collection.")


@collections_app.command(name="show")
def collections_show(
    collection_id: int = typer.Argument(..., help="Collection ID"),
    query: str = typer.Option("", "--query", "-q", help="Search within the collection"),
) -> None:
    """Show the entries of a collection."""
    with _services() as services:
        collection = services.local.collections.get(collection_id)
        if collection is None:
            typer.echo("Collection not found.")
            raise typer.Exit(1)
        entries = resolve_entries(collection, services.cache.lookup_by_id)

    result = browse(entries, query=query, page_size=max(1, len(entries)))
    typer.echo(f"{collection.name} - {result.total} entries\n")
    for entry in result.items:
        typer.echo(f"  {_entry_summary(entry)}  id={entry.id}")


# --- notifications ---


@notifications_app.command(name="list")
def notifications_list(
    unread: bool = typer.Option(False, "--unread", "-u", help="Only unread"),
) -> None:
    """List notifications, newest first."""
    with _local() as local:
        feed = local.feed
        typer.echo(f"{len(feed.notifications)} notifications, {feed.unread_count} unread:\n")
        for n in feed.notifications:
            if unread and n.read:
                continue
            mark = " " if n.read else "*"
            typer.echo(f" {mark} [{n.type}] {n.title}: {n.message}")
            typer.echo(f"     {n.timestamp}  id={n.id}")


@notifications_app.command(name="read")
def notifications_read(notification_id: str = typer.Argument(..., help="Notification ID")) -> None:
    """Mark one notification as read."""
    with _local() as local:
        if not local.feed.mark_read(notification_id):
            typer.echo(f"Notification '{notification_id}' not found.")
            raise typer.Exit(1)


@notifications_app.command(name="read-all")
def notifications_read_all() -> None:
    """Mark every notification as read."""
    with _local() as local:
        local.feed.mark_all_read()


@notifications_app.command(name="clear")
def notifications_clear() -> None:
    """Delete all notifications."""
    with _local() as local:
        local.feed.clear()
