"""In-memory mirror of remote entries, the single source of truth for a session."""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from loguru import logger

from hadith_cms.api import GatewayError
from hadith_cms.core.notifications import NotificationFeed
from hadith_cms.models.entry import (
    IMMUTABLE_FIELDS,
    Entry,
    EntryKind,
    entry_from_row,
    entry_to_row,
    foreign_fields,
    validate_entry_fields,
    writable_fields,
)
from hadith_cms.protocols import ErrorSurface, GatewayProtocol
from hadith_cms.session import SessionState

NOT_AUTHENTICATED = "User not authenticated"


class Consistency(Enum):
    """How the cache catches up with the remote store after a write."""

    REFETCH = "refetch"
    LOCAL_PATCH = "local_patch"


# The joined read view adds the creator's display name, which an insert or
# update response from the base table lacks, so those writes refetch.
DEFAULT_POLICY: dict[str, Consistency] = {
    "create": Consistency.REFETCH,
    "bulk_create": Consistency.REFETCH,
    "update": Consistency.REFETCH,
    "delete": Consistency.LOCAL_PATCH,
}


def log_surface(title: str, message: str, *, destructive: bool = False) -> None:
    """Default error surface: write to the log."""
    if destructive:
        logger.error("{}: {}", title, message)
    else:
        logger.info("{}: {}", title, message)


class ContentCache:
    """Entry list synchronized from the gateway.

    Only this class mutates the list; readers get an immutable snapshot via
    ``entries``. Refreshes are not serialized against each other, so the last
    one to complete wins.
    """

    def __init__(
        self,
        gateway: GatewayProtocol,
        session: SessionState,
        *,
        feed: NotificationFeed | None = None,
        surface: ErrorSurface | None = None,
        policy: dict[str, Consistency] | None = None,
    ) -> None:
        self._gateway = gateway
        self._session = session
        self._feed = feed
        self._surface: ErrorSurface = surface or log_surface
        self.policy = {**DEFAULT_POLICY, **(policy or {})}
        self._entries: list[Entry] = []
        self.loading = True
        self._first_load_pending = True
        self._remove_listener: Callable[[], None] | None = None

    # --- lifecycle ---

    def start(self) -> None:
        """Follow the session: load once it resolves and on every later change."""
        if self._remove_listener is None:
            self._remove_listener = self._session.add_listener(self._on_session_change)
        if not self._session.is_restoring:
            self._auto_refresh()

    def close(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None

    def _on_session_change(self, _state: SessionState) -> None:
        self._auto_refresh()

    def _auto_refresh(self) -> None:
        # Only the very first automatic load hides errors (session warm-up).
        suppress = self._first_load_pending
        self._first_load_pending = False
        self.refresh(suppress_error_surface=suppress)

    # --- reads ---

    @property
    def entries(self) -> tuple[Entry, ...]:
        return tuple(self._entries)

    def lookup_by_id(self, entry_id: str) -> Entry | None:
        """Synchronous scan of the in-memory list. Never touches the network."""
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def refresh(self, suppress_error_surface: bool = False) -> None:
        """Replace the whole list with the joined view, newest first."""
        if self._session.is_restoring:
            return
        if self._session.current_user is None:
            self._entries = []
            self.loading = False
            return

        self.loading = True
        try:
            rows = self._gateway.list_entries()
        except GatewayError:
            logger.exception("Failed to fetch entries")
            self._entries = []
            if not suppress_error_surface:
                self._surface(
                    "Error",
                    "Could not fetch data. Please check your connection.",
                    destructive=True,
                )
        else:
            self._entries = list(self._rows_to_entries(rows))
            logger.debug("Cache refreshed: {} entries", len(self._entries))
        finally:
            self.loading = False

    @staticmethod
    def _rows_to_entries(rows: Iterable[dict[str, Any]]) -> Iterable[Entry]:
        for row in rows:
            try:
                yield entry_from_row(row)
            except (KeyError, ValueError):
                logger.warning("Skipping malformed entry row {!r}", row.get("id"))

    # --- writes ---

    def _catch_up(
        self, operation: str, *, rows: Iterable[dict[str, Any]] = (), removed: str | None = None
    ) -> None:
        if self.policy[operation] is Consistency.REFETCH:
            self.refresh()
            return
        if removed is not None:
            self._entries = [e for e in self._entries if e.id != removed]
        patched = {e.id: e for e in self._rows_to_entries(rows)}
        if not patched:
            return
        kept = [patched.pop(e.id) if e.id in patched else e for e in self._entries]
        # Whatever is left over is new: newest first.
        self._entries = [*patched.values(), *kept]

    def _fail(self, title: str, error: str) -> dict[str, Any]:
        self._surface(title, error, destructive=True)
        return {"success": False, "error": error}

    @staticmethod
    def _invalid(field_errors: dict[str, str]) -> dict[str, Any]:
        return {
            "success": False,
            "error": "Please fill in the required fields.",
            "errors": field_errors,
        }

    @staticmethod
    def _kind_mismatch(kind: EntryKind, foreign: list[str]) -> dict[str, Any]:
        return {
            "success": False,
            "error": f"Fields not valid for a {kind.value} entry: {', '.join(foreign)}",
            "errors": {name: f"Not a {kind.value} field." for name in foreign},
        }

    @staticmethod
    def _writable(data: dict[str, Any], kind: EntryKind) -> dict[str, Any]:
        allowed = writable_fields(kind)
        dropped = sorted(k for k in data if k not in allowed)
        if dropped:
            logger.debug("Dropping non-writable fields {}", dropped)
        return {k: v for k, v in data.items() if k in allowed}

    def create(self, entry: Entry | dict[str, Any]) -> dict[str, Any]:
        """Insert one entry stamped with the current user, then refresh."""
        user = self._session.current_user
        if user is None:
            return {"success": False, "error": NOT_AUTHENTICATED}

        if isinstance(entry, dict):
            try:
                kind = EntryKind.parse(entry.get("type"))
            except ValueError as e:
                return {"success": False, "error": str(e), "errors": {"type": str(e)}}
            foreign = foreign_fields(entry, kind)
            if foreign:
                return self._kind_mismatch(kind, foreign)
            row = self._writable({**entry, "type": kind.value}, kind)
        else:
            kind = entry.kind
            row = entry_to_row(entry)
        field_errors = validate_entry_fields(row, kind)
        if field_errors:
            return self._invalid(field_errors)
        row["created_by"] = user.id

        try:
            created_row = self._gateway.insert_entry(row)
        except GatewayError as e:
            logger.error("Create failed: {}", e)
            return self._fail("Error", str(e) or "Failed to add content. Please try again.")

        self._catch_up("create", rows=[created_row])

        if self._feed is not None:
            self._feed.add(
                "success",
                "Content Added",
                f"New {kind.value} entry has been successfully added.",
            )
        label = "Hadith" if kind is EntryKind.HADITH else "Ayat"
        self._surface("Success!", f"{label} added successfully.")
        return {"success": True, "data": entry_from_row(created_row)}

    def bulk_create(self, records: list[dict[str, Any]]) -> dict[str, Any]:
        """Insert all records in one request. The batch succeeds or fails as a whole.

        Fields of the other kind are dropped from each record with a warning.
        """
        user = self._session.current_user
        if user is None:
            return {"success": False, "error": NOT_AUTHENTICATED}
        if not records:
            return {"success": False, "error": "No entries to import."}

        rows: list[dict[str, Any]] = []
        for record in records:
            try:
                kind = EntryKind.parse(record.get("type"))
            except ValueError as e:
                return {"success": False, "error": str(e)}
            foreign = foreign_fields(record, kind)
            if foreign:
                logger.warning("Dropping fields {} from a {} record", foreign, kind.value)
            row = self._writable({**record, "type": kind.value}, kind)
            rows.append({**row, "created_by": user.id})

        try:
            inserted = self._gateway.insert_entries(rows)
        except GatewayError as e:
            logger.error("Bulk insert of {} rows failed: {}", len(rows), e)
            return self._fail(
                "Import Error", str(e) or "An error occurred during the import process."
            )

        self._catch_up("bulk_create", rows=inserted)

        count = len(inserted)
        if self._feed is not None:
            self._feed.add("success", "Import Successful", f"{count} entries have been imported.")
        self._surface("Import Successful", f"{count} entries have been imported.")
        return {"success": True, "count": count}

    def update(self, entry_id: str, patch: Entry | dict[str, Any]) -> dict[str, Any]:
        """Send a partial update without derived or immutable fields, then refresh.

        The patch is merged over the cached entry and the result must still be
        a complete entry of the same kind. An entry's kind cannot change after
        creation; a patch that tries (through ``type`` or ``kind``) is rejected.
        """
        data = entry_to_row(patch) if not isinstance(patch, dict) else dict(patch)
        requested = [data.pop(key, None) for key in ("type", "kind")]

        current = self.lookup_by_id(entry_id)
        if current is None:
            return self._fail("Error", f"Entry {entry_id!r} not found.")
        for value in requested:
            if value is None:
                continue
            try:
                kind = EntryKind.parse(value)
            except ValueError as e:
                return {"success": False, "error": str(e)}
            if kind is not current.kind:
                return {"success": False, "error": "Entry kind cannot be changed after creation."}

        data = {k: v for k, v in data.items() if k not in IMMUTABLE_FIELDS}
        data.pop("created_by", None)
        foreign = foreign_fields(data, current.kind)
        if foreign:
            return self._kind_mismatch(current.kind, foreign)
        payload = self._writable(data, current.kind)
        field_errors = validate_entry_fields({**entry_to_row(current), **payload}, current.kind)
        if field_errors:
            return self._invalid(field_errors)
        payload["updated_at"] = datetime.now(UTC).isoformat()

        try:
            updated_row = self._gateway.update_entry(entry_id, payload)
        except GatewayError as e:
            logger.error("Update of {} failed: {}", entry_id, e)
            return self._fail("Error", str(e) or "Failed to update entry.")

        self._catch_up("update", rows=[updated_row])
        self._surface("Success!", "Entry updated successfully.")
        return {"success": True, "data": entry_from_row(updated_row)}

    def delete(self, entry_id: str) -> dict[str, Any]:
        """Hard-delete by id; the id leaves the list as soon as the call succeeds."""
        try:
            self._gateway.delete_entry(entry_id)
        except GatewayError as e:
            logger.error("Delete of {} failed: {}", entry_id, e)
            return self._fail("Error", str(e) or "Failed to delete entry.")

        self._catch_up("delete", removed=entry_id)
        self._surface("Entry Deleted", "The entry has been successfully deleted.")
        return {"success": True}
