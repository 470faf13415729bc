"""Protocols for dependency injection across the client."""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from hadith_cms.models.user import Session

# (event name, new session or None)
SessionListener = Callable[[str, Session | None], None]


@runtime_checkable
class GatewayProtocol(Protocol):
    """Protocol for the hosted backend: row storage plus auth session.

    Implementations raise ``GatewayError`` on any remote failure.
    """

    def list_entries(self) -> list[dict[str, Any]]:
        """Return all rows of the joined read view, newest first."""
        ...

    def insert_entry(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert one row into the base table and return it."""
        ...

    def insert_entries(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert many rows in one request and return them."""
        ...

    def update_entry(self, entry_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Apply a partial update keyed by id and return the updated row."""
        ...

    def delete_entry(self, entry_id: str) -> None:
        """Hard-delete a row by id."""
        ...

    def get_session(self) -> Session | None:
        """Return the restored session, if any."""
        ...

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        """Subscribe to login/logout/refresh events. Returns an unsubscribe callable."""
        ...

    def sign_in(self, email: str, password: str) -> Session:
        ...

    def sign_up(self, email: str, password: str, metadata: dict[str, Any] | None = None) -> None:
        ...

    def sign_out(self) -> None:
        ...

    def update_user(self, attributes: dict[str, Any]) -> None:
        ...


@runtime_checkable
class KeyValueStoreProtocol(Protocol):
    """Protocol for the embedded whole-value store behind local persistence."""

    def get(self, key: str) -> Any | None:
        """Return the decoded value for key, or None when absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Replace the value stored under key."""
        ...

    def remove(self, key: str) -> None:
        """Delete key. Missing keys are ignored."""
        ...


@runtime_checkable
class ErrorSurface(Protocol):
    """Sink for user-visible messages (a toast in a graphical front end)."""

    def __call__(self, title: str, message: str, *, destructive: bool = False) -> None:
        ...
