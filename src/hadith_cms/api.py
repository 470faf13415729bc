"""Hosted backend client: REST row storage plus auth session."""

import time
from collections.abc import Callable
from typing import Any

import requests
from loguru import logger

from hadith_cms.config import (
    ENTRIES_TABLE,
    ENTRIES_VIEW,
    REQUEST_TIMEOUT,
    resolve_backend_credentials,
)
from hadith_cms.models.user import Session, User
from hadith_cms.protocols import KeyValueStoreProtocol, SessionListener

SESSION_KEY = "auth_session"

# Refresh tokens this many seconds before they expire.
_EXPIRY_MARGIN = 60


class GatewayError(RuntimeError):
    """A remote call failed (network error or backend rejection)."""


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text[:200]}"
    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


def _expect_rows(body: Any, path: str) -> list[dict[str, Any]]:
    """Check that a row endpoint answered with a list of objects."""
    if body is None:
        return []
    if not isinstance(body, list) or not all(isinstance(row, dict) for row in body):
        msg = f"Unexpected response from {path}: expected a list of rows"
        raise GatewayError(msg)
    return body


class SupabaseGateway:
    """Encapsulated backend API with a persisted auth session.

    The session is stored in the local key-value store so that a later
    process restores it, the same way the browser client keeps it in local
    storage.
    """

    def __init__(
        self,
        store: KeyValueStoreProtocol,
        *,
        url: str | None = None,
        anon_key: str | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        if url is None or anon_key is None:
            url, anon_key = resolve_backend_credentials()
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self.sess = requests.Session()
        self._store = store
        self._session: Session | None = None
        self._listeners: list[SessionListener] = []
        logger.debug("Gateway ready: url {!r}, timeout {}s", self.url, timeout)

    # --- transport ---

    def _headers(self, *, prefer: str | None = None) -> dict[str, str]:
        token = self._session.access_token if self._session else self.anon_key
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        """Invoke a backend endpoint, return decoded JSON (or None for empty bodies)."""
        logger.debug("Making request: {} {} {}", method, path, repr(params)[:64])
        try:
            r = self.sess.request(
                method,
                f"{self.url}/{path}",
                params=params,
                json=json,
                headers=self._headers(prefer=prefer),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            msg = f"Request failed: {method} {path}: {e}"
            raise GatewayError(msg) from e

        if not r.ok:
            msg = f"{method} {path} failed: {_error_message(r)}"
            raise GatewayError(msg)
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            msg = f"{method} {path} returned a non-JSON body: {r.text[:100]!r}"
            raise GatewayError(msg) from e

    # --- rows ---

    def list_entries(self) -> list[dict[str, Any]]:
        path = f"rest/v1/{ENTRIES_VIEW}"
        rows = self._request("GET", path, params={"select": "*", "order": "created_at.desc"})
        return _expect_rows(rows, path)

    def insert_entry(self, row: dict[str, Any]) -> dict[str, Any]:
        path = f"rest/v1/{ENTRIES_TABLE}"
        rows = _expect_rows(
            self._request("POST", path, json=row, prefer="return=representation"), path
        )
        if not rows:
            msg = "Insert returned no row"
            raise GatewayError(msg)
        return rows[0]

    def insert_entries(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        path = f"rest/v1/{ENTRIES_TABLE}"
        inserted = self._request("POST", path, json=rows, prefer="return=representation")
        return _expect_rows(inserted, path)

    def update_entry(self, entry_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        path = f"rest/v1/{ENTRIES_TABLE}"
        body = self._request(
            "PATCH",
            path,
            params={"id": f"eq.{entry_id}"},
            json=fields,
            prefer="return=representation",
        )
        rows = _expect_rows(body, path)
        if not rows:
            msg = f"Entry {entry_id!r} not found"
            raise GatewayError(msg)
        return rows[0]

    def delete_entry(self, entry_id: str) -> None:
        self._request("DELETE", f"rest/v1/{ENTRIES_TABLE}", params={"id": f"eq.{entry_id}"})

    # --- auth ---

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_session(self, event: str, session: Session | None) -> None:
        self._session = session
        if session is None:
            self._store.remove(SESSION_KEY)
        else:
            self._store.set(SESSION_KEY, session.to_dict())
        for listener in list(self._listeners):
            listener(event, session)

    @staticmethod
    def _user_from_body(body: Any) -> User:
        try:
            return User.from_dict(body)
        except (AttributeError, KeyError, TypeError) as e:
            msg = f"Malformed user in auth response: {e!r}"
            raise GatewayError(msg) from e

    def _session_from_token_response(self, body: Any) -> Session:
        if not isinstance(body, dict):
            msg = "Malformed auth response: expected an object"
            raise GatewayError(msg)
        try:
            access_token = str(body["access_token"])
            expires_at = body.get("expires_at")
            if expires_at is None and body.get("expires_in") is not None:
                expires_at = int(time.time()) + int(body["expires_in"])
        except (KeyError, TypeError, ValueError) as e:
            msg = f"Malformed auth response: {e!r}"
            raise GatewayError(msg) from e
        return Session(
            access_token=access_token,
            refresh_token=body.get("refresh_token") or "",
            user=self._user_from_body(body.get("user")),
            expires_at=expires_at,
        )

    def get_session(self) -> Session | None:
        """Restore the stored session, refreshing it when it is about to expire."""
        if self._session is None:
            raw = self._store.get(SESSION_KEY)
            if raw is None:
                return None
            try:
                self._session = Session.from_dict(raw)
            except (AttributeError, KeyError, TypeError):
                logger.warning("Discarding malformed stored session")
                self._store.remove(SESSION_KEY)
                return None

        session = self._session
        if session.expires_at is not None and session.expires_at - _EXPIRY_MARGIN <= time.time():
            self._refresh_session(session)
        return self._session

    def _refresh_session(self, session: Session) -> None:
        logger.debug("Refreshing access token for {}", session.user.id)
        self._session = None
        try:
            body = self._request(
                "POST",
                "auth/v1/token",
                params={"grant_type": "refresh_token"},
                json={"refresh_token": session.refresh_token},
            )
            refreshed = self._session_from_token_response(body)
        except GatewayError:
            self._set_session("SIGNED_OUT", None)
            raise
        self._set_session("TOKEN_REFRESHED", refreshed)

    def sign_in(self, email: str, password: str) -> Session:
        body = self._request(
            "POST",
            "auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = self._session_from_token_response(body)
        self._set_session("SIGNED_IN", session)
        return session

    def sign_up(self, email: str, password: str, metadata: dict[str, Any] | None = None) -> None:
        self._request(
            "POST",
            "auth/v1/signup",
            json={"email": email, "password": password, "data": metadata or {}},
        )

    def sign_out(self) -> None:
        try:
            if self._session is not None:
                self._request("POST", "auth/v1/logout")
        finally:
            self._set_session("SIGNED_OUT", None)

    def update_user(self, attributes: dict[str, Any]) -> None:
        if self._session is None:
            msg = "Not signed in"
            raise GatewayError(msg)
        body = self._request("PUT", "auth/v1/user", json=attributes)
        if body:
            session = Session(
                access_token=self._session.access_token,
                refresh_token=self._session.refresh_token,
                user=self._user_from_body(body),
                expires_at=self._session.expires_at,
            )
            self._set_session("USER_UPDATED", session)
