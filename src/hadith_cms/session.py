"""Session state: who is signed in, and whether restoration is still running."""

from collections.abc import Callable
from typing import Any

from loguru import logger

from hadith_cms.api import GatewayError
from hadith_cms.config import MIN_PASSWORD_LENGTH
from hadith_cms.models.user import Session, User
from hadith_cms.protocols import GatewayProtocol

StateListener = Callable[["SessionState"], None]


class SessionState:
    """Track the current identity and gate remote reads until it is resolved.

    Every change, including the end of restoration, fires the registered
    listeners so dependants (the content cache) can re-run their own load.
    """

    def __init__(self, gateway: GatewayProtocol) -> None:
        self._gateway = gateway
        self.current_user: User | None = None
        self.session: Session | None = None
        self.is_restoring = True
        self._listeners: list[StateListener] = []
        self._unsubscribe: Callable[[], None] | None = None

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _handle_session(self, session: Session | None) -> None:
        self.session = session
        self.current_user = session.user if session else None
        self.is_restoring = False
        self._notify()

    def start(self) -> None:
        """Restore any existing session, then follow session-change events."""
        try:
            session = self._gateway.get_session()
        except GatewayError:
            logger.opt(exception=True).warning("Session restore failed, continuing signed out")
            session = None
        if self._unsubscribe is None:
            self._unsubscribe = self._gateway.on_session_change(self._on_change)
        self._handle_session(session)

    def _on_change(self, event: str, session: Session | None) -> None:
        logger.debug("Session event {}", event)
        self._handle_session(session)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # --- delegations ---

    def sign_in(self, email: str, password: str) -> dict[str, Any]:
        try:
            self._gateway.sign_in(email, password)
        except GatewayError as e:
            logger.error("Sign in failed: {}", e)
            return {"success": False, "error": str(e)}
        logger.info("Signed in as {}", email)
        return {"success": True}

    def sign_up(self, email: str, password: str, name: str | None = None) -> dict[str, Any]:
        metadata = {"name": name} if name else None
        try:
            self._gateway.sign_up(email, password, metadata)
        except GatewayError as e:
            logger.error("Sign up failed: {}", e)
            return {"success": False, "error": str(e)}
        return {"success": True}

    def sign_out(self) -> dict[str, Any]:
        try:
            self._gateway.sign_out()
        except GatewayError as e:
            logger.error("Sign out failed: {}", e)
            return {"success": False, "error": str(e)}
        return {"success": True}

    def update_profile(self, name: str) -> dict[str, Any]:
        try:
            self._gateway.update_user({"data": {"name": name}})
        except GatewayError as e:
            logger.error("Profile update failed: {}", e)
            return {"success": False, "error": str(e)}
        return {"success": True}

    def update_password(self, new_password: str, confirm: str | None = None) -> dict[str, Any]:
        """Change the password, then sign out so the user logs in again."""
        if confirm is not None and confirm != new_password:
            return {"success": False, "error": "New passwords do not match."}
        if len(new_password) < MIN_PASSWORD_LENGTH:
            return {
                "success": False,
                "error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.",
            }
        try:
            self._gateway.update_user({"password": new_password})
        except GatewayError as e:
            logger.error("Password update failed: {}", e)
            return {"success": False, "error": str(e)}
        return self.sign_out()
