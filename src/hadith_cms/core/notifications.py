"""Activity feed derived from cache mutations, persisted locally."""

import time
from dataclasses import replace
from datetime import UTC, datetime

from loguru import logger

from hadith_cms.models.local import NOTIFICATION_TYPES, Notification
from hadith_cms.storage.local import LocalPersistence


class NotificationFeed:
    """Newest-first list of notifications with a derived unread count.

    The unread count is computed from the list on every read, so it cannot
    drift from what was persisted.
    """

    def __init__(self, persistence: LocalPersistence) -> None:
        self._persistence = persistence
        self._notifications: list[Notification] = persistence.read_notifications()
        self._last_id = 0

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._notifications)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._notifications if not n.read)

    def _next_id(self) -> str:
        # Millisecond clock, bumped when two notifications land in the same tick.
        now_ms = int(time.time() * 1000)
        self._last_id = max(now_ms, self._last_id + 1)
        return str(self._last_id)

    def add(self, type: str, title: str, message: str) -> Notification:
        if type not in NOTIFICATION_TYPES:
            msg = f"Unknown notification type: {type!r}"
            raise ValueError(msg)
        notification = Notification(
            id=self._next_id(),
            type=type,
            title=title,
            message=message,
            timestamp=datetime.now(UTC).isoformat(),
        )
        self._notifications = [notification, *self._notifications]
        self._persistence.write_notifications(self._notifications)
        logger.debug("Notification added: {}", title)
        return notification

    def mark_read(self, notification_id: str) -> bool:
        """Flag one notification as read. Returns False when the id is unknown."""
        found = False
        updated: list[Notification] = []
        for n in self._notifications:
            if n.id == notification_id:
                found = True
                n = replace(n, read=True)
            updated.append(n)
        if not found:
            return False
        self._notifications = updated
        self._persistence.write_notifications(self._notifications)
        return True

    def mark_all_read(self) -> None:
        self._notifications = [replace(n, read=True) for n in self._notifications]
        self._persistence.write_notifications(self._notifications)

    def clear(self) -> None:
        self._notifications = []
        self._persistence.clear_notifications()
