"""Device-local aggregates: collections and notifications."""

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class Collection:
    """A named, ordered bag of entry ids. Never copies the entries themselves."""

    id: int
    name: str
    description: str = ""
    entry_ids: tuple[str, ...] = ()

    def with_entry(self, entry_id: str) -> "Collection":
        if entry_id in self.entry_ids:
            return self
        return replace(self, entry_ids=(*self.entry_ids, entry_id))

    def without_entry(self, entry_id: str) -> "Collection":
        return replace(self, entry_ids=tuple(e for e in self.entry_ids if e != entry_id))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "entryIds": list(self.entry_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Collection":
        return cls(
            id=int(data["id"]),
            name=str(data.get("name", "")),
            description=str(data.get("description") or ""),
            entry_ids=tuple(str(e) for e in data.get("entryIds") or ()),
        )


NOTIFICATION_TYPES = ("success", "error", "warning", "info")


@dataclass(frozen=True)
class Notification:
    """One activity-log record."""

    id: str
    type: str
    title: str
    message: str
    timestamp: str
    read: bool = False
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp,
            "read": self.read,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Notification":
        known = {"id", "type", "title", "message", "timestamp", "read"}
        return cls(
            id=str(data["id"]),
            type=str(data.get("type", "info")),
            title=str(data.get("title", "")),
            message=str(data.get("message", "")),
            timestamp=str(data.get("timestamp", "")),
            read=bool(data.get("read", False)),
            extra={k: v for k, v in data.items() if k not in known},
        )
