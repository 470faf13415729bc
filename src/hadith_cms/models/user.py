"""Authenticated identity and session."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class User:
    """The signed-in account, as reported by the auth service."""

    id: str
    email: str = ""
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def display_name(self) -> str:
        return str(self.metadata.get("name") or self.email or self.id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=str(data["id"]),
            email=str(data.get("email") or ""),
            metadata=dict(data.get("user_metadata") or {}),
        )


@dataclass(frozen=True)
class Session:
    """Tokens plus the user they belong to."""

    access_token: str
    refresh_token: str
    user: User
    expires_at: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
            "user": {
                "id": self.user.id,
                "email": self.user.email,
                "user_metadata": self.user.metadata,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        return cls(
            access_token=str(data["access_token"]),
            refresh_token=str(data.get("refresh_token") or ""),
            user=User.from_dict(data["user"]),
            expires_at=data.get("expires_at"),
        )
