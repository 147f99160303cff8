"""Profile domain entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class Profile:
    """Per-identity metadata, written once at sign-up."""

    email: str | None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_document(self) -> dict[str, Any]:
        return {"email": self.email, "createdAt": self.created_at}

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "Profile":
        email = data.get("email")
        if email is not None and not isinstance(email, str):
            raise TypeError(f"email must be a string, got {type(email).__name__}")
        created_at = data.get("createdAt")
        if not isinstance(created_at, datetime):
            created_at = datetime.fromtimestamp(0, timezone.utc)
        return cls(email=email, created_at=created_at)
