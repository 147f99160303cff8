"""Identity domain entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class Identity:
    """An authenticated principal as reported by the identity provider."""

    user_id: str
    email: str | None = None
    is_anonymous: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id_token: str | None = field(default=None, repr=False)
    refresh_token: str | None = field(default=None, repr=False)
