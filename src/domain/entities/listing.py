"""Listing domain entity and ordering helpers."""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from urllib.parse import quote

PLACEHOLDER_IMAGE_URL = "https://placehold.co/400x180/E0E0E0/666666?text={text}"


@dataclass(frozen=True)
class Listing:
    """A product offered for sale. Immutable once created."""

    id: str
    name: str
    description: str
    price: float
    seller_id: str
    image_url: str = ""
    created_at: datetime | None = None  # None while the server timestamp is pending

    @property
    def display_image_url(self) -> str:
        """Stored image URL, or a placeholder rendered from the name."""
        if self.image_url:
            return self.image_url
        text = re.sub(r"\s", "+", self.name)
        return PLACEHOLDER_IMAGE_URL.format(text=quote(text, safe="+"))

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "Listing":
        """Build a listing from raw document fields."""
        created_at = data.get("createdAt")
        return cls(
            id=doc_id,
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
            price=float(data.get("price", 0)),
            seller_id=str(data.get("sellerId", "")),
            image_url=data.get("imageUrl") or "",
            created_at=created_at if isinstance(created_at, datetime) else None,
        )


@dataclass(frozen=True)
class NewListing:
    """Write payload for a new listing.

    Carries neither an id nor a creation time; both are assigned by the store.
    """

    name: str
    description: str
    price: float
    seller_id: str
    image_url: str = ""

    def to_document(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "imageUrl": self.image_url,
            "sellerId": self.seller_id,
        }


def created_at_key(listing: Listing) -> float:
    """Sort key: epoch seconds, with a pending timestamp counted as 0."""
    if listing.created_at is None:
        return 0.0
    return listing.created_at.timestamp()


def sort_newest_first(listings: Iterable[Listing]) -> list[Listing]:
    """Order listings by creation time, newest first; pending ones sink to the end."""
    return sorted(listings, key=created_at_key, reverse=True)
