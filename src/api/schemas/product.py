"""Pydantic schemas for the product API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from domain.entities.listing import Listing


class TimestampResponse(BaseModel):
    """Firestore timestamp in the shape the Admin SDK serializes it."""

    model_config = ConfigDict(populate_by_name=True)

    seconds: int = Field(..., alias="_seconds")
    nanoseconds: int = Field(..., alias="_nanoseconds")

    @classmethod
    def from_datetime(cls, value: datetime) -> "TimestampResponse":
        # DatetimeWithNanoseconds keeps sub-microsecond precision
        nanos = getattr(value, "nanosecond", 0) or value.microsecond * 1000
        return cls(seconds=int(value.timestamp()), nanoseconds=nanos)


class ProductResponse(BaseModel):
    """Schema for one listing."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "3xK9mQ2vLrT8pW1aZc4d",
                "name": "Lamp",
                "description": "Desk lamp",
                "price": 19.99,
                "imageUrl": "",
                "sellerId": "user-123",
                "createdAt": {"_seconds": 1767225600, "_nanoseconds": 0},
            }
        },
    )

    id: str
    name: str
    description: str
    price: float
    image_url: str = ""
    seller_id: str
    created_at: TimestampResponse | None = None

    @classmethod
    def from_entity(cls, listing: Listing) -> "ProductResponse":
        return cls(
            id=listing.id,
            name=listing.name,
            description=listing.description,
            price=listing.price,
            image_url=listing.image_url,
            seller_id=listing.seller_id,
            created_at=(
                TimestampResponse.from_datetime(listing.created_at)
                if listing.created_at
                else None
            ),
        )
