"""
Product data models for the Products Service.
"""

from typing import Any, List, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, TypeAdapter, field_serializer
from pydantic import ValidationError as PayloadError

from shared.errors import ValidationError


def format_timestamp(value: datetime) -> str:
    """RFC3339 in UTC at second precision, e.g. ``2024-01-01T12:00:00Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class Product(BaseModel):
    """A persisted product as returned to clients."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Product ID (UUID)")
    name: str = Field(..., description="Display name")
    price_cents: int = Field(..., alias="priceCents", description="Price in cents")
    stock: int = Field(..., description="Units in stock")
    created_at: datetime = Field(..., description="Creation time, the listing sort key")

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime) -> str:
        return format_timestamp(value)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Product":
        return cls(
            id=str(row["id"]),
            name=row["name"],
            price_cents=row["price_cents"],
            stock=row["stock"],
            created_at=row["created_at"]
        )

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ProductCreateRequest(BaseModel):
    """Request body for product creation.

    Only JSON types are checked here; value rules live in the write path so
    that every caller goes through the same validation.
    """
    name: StrictStr = Field(..., description="Display name")
    price_cents: StrictInt = Field(..., alias="priceCents", description="Price in cents")
    stock: StrictInt = Field(..., description="Units in stock")

    @classmethod
    def from_body(cls, body: bytes) -> "ProductCreateRequest":
        """Decode a raw request body as JSON whatever its declared Content-Type."""
        try:
            return cls.model_validate_json(body)
        except PayloadError as e:
            raise ValidationError("bad json", {"errors": str(e)}) from None


@dataclass
class ProductListing:
    """A serialized product listing and where it came from."""
    payload: str
    source: str  # "cache" or "store"

    @property
    def from_cache(self) -> bool:
        return self.source == "cache"


_PRODUCT_LIST = TypeAdapter(List[Product])


def dump_listing(products: List[Product]) -> str:
    """Serialize products into the JSON array returned by GET /products."""
    return _PRODUCT_LIST.dump_json(products, by_alias=True).decode("utf-8")


def load_listing(payload: str) -> List[Product]:
    """Parse a serialized listing. Raises ``pydantic.ValidationError`` on malformed input."""
    return _PRODUCT_LIST.validate_json(payload)
