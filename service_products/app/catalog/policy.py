"""
Consistency policy for the product listing cache.

One cache entry holds the whole listing. It lives for at most
``LISTING_TTL_SECONDS`` and is deleted after every successful create or
delete, so a reader can observe pre-write data for no longer than the TTL,
and only when that invalidation failed.
"""

import re
import uuid
from datetime import datetime, timezone
from typing import Tuple

from shared.errors import ValidationError

LISTING_CACHE_KEY = "products:all"
LISTING_TTL_SECONDS = 30

# products.price_cents and products.stock are int4 columns
MAX_COLUMN_INT = 2**31 - 1

# Hyphenated, braced, urn-prefixed or bare 32-digit hex; nothing looser.
_CANONICAL = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
_UUID_FORMS = re.compile(
    rf"{_CANONICAL}|\{{{_CANONICAL}\}}|urn:uuid:{_CANONICAL}|[0-9a-f]{{32}}",
    re.IGNORECASE
)


def validate_product_fields(name: str, price_cents: int, stock: int) -> None:
    """Enforce the product invariant before anything reaches the store."""
    problems = {}
    if not isinstance(name, str) or name == "":
        problems["name"] = "must be non-empty"
    if not _is_int(price_cents) or not 0 < price_cents <= MAX_COLUMN_INT:
        problems["priceCents"] = "must be a positive integer"
    if not _is_int(stock) or not 0 <= stock <= MAX_COLUMN_INT:
        problems["stock"] = "must be a non-negative integer"

    if problems:
        raise ValidationError("invalid fields", problems)


def parse_product_id(raw: str) -> uuid.UUID:
    """Parse a product id, rejecting anything that is not a UUID."""
    if not raw:
        raise ValidationError("missing id")
    if not _UUID_FORMS.fullmatch(raw):
        raise ValidationError("invalid id (must be UUID)", {"id": raw})
    if raw[:9].lower() == "urn:uuid:":
        raw = raw[9:]
    return uuid.UUID(raw)


def new_product_identity() -> Tuple[str, datetime]:
    """Fresh random id and creation time for a product about to be inserted."""
    return str(uuid.uuid4()), datetime.now(timezone.utc)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
