"""
Write path for products: durable mutation first, then listing invalidation.
"""

import uuid
from typing import Optional

from shared.errors import StoreError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.tracing import trace_operation

from ..persistence.postgres import INSERT_PRODUCT, DELETE_PRODUCT
from .models import Product
from .policy import LISTING_CACHE_KEY, validate_product_fields, parse_product_id, new_product_identity


class ProductWriter:
    """Creates and deletes products and keeps the listing cache honest."""

    def __init__(self, store, cache, metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.cache = cache
        self.metrics = metrics
        self.logger = get_logger("products.catalog.writer")

    async def create(self, name: str, price_cents: int, stock: int) -> Product:
        """Validate, insert and invalidate. Returns the stored product."""
        validate_product_fields(name, price_cents, stock)
        product_id, created_at = new_product_identity()

        with trace_operation("products.create", product_id=product_id):
            await self._execute(
                "create",
                INSERT_PRODUCT,
                uuid.UUID(product_id), name, price_cents, stock, created_at
            )
            self.logger.info("Product created", product_id=product_id, name=name)
            await self._invalidate_listing("create")

        return Product(
            id=product_id,
            name=name,
            price_cents=price_cents,
            stock=stock,
            created_at=created_at
        )

    async def delete(self, product_id: str) -> None:
        """Delete by id. Deleting an unknown id succeeds."""
        parsed = parse_product_id(product_id)

        with trace_operation("products.delete", product_id=str(parsed)):
            affected = await self._execute("delete", DELETE_PRODUCT, parsed)
            self.logger.info("Product deleted", product_id=str(parsed), existed=affected > 0)
            await self._invalidate_listing("delete")

    async def _execute(self, operation: str, statement: str, *params) -> int:
        try:
            affected = await self.store.execute(statement, *params)
        except StoreError as e:
            self._count("store_errors_total", kind=e.code)
            raise
        self._count("products_written_total", operation=operation)
        return affected

    async def _invalidate_listing(self, operation: str):
        # The write is already durable; a failed delete only means the listing
        # may stay stale until its TTL runs out.
        if await self.cache.delete(LISTING_CACHE_KEY):
            self._count("cache_invalidations_total", status="ok")
        else:
            self._count("cache_invalidations_total", status="failed")
            self.logger.warning("Listing invalidation failed", operation=operation, key=LISTING_CACHE_KEY)

    def _count(self, metric_name: str, **labels):
        if self.metrics is not None:
            self.metrics.increment_counter(metric_name, **labels)
