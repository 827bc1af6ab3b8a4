"""
Read path for the product listing: cache first, store on miss.
"""

from typing import Optional

from pydantic import ValidationError as PayloadError

from shared.errors import StoreError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.tracing import trace_operation

from ..persistence.postgres import LIST_PRODUCTS
from .models import Product, ProductListing, dump_listing, load_listing
from .policy import LISTING_CACHE_KEY, LISTING_TTL_SECONDS


class ProductReader:
    """Serves the full product listing through the read-through cache."""

    def __init__(self, store, cache, metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.cache = cache
        self.metrics = metrics
        self.logger = get_logger("products.catalog.reader")

    async def list_products(self) -> ProductListing:
        """Return every product, newest first.

        A cached listing is returned untouched and may be up to
        ``LISTING_TTL_SECONDS`` old. On a miss the store is queried and the
        result written back; a failed write-back is logged and does not
        affect the response. Store errors propagate.
        """
        with trace_operation("products.list") as span:
            cached = await self.cache.get(LISTING_CACHE_KEY)
            if cached is not None and self._decodes(cached):
                self._count("listing_cache_lookups_total", result="hit")
                span.set_attribute("cache.hit", True)
                self.logger.debug("Listing cache hit")
                return ProductListing(payload=cached, source="cache")

            self._count("listing_cache_lookups_total", result="miss")
            span.set_attribute("cache.hit", False)

            try:
                rows = await self.store.query(LIST_PRODUCTS)
            except StoreError as e:
                self._count("store_errors_total", kind=e.code)
                raise

            payload = dump_listing([Product.from_row(row) for row in rows])

            if not await self.cache.set(LISTING_CACHE_KEY, payload, LISTING_TTL_SECONDS):
                self.logger.warning("Listing cache population failed", key=LISTING_CACHE_KEY)

            self.logger.debug("Listing served from store", count=len(rows))
            return ProductListing(payload=payload, source="store")

    def _decodes(self, cached: str) -> bool:
        try:
            load_listing(cached)
        except PayloadError as e:
            self.logger.warning("Discarding undecodable cached listing", error=str(e))
            self._count("cache_errors_total", operation="decode")
            return False
        return True

    def _count(self, metric_name: str, **labels):
        if self.metrics is not None:
            self.metrics.increment_counter(metric_name, **labels)
