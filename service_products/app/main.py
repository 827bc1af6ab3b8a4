"""
Products service: CRUD over products with a read-through listing cache.
"""

from typing import Dict, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SettingsError

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import ValidationError
from shared.metrics import MetricsCollector

from .cache.redis_cache import build_cache
from .catalog.models import ProductCreateRequest
from .catalog.reader import ProductReader
from .catalog.writer import ProductWriter
from .persistence.postgres import PostgreSQLPersistence


class ProductsService(BaseService):
    """Products service implementation.

    The store and cache are built from configuration unless passed in, which
    is how tests swap in fakes.
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        store=None,
        cache=None,
        metrics: Optional[MetricsCollector] = None,
    ):
        super().__init__("products", config=config, metrics=metrics)

        self.persistence = store or PostgreSQLPersistence(
            self.config.database_url,
            min_size=self.config.db_pool_min_size,
            max_size=self.config.db_pool_max_size,
            command_timeout=self.config.db_command_timeout,
            metrics=self.metrics
        )
        self.cache = cache or build_cache(self.config.redis_url, self.metrics)

        self.reader = ProductReader(self.persistence, self.cache, self.metrics)
        self.writer = ProductWriter(self.persistence, self.cache, self.metrics)

        self._setup_products_routes()

    def _setup_products_routes(self):
        """Set up product routes."""

        @self.app.get("/products")
        async def list_products():
            """List every product, newest first."""
            listing = await self.reader.list_products()
            return Response(content=listing.payload, media_type="application/json")

        @self.app.post("/products", status_code=201)
        async def create_product(request: Request):
            """Create a product."""
            body = ProductCreateRequest.from_body(await request.body())
            product = await self.writer.create(body.name, body.price_cents, body.stock)
            return JSONResponse(status_code=201, content=product.to_json())

        @self.app.delete("/products/{product_id}", status_code=204)
        async def delete_product(product_id: str):
            """Delete a product by id."""
            await self.writer.delete(product_id)
            return Response(status_code=204)

        @self.app.delete("/products/", include_in_schema=False)
        async def delete_product_without_id():
            raise ValidationError("missing id")

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check products service dependencies."""
        dependencies = {
            "postgres": "ok" if await self.persistence.health_check() else "error"
        }

        if not self.cache.enabled:
            dependencies["redis"] = "disabled"
        elif await self.cache.health_check():
            dependencies["redis"] = "ok"
        else:
            # Reads fall back to the store, so a lost cache does not make us unready.
            dependencies["redis"] = "degraded"

        return dependencies

    async def start(self):
        """Start products service components."""
        await self.persistence.start()
        try:
            await self.cache.start()
        except Exception:
            await self.persistence.stop()
            raise

        self.logger.info("Products service started", cache_enabled=self.cache.enabled)

    async def stop(self):
        """Stop products service components."""
        await self.cache.stop()
        await self.persistence.stop()

        self.logger.info("Products service stopped")


def create_app():
    """Create products service application."""
    service = ProductsService()
    return service.app


def main():
    try:
        service = ProductsService()
    except SettingsError as e:
        missing = [str(err["loc"][0]) for err in e.errors() if err["type"] == "missing"]
        if missing:
            raise SystemExit(f"missing env: {', '.join(missing)}")
        raise
    service.run()


if __name__ == "__main__":
    main()
