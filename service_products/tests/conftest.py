"""
Shared fixtures and in-memory doubles for Products service tests.
"""

import time
import uuid
from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from shared.config import get_config
from shared.metrics import MetricsCollector
from service_products.app.main import ProductsService
from service_products.app.persistence.postgres import LIST_PRODUCTS, INSERT_PRODUCT, DELETE_PRODUCT


class FakeStore:
    """In-memory stand-in for PostgreSQLPersistence that understands our statements."""

    def __init__(self):
        self.rows: List[Dict[str, Any]] = []
        self.queries = 0
        self.executes: List[Tuple[str, tuple]] = []
        self.error: Optional[Exception] = None
        self.started = False

    async def start(self):
        self.started = True

    async def stop(self):
        self.started = False

    async def health_check(self) -> bool:
        return self.error is None

    async def query(self, statement: str, *params):
        if self.error is not None:
            raise self.error
        self.queries += 1
        assert statement == LIST_PRODUCTS
        return sorted(self.rows, key=lambda row: row["created_at"], reverse=True)

    async def execute(self, statement: str, *params) -> int:
        if self.error is not None:
            raise self.error
        self.executes.append((statement, params))

        if statement == INSERT_PRODUCT:
            product_id, name, price_cents, stock, created_at = params
            assert isinstance(product_id, uuid.UUID)
            self.rows.append({
                "id": product_id,
                "name": name,
                "price_cents": price_cents,
                "stock": stock,
                "created_at": created_at,
            })
            return 1

        if statement == DELETE_PRODUCT:
            (product_id,) = params
            before = len(self.rows)
            self.rows = [row for row in self.rows if row["id"] != product_id]
            return before - len(self.rows)

        raise AssertionError(f"unexpected statement: {statement}")


class FakeCache:
    """In-memory stand-in for RedisCache.

    ``failing`` mimics a Redis outage as seen through the gateway: reads come
    back absent and writes are not acknowledged.
    """

    enabled = True

    def __init__(self):
        self.entries: Dict[str, Tuple[str, float]] = {}
        self.failing = False
        self.calls: List[Tuple[str, str]] = []
        self.ttls: Dict[str, int] = {}

    async def start(self):
        return None

    async def stop(self):
        return None

    async def health_check(self) -> bool:
        return not self.failing

    async def get(self, key: str) -> Optional[str]:
        self.calls.append(("get", key))
        if self.failing:
            return None
        entry = self.entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= time.monotonic():
            del self.entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        self.calls.append(("set", key))
        if self.failing:
            return False
        self.entries[key] = (value, time.monotonic() + ttl_seconds)
        self.ttls[key] = ttl_seconds
        return True

    async def delete(self, key: str) -> bool:
        self.calls.append(("delete", key))
        if self.failing:
            return False
        self.entries.pop(key, None)
        return True

    def expire(self, key: str):
        """Age an entry past its TTL."""
        if key in self.entries:
            value, _ = self.entries[key]
            self.entries[key] = (value, time.monotonic() - 1)


@pytest.fixture
def config():
    """Service configuration that does not depend on the environment."""
    return get_config("products", database_url="postgresql://localhost:5432/products_test", redis_url=None)


@pytest.fixture
def store():
    """In-memory store."""
    return FakeStore()


@pytest.fixture
def cache():
    """In-memory cache."""
    return FakeCache()


@pytest.fixture
def metrics():
    """Metrics collector on its own registry."""
    return MetricsCollector("products")


@pytest.fixture
def service(config, store, cache, metrics):
    """ProductsService wired to the in-memory doubles."""
    return ProductsService(config=config, store=store, cache=cache, metrics=metrics)


@pytest.fixture
def client(service):
    """Test client with the service lifespan running."""
    with TestClient(service.app) as test_client:
        yield test_client


@pytest.fixture
def widget():
    """A valid create request body."""
    return {"name": "Widget", "priceCents": 500, "stock": 10}
