"""
PostgreSQL persistence layer for the Products Service.

This is the only component that talks to the relational store. It runs a
single attempt per call and translates driver failures into
``StoreUnavailable`` / ``StatementFailed``; retry and caching decisions
belong to its callers.
"""

import asyncio
from contextlib import nullcontext
from typing import Any, List, Optional

import asyncpg
from shared.logging import get_logger
from shared.errors import StoreUnavailable, StatementFailed
from shared.metrics import MetricsCollector


CREATE_PRODUCTS_TABLE = """
    CREATE TABLE IF NOT EXISTS products (
        id uuid PRIMARY KEY,
        name text NOT NULL,
        price_cents int NOT NULL,
        stock int NOT NULL,
        created_at timestamptz NOT NULL DEFAULT now()
    );
"""

LIST_PRODUCTS = """
    SELECT id, name, price_cents, stock, created_at
    FROM products
    ORDER BY created_at DESC
"""

INSERT_PRODUCT = """
    INSERT INTO products (id, name, price_cents, stock, created_at)
    VALUES ($1, $2, $3, $4, $5)
"""

DELETE_PRODUCT = """
    DELETE FROM products WHERE id = $1
"""

# Failures that mean "no store to talk to" rather than "the statement was bad".
_UNAVAILABLE_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.TooManyConnectionsError,
    asyncpg.exceptions.InterfaceError,
)


def rows_affected(status: str) -> int:
    """Parse the row count out of a command status tag such as ``DELETE 1``."""
    last = status.rsplit(" ", 1)[-1] if status else ""
    return int(last) if last.isdigit() else 0


class PostgreSQLPersistence:
    """PostgreSQL persistence layer for products."""

    def __init__(
        self,
        dsn: str,
        min_size: int = 2,
        max_size: int = 10,
        command_timeout: float = 30,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self.metrics = metrics
        self.logger = get_logger("products.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Create the connection pool and make sure the schema exists."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout
            )
            await self._create_tables()
            self.logger.info("PostgreSQL persistence started")

        except (asyncpg.PostgresError, *_UNAVAILABLE_ERRORS) as e:
            self.logger.error("Failed to start PostgreSQL persistence", error=str(e))
            raise StoreUnavailable("db connect error", {"error": str(e)}) from e

    async def stop(self):
        """Stop the persistence layer."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL persistence stopped")

    async def _create_tables(self):
        async with self.pool.acquire() as conn:
            await conn.execute(CREATE_PRODUCTS_TABLE)

    async def query(self, statement: str, *params: Any) -> List[asyncpg.Record]:
        """Run a read statement and return every row."""
        pool = self._require_pool()
        try:
            with self._timed("query"):
                return await pool.fetch(statement, *params)
        except _UNAVAILABLE_ERRORS as e:
            raise self._unavailable(e, "query") from e
        except asyncpg.PostgresError as e:
            raise self._failed(e, "query") from e

    async def execute(self, statement: str, *params: Any) -> int:
        """Run a write statement and return the number of rows it affected."""
        pool = self._require_pool()
        try:
            with self._timed("execute"):
                status = await pool.execute(statement, *params)
        except _UNAVAILABLE_ERRORS as e:
            raise self._unavailable(e, "execute") from e
        except asyncpg.PostgresError as e:
            raise self._failed(e, "execute") from e

        return rows_affected(status)

    async def health_check(self) -> bool:
        """Check database health."""
        if self.pool is None:
            return False
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
                return True
        except (asyncpg.PostgresError, *_UNAVAILABLE_ERRORS):
            return False

    def _require_pool(self) -> asyncpg.Pool:
        if self.pool is None:
            raise StoreUnavailable("store not started")
        return self.pool

    def _timed(self, operation: str):
        if self.metrics is None:
            return nullcontext()
        return self.metrics.time_operation("store_query_duration_seconds", operation=operation)

    def _unavailable(self, error: Exception, operation: str) -> StoreUnavailable:
        self.logger.error("Store unavailable", operation=operation, error=str(error))
        return StoreUnavailable("store unavailable", {"operation": operation, "error": str(error)})

    def _failed(self, error: Exception, operation: str) -> StatementFailed:
        self.logger.error("Statement failed", operation=operation, error=str(error))
        return StatementFailed("statement failed", {"operation": operation, "error": str(error)})
