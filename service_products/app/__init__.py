"""
Products Service package.

Exposes CRUD over the single product entity, backed by PostgreSQL, with an
optional Redis read-through cache in front of the product listing:

- app.main: API surface (list/create/delete, health, readiness, metrics).
- app.catalog: Product models, cache policy, and the read and write paths.
- app.cache: Redis-backed listing cache and its disabled stand-in.
- app.persistence: PostgreSQL store gateway.

Guidelines:
- The service is stateless; durable state lives in PostgreSQL only.
- The cache is advisory: its failures degrade, they never fail a request.
- Every write invalidates the listing after the store has committed it.
"""
