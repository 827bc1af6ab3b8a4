"""
Persistence package for the Products Service (PostgreSQL via asyncpg).
"""
