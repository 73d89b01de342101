"""
Database access layer: connection pool and schema.
Uses asyncpg for async Postgres access.
"""

import logging
from typing import Any, Optional

# asyncpg is optional - only needed when DATABASE_URL is configured
try:
    import asyncpg  # pyright: ignore[reportMissingImports]
    ASYNCPG_AVAILABLE = True
except ImportError:
    asyncpg = None  # type: ignore
    ASYNCPG_AVAILABLE = False


logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS admin_users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS customers (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    phone TEXT,
    email TEXT,
    address TEXT,
    town TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS categories (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS products (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    price DOUBLE PRECISION NOT NULL DEFAULT 0,
    images JSONB NOT NULL DEFAULT '[]',
    stock INTEGER NOT NULL DEFAULT 0,
    category_id TEXT,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS orders (
    id TEXT PRIMARY KEY,
    customer_id TEXT NOT NULL,
    items JSONB NOT NULL,
    total DOUBLE PRECISION NOT NULL,
    status TEXT NOT NULL DEFAULT 'processing',
    delivery_type TEXT NOT NULL DEFAULT 'delivery',
    delivery_area TEXT NOT NULL,
    notes TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_orders_customer ON orders(customer_id);
CREATE INDEX IF NOT EXISTS idx_products_category ON products(category_id);
"""


async def init_pool(database_url: str) -> Optional[Any]:
    """
    Create the connection pool and make sure the schema exists.
    Returns None when no database URL is configured.
    """
    if not database_url:
        return None
    if not ASYNCPG_AVAILABLE:
        raise RuntimeError(
            "asyncpg is required for database access. Install with: pip install asyncpg"
        )
    pool = await asyncpg.create_pool(
        database_url,
        min_size=1,
        max_size=10,
    )
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA)
    logger.info("[db] Connection pool ready, schema verified")
    return pool


async def close_pool(pool: Optional[Any]) -> None:
    """Close the database connection pool. Call during app shutdown."""
    if pool is not None:
        await pool.close()
