"""
Application context.

One AppContext is built by the FastAPI lifespan and stored on
`app.state.context`; routes receive it through `get_context`. Nothing in
the stores is module-global.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Request

from .analytics import AnalyticsTracker
from .credentials import CredentialStore
from .hashing import PasswordHasher, detect_hasher
from .logbook import SystemLogBook
from .orders import OrderReconciler, OrderStore
from .resources import ResourceStore
from .settings import Settings
from .tables import (
    ADMIN_COLUMNS,
    CATEGORY_COLUMNS,
    CUSTOMER_COLUMNS,
    ORDER_COLUMNS,
    PRODUCT_COLUMNS,
    MemoryTable,
    PostgresTable,
)
from .uploads import UploadStorage


logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    pool: Optional[Any]
    credentials: CredentialStore
    customers: ResourceStore
    products: ResourceStore
    categories: ResourceStore
    orders: OrderStore
    reconciler: OrderReconciler
    uploads: UploadStorage
    analytics: AnalyticsTracker
    logs: SystemLogBook

    @property
    def storage_mode(self) -> str:
        return "postgres" if self.pool is not None else "memory"


def _table(pool: Optional[Any], name: str, columns: dict, json_fields=()) -> Any:
    if pool is None:
        return MemoryTable(name)
    return PostgresTable(pool, name, columns, json_fields)


def build_context(
    settings: Settings,
    pool: Optional[Any] = None,
    logs: Optional[SystemLogBook] = None,
    hasher: Optional[PasswordHasher] = None,
) -> AppContext:
    """Wire stores to either Postgres tables or in-memory tables."""
    orders = OrderStore(_table(pool, "orders", ORDER_COLUMNS, json_fields=("items",)))

    context = AppContext(
        settings=settings,
        pool=pool,
        credentials=CredentialStore(
            primary=PostgresTable(pool, "admin_users", ADMIN_COLUMNS) if pool is not None else None,
            hasher=hasher or detect_hasher(settings.bcrypt_rounds),
            default_email=settings.admin_email,
            default_password=settings.admin_password,
        ),
        customers=ResourceStore("customer", _table(pool, "customers", CUSTOMER_COLUMNS)),
        products=ResourceStore("product", _table(pool, "products", PRODUCT_COLUMNS, json_fields=("images",))),
        categories=ResourceStore("category", _table(pool, "categories", CATEGORY_COLUMNS)),
        orders=orders,
        reconciler=OrderReconciler(
            orders,
            default_delivery_area=settings.default_delivery_area,
            delivery_areas=settings.delivery_areas,
        ),
        uploads=UploadStorage(
            settings.upload_dir,
            max_bytes=settings.max_upload_mb * 1024 * 1024,
            allowed_extensions=settings.allowed_image_extensions,
        ),
        analytics=AnalyticsTracker(max_events=settings.max_analytics_events),
        logs=logs or SystemLogBook(max_entries=settings.max_log_entries),
    )
    logger.info(f"[startup] Stores wired to {context.storage_mode} tables")
    return context


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the process-wide context."""
    return request.app.state.context
