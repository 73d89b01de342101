"""
CRUD endpoints for customers, products and categories.

The three resources share one shape, so their routers come from
`crud_router`; each maps to a ResourceStore on the AppContext.
"""

from typing import Any, Callable, Dict, List, Type
from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from ..context import AppContext, get_context
from ..models import (
    CategoryCreate,
    CategoryUpdate,
    CustomerCreate,
    CustomerUpdate,
    ProductCreate,
    ProductUpdate,
)
from ..resources import ResourceStore


def crud_router(
    prefix: str,
    tag: str,
    store_of: Callable[[AppContext], ResourceStore],
    create_model: Type[BaseModel],
    update_model: Type[BaseModel],
) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.get("", response_model=List[Dict[str, Any]])
    async def list_records(ctx: AppContext = Depends(get_context)):
        return await store_of(ctx).list()

    @router.get("/{record_id}")
    async def get_record(record_id: str, ctx: AppContext = Depends(get_context)):
        return await store_of(ctx).get(record_id)

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_record(body: create_model, ctx: AppContext = Depends(get_context)):  # type: ignore[valid-type]
        return await store_of(ctx).create(body.model_dump())

    @router.put("/{record_id}")
    async def update_record(record_id: str, body: update_model, ctx: AppContext = Depends(get_context)):  # type: ignore[valid-type]
        return await store_of(ctx).update(record_id, body.model_dump(exclude_unset=True))

    @router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_record(record_id: str, ctx: AppContext = Depends(get_context)):
        await store_of(ctx).delete(record_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


customers_router = crud_router(
    "/api/customers", "customers", lambda ctx: ctx.customers, CustomerCreate, CustomerUpdate
)
products_router = crud_router(
    "/api/products", "products", lambda ctx: ctx.products, ProductCreate, ProductUpdate
)
categories_router = crud_router(
    "/api/categories", "categories", lambda ctx: ctx.categories, CategoryCreate, CategoryUpdate
)
