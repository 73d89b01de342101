"""
Order endpoints.

POST and PUT take raw JSON objects: the OrderReconciler owns validation so
each broken rule gets its own 400 message instead of a generic schema error.
"""

from typing import Any, Dict, List
from fastapi import APIRouter, Body, Depends, Response, status

from ..context import AppContext, get_context
from ..errors import ValidationError
from ..models import OrderOut


router = APIRouter(prefix="/api/orders", tags=["orders"])


def _require_object(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


@router.get("", response_model=List[OrderOut])
async def list_orders(ctx: AppContext = Depends(get_context)):
    return await ctx.orders.list()


@router.get("/{order_id}", response_model=OrderOut)
async def get_order(order_id: str, ctx: AppContext = Depends(get_context)):
    return await ctx.orders.get(order_id)


@router.post("", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: Any = Body(...),
    ctx: AppContext = Depends(get_context),
):
    """
    Create an order.

    The total is the sum of price x quantity over the items unless the body
    carries an explicit `total`, which is stored as given.
    """
    return await ctx.reconciler.submit(_require_object(payload))


@router.put("/{order_id}", response_model=OrderOut)
async def update_order(
    order_id: str,
    payload: Any = Body(...),
    ctx: AppContext = Depends(get_context),
):
    """Partially update an order; new items always recompute the total."""
    return await ctx.reconciler.amend(order_id, _require_object(payload))


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(order_id: str, ctx: AppContext = Depends(get_context)):
    await ctx.orders.delete(order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
