"""
Order reconciliation and persistence.

OrderReconciler validates an incoming order payload, derives the
authoritative total from its line items and hands the normalized record to
the OrderStore. Validation happens entirely before the store is touched, so
a rejected payload never produces a partial record.

Total policy:
- create: an explicit `total` from the caller is persisted as-is (promotions,
  rounding); the computed item sum is still logged next to it.
- amend: when `items` change, `total` is always recomputed from them and any
  caller-supplied total is discarded.
"""

import logging
import math
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from .errors import (
    EmptyOrder,
    InvalidPrice,
    InvalidQuantity,
    MalformedItem,
    MissingCustomer,
    ValidationError,
)
from .resources import IMMUTABLE_FIELDS, ResourceStore


logger = logging.getLogger(__name__)


DEFAULT_STATUS = "processing"
DELIVERY_TYPES = ("delivery", "pickup")
DEFAULT_DELIVERY_TYPE = "delivery"

REQUIRED_ITEM_FIELDS = ("productId", "quantity", "price")


class OrderStore(ResourceStore):
    """Persists orders; line items are stored inline with their order."""

    def __init__(self, table: Any):
        super().__init__("order", table)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, Decimal)):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _is_integral(value: Any) -> bool:
    if isinstance(value, float):
        return value.is_integer()
    return isinstance(value, int) and not isinstance(value, bool)


def _has_product(item: Dict[str, Any]) -> bool:
    product_id = item.get("productId")
    if isinstance(product_id, bool):
        return False
    if isinstance(product_id, int):
        return True
    return isinstance(product_id, str) and bool(product_id.strip())


def items_total(items: Sequence[Dict[str, Any]]) -> Decimal:
    """Sum of price x quantity, computed in Decimal to avoid float drift."""
    return sum(
        (Decimal(str(item["price"])) * int(item["quantity"]) for item in items),
        Decimal("0"),
    )


def _as_number(value: Decimal) -> float:
    return float(value)


class OrderReconciler:
    """Validates and normalizes order submissions before persistence."""

    def __init__(
        self,
        store: OrderStore,
        default_delivery_area: str = "sitra",
        delivery_areas: Optional[Sequence[str]] = None,
    ):
        self.store = store
        self.default_delivery_area = default_delivery_area
        self.delivery_areas = [a.lower() for a in (delivery_areas or [])]

    # --- validation ---

    def _validate_items(self, items: Any) -> List[Dict[str, Any]]:
        if not isinstance(items, list) or not items:
            raise EmptyOrder()

        for item in items:
            if not isinstance(item, dict) or any(item.get(f) is None for f in REQUIRED_ITEM_FIELDS) or not _has_product(item):
                logger.warning(f"[orders] Invalid item data: {item}")
                raise MalformedItem()
            if not _is_number(item["quantity"]) or not _is_integral(item["quantity"]) or not _is_number(item["price"]):
                logger.warning(f"[orders] Non-numeric item data: {item}")
                raise MalformedItem("Item quantity must be a whole number and price must be a number")

        for item in items:
            if item["quantity"] <= 0:
                logger.warning(f"[orders] Invalid quantity: {item}")
                raise InvalidQuantity()

        for item in items:
            if item["price"] < 0:
                logger.warning(f"[orders] Invalid price: {item}")
                raise InvalidPrice()

        return [{**item, "productId": str(item["productId"]), "quantity": int(item["quantity"])} for item in items]

    def _validate_total(self, total: Any) -> float:
        if not _is_number(total) or total < 0:
            raise ValidationError("Order total must be a non-negative number", code="InvalidTotal")
        return float(total)

    def _validate_status(self, status: Any) -> str:
        if not isinstance(status, str) or not status.strip():
            raise ValidationError("Order status must be a non-empty string", code="InvalidStatus")
        return status.strip()

    def _validate_notes(self, notes: Any) -> str:
        if not isinstance(notes, str):
            raise ValidationError("Order notes must be a string", code="InvalidNotes")
        return notes

    def _validate_delivery_type(self, delivery_type: str) -> str:
        if delivery_type not in DELIVERY_TYPES:
            raise ValidationError(
                f"Delivery type must be one of: {', '.join(DELIVERY_TYPES)}",
                code="InvalidDeliveryType",
            )
        return delivery_type

    def _validate_delivery_area(self, area: Any) -> str:
        if not isinstance(area, str) or not area.strip():
            raise ValidationError("Delivery area must be a non-empty string", code="InvalidDeliveryArea")
        area = area.strip().lower()
        if self.delivery_areas and area not in self.delivery_areas:
            raise ValidationError(f"Unknown delivery area: {area}", code="InvalidDeliveryArea")
        return area

    # --- operations ---

    async def submit(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Validate a new order, resolve its total and persist it."""
        customer_id = payload.get("customerId")
        if not customer_id:
            logger.warning(f"[orders] Missing customerId: {payload}")
            raise MissingCustomer()

        items = self._validate_items(payload.get("items"))
        computed = items_total(items)

        requested_total = payload.get("total")
        if requested_total is not None:
            final_total = self._validate_total(requested_total)
            if Decimal(str(requested_total)) != computed:
                logger.warning(
                    f"[orders] Caller total {requested_total} overrides item sum {computed} "
                    f"for customer {customer_id}"
                )
        else:
            final_total = _as_number(computed)

        status = payload.get("status")
        status = DEFAULT_STATUS if status is None or status == "" else self._validate_status(status)
        notes = payload.get("notes")
        notes = "" if notes is None else self._validate_notes(notes)
        delivery_type = self._validate_delivery_type(payload.get("deliveryType") or DEFAULT_DELIVERY_TYPE)
        delivery_area = self._validate_delivery_area(payload.get("deliveryArea") or self.default_delivery_area)

        logger.info(f"[orders] Total calculation: items={computed:.2f} requested={requested_total} final={final_total:.2f}")

        order = await self.store.create({
            "customerId": str(customer_id),
            "items": items,
            "total": final_total,
            "status": status,
            "deliveryType": delivery_type,
            "deliveryArea": delivery_area,
            "notes": notes,
        })
        logger.info(f"[orders] Order created successfully: {order['id']}")
        return order

    async def amend(self, order_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
        """Apply a partial update; changed items always recompute the total."""
        changes = {k: v for k, v in partial.items() if k not in IMMUTABLE_FIELDS}

        if "customerId" in changes:
            if not changes["customerId"]:
                raise MissingCustomer()
            changes["customerId"] = str(changes["customerId"])

        if "items" in changes:
            items = self._validate_items(changes["items"])
            changes["items"] = items
            changes["total"] = _as_number(items_total(items))
        elif "total" in changes:
            if changes["total"] is None:
                changes.pop("total")
            else:
                changes["total"] = self._validate_total(changes["total"])

        if "status" in changes:
            if changes["status"] is None:
                changes.pop("status")
            else:
                changes["status"] = self._validate_status(changes["status"])
        if "notes" in changes:
            changes["notes"] = "" if changes["notes"] is None else self._validate_notes(changes["notes"])
        if "deliveryType" in changes:
            changes["deliveryType"] = self._validate_delivery_type(changes["deliveryType"])
        if "deliveryArea" in changes:
            changes["deliveryArea"] = self._validate_delivery_area(changes["deliveryArea"])

        return await self.store.update(order_id, changes)
