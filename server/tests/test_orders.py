"""
Tests for order reconciliation: validation order, total resolution,
defaults and the update path.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, patch

from shopadmin.errors import (
    EmptyOrder,
    InvalidPrice,
    InvalidQuantity,
    MalformedItem,
    MissingCustomer,
    NotFoundError,
    PersistenceFailure,
    ValidationError,
)
from shopadmin.orders import OrderReconciler, OrderStore, items_total
from shopadmin.tables import MemoryTable


TWO_ITEMS = [
    {"productId": "p1", "quantity": 2, "price": 10},
    {"productId": "p2", "quantity": 1, "price": 5},
]


class BrokenTable(MemoryTable):
    """Table whose writes always fail, as an unreachable database would."""

    async def insert(self, record):
        raise ConnectionError("connection refused")

    async def update(self, record_id, changes):
        raise ConnectionError("connection refused")


@pytest.fixture
def store():
    return OrderStore(MemoryTable("orders"))


@pytest.fixture
def reconciler(store):
    return OrderReconciler(store, default_delivery_area="sitra", delivery_areas=["sitra", "manama"])


class TestSubmit:
    def test_total_is_item_sum_with_defaults(self, reconciler):
        order = asyncio.run(reconciler.submit({"customerId": "c1", "items": TWO_ITEMS}))

        assert order["total"] == 25
        assert order["status"] == "processing"
        assert order["deliveryType"] == "delivery"
        assert order["deliveryArea"] == "sitra"
        assert order["notes"] == ""
        assert order["id"]
        assert order["createdAt"] == order["updatedAt"]

    def test_explicit_total_overrides_item_sum(self, reconciler, store):
        order = asyncio.run(reconciler.submit({"customerId": "c1", "items": TWO_ITEMS, "total": 20}))

        assert order["total"] == 20
        stored = asyncio.run(store.get(order["id"]))
        assert stored["total"] == 20

    @pytest.mark.parametrize("items", [
        [{"productId": "p1", "quantity": 3, "price": 19.99}],
        [{"productId": "p1", "quantity": 1, "price": 0.1}, {"productId": "p2", "quantity": 2, "price": 0.2}],
        [{"productId": "p1", "quantity": 7, "price": 0}],
    ])
    def test_total_matches_sum_of_lines(self, reconciler, items):
        order = asyncio.run(reconciler.submit({"customerId": "c1", "items": items}))

        expected = sum(item["price"] * item["quantity"] for item in items)
        assert order["total"] == pytest.approx(expected)
        assert order["total"] == float(items_total(items))

    def test_caller_fields_are_kept(self, reconciler):
        order = asyncio.run(reconciler.submit({
            "customerId": 42,
            "items": [{"productId": 7, "quantity": 1.0, "price": 3, "name": "Mug"}],
            "status": "shipped",
            "deliveryType": "pickup",
            "deliveryArea": " Manama ",
            "notes": "Ring twice",
        }))

        assert order["customerId"] == "42"
        assert order["items"] == [{"productId": "7", "quantity": 1, "price": 3, "name": "Mug"}]
        assert order["status"] == "shipped"
        assert order["deliveryType"] == "pickup"
        assert order["deliveryArea"] == "manama"
        assert order["notes"] == "Ring twice"

    def test_client_supplied_id_is_ignored(self, reconciler):
        order = asyncio.run(reconciler.submit({"id": "mine", "customerId": "c1", "items": TWO_ITEMS}))

        assert order["id"] != "mine"


class TestSubmitRejections:
    @pytest.mark.parametrize("payload,error,message", [
        ({"items": TWO_ITEMS}, MissingCustomer, "Customer ID is required"),
        ({"customerId": "", "items": TWO_ITEMS}, MissingCustomer, "Customer ID is required"),
        ({"customerId": "c1", "items": []}, EmptyOrder, "Order items are required and must be a non-empty array"),
        ({"customerId": "c1"}, EmptyOrder, "Order items are required and must be a non-empty array"),
        ({"customerId": "c1", "items": "p1"}, EmptyOrder, "Order items are required and must be a non-empty array"),
        ({"customerId": "c1", "items": [{"productId": "p1", "quantity": 1}]}, MalformedItem,
         "Each item must have productId, quantity, and price"),
        ({"customerId": "c1", "items": ["p1"]}, MalformedItem, "Each item must have productId, quantity, and price"),
        ({"customerId": "c1", "items": [{"productId": "", "quantity": 1, "price": 1}]}, MalformedItem,
         "Each item must have productId, quantity, and price"),
        ({"customerId": "c1", "items": [{"productId": "   ", "quantity": 1, "price": 1}]}, MalformedItem,
         "Each item must have productId, quantity, and price"),
        ({"customerId": "c1", "items": [{"productId": "p1", "quantity": 0, "price": 1}]}, InvalidQuantity,
         "Item quantity must be greater than 0"),
        ({"customerId": "c1", "items": [{"productId": "p1", "quantity": -2, "price": 1}]}, InvalidQuantity,
         "Item quantity must be greater than 0"),
        ({"customerId": "c1", "items": [{"productId": "p1", "quantity": 1, "price": -0.01}]}, InvalidPrice,
         "Item price cannot be negative"),
    ])
    def test_rejected_without_persisting(self, reconciler, store, payload, error, message):
        with patch.object(store, "create", new=AsyncMock()) as create:
            with pytest.raises(error) as exc_info:
                asyncio.run(reconciler.submit(payload))

        assert exc_info.value.message == message
        create.assert_not_called()
        assert asyncio.run(store.list()) == []

    def test_missing_customer_checked_before_items(self, reconciler):
        with pytest.raises(MissingCustomer):
            asyncio.run(reconciler.submit({"items": []}))

    def test_quantity_rule_before_price_rule(self, reconciler):
        items = [
            {"productId": "p1", "quantity": 1, "price": -5},
            {"productId": "p2", "quantity": 0, "price": 5},
        ]
        with pytest.raises(InvalidQuantity):
            asyncio.run(reconciler.submit({"customerId": "c1", "items": items}))

    @pytest.mark.parametrize("quantity,price", [("2", 10), (2, "10"), (1.5, 10), (True, 10)])
    def test_non_numeric_values_are_malformed(self, reconciler, quantity, price):
        items = [{"productId": "p1", "quantity": quantity, "price": price}]
        with pytest.raises(MalformedItem):
            asyncio.run(reconciler.submit({"customerId": "c1", "items": items}))

    @pytest.mark.parametrize("payload,code", [
        ({"total": -1}, "InvalidTotal"),
        ({"total": "cheap"}, "InvalidTotal"),
        ({"deliveryType": "drone"}, "InvalidDeliveryType"),
        ({"deliveryArea": "atlantis"}, "InvalidDeliveryArea"),
        ({"status": 5}, "InvalidStatus"),
        ({"status": "   "}, "InvalidStatus"),
        ({"notes": ["gift"]}, "InvalidNotes"),
    ])
    def test_optional_fields_validated(self, reconciler, store, payload, code):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(reconciler.submit({"customerId": "c1", "items": TWO_ITEMS, **payload}))

        assert exc_info.value.code == code
        assert asyncio.run(store.list()) == []

    def test_store_fault_is_persistence_failure(self):
        reconciler = OrderReconciler(OrderStore(BrokenTable("orders")))

        with pytest.raises(PersistenceFailure) as exc_info:
            asyncio.run(reconciler.submit({"customerId": "c1", "items": TWO_ITEMS}))

        assert not isinstance(exc_info.value, ValidationError)
        assert exc_info.value.details == "connection refused"
        assert isinstance(exc_info.value.cause, ConnectionError)


class TestAmend:
    def _existing(self, reconciler):
        return asyncio.run(reconciler.submit({"customerId": "c1", "items": TWO_ITEMS}))

    def test_new_items_recompute_total(self, reconciler):
        order = self._existing(reconciler)

        updated = asyncio.run(reconciler.amend(order["id"], {
            "items": [{"productId": "p1", "quantity": 3, "price": 10}],
            "total": 5,
        }))

        assert updated["total"] == 30
        assert updated["items"] == [{"productId": "p1", "quantity": 3, "price": 10}]

    def test_partial_update_keeps_other_fields(self, reconciler):
        order = self._existing(reconciler)

        updated = asyncio.run(reconciler.amend(order["id"], {"status": "delivered"}))

        assert updated["status"] == "delivered"
        assert updated["total"] == 25
        assert updated["items"] == order["items"]
        assert updated["createdAt"] == order["createdAt"]

    def test_total_without_items_is_stored(self, reconciler):
        order = self._existing(reconciler)

        updated = asyncio.run(reconciler.amend(order["id"], {"total": 22.5}))

        assert updated["total"] == 22.5

    def test_null_total_is_ignored(self, reconciler):
        order = self._existing(reconciler)

        updated = asyncio.run(reconciler.amend(order["id"], {"total": None, "notes": "x"}))

        assert updated["total"] == 25
        assert updated["notes"] == "x"

    def test_identity_fields_cannot_change(self, reconciler):
        order = self._existing(reconciler)

        updated = asyncio.run(reconciler.amend(order["id"], {"id": "other", "createdAt": "1970-01-01"}))

        assert updated["id"] == order["id"]
        assert updated["createdAt"] == order["createdAt"]

    def test_invalid_items_rejected_before_store(self, reconciler, store):
        order = self._existing(reconciler)

        with patch.object(store, "update", new=AsyncMock()) as update:
            with pytest.raises(InvalidPrice):
                asyncio.run(reconciler.amend(order["id"], {
                    "items": [{"productId": "p1", "quantity": 1, "price": -1}],
                }))
        update.assert_not_called()

    def test_null_status_and_notes(self, reconciler):
        order = asyncio.run(reconciler.submit({"customerId": "c1", "items": TWO_ITEMS, "notes": "gift"}))

        updated = asyncio.run(reconciler.amend(order["id"], {"status": None, "notes": None}))

        assert updated["status"] == "processing"
        assert updated["notes"] == ""

    @pytest.mark.parametrize("partial,code", [
        ({"status": 5}, "InvalidStatus"),
        ({"status": ""}, "InvalidStatus"),
        ({"notes": {"text": "x"}}, "InvalidNotes"),
    ])
    def test_non_string_status_and_notes_rejected(self, reconciler, store, partial, code):
        order = self._existing(reconciler)

        with patch.object(store, "update", new=AsyncMock()) as update:
            with pytest.raises(ValidationError) as exc_info:
                asyncio.run(reconciler.amend(order["id"], partial))

        assert exc_info.value.code == code
        update.assert_not_called()

    def test_empty_customer_rejected(self, reconciler):
        order = self._existing(reconciler)

        with pytest.raises(MissingCustomer):
            asyncio.run(reconciler.amend(order["id"], {"customerId": ""}))

    def test_unknown_order(self, reconciler):
        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(reconciler.amend("missing", {"status": "delivered"}))

        assert str(exc_info.value) == "Order not found"
