"""End-to-end backorder flow through the delivery handlers.

An order of 10 sacks is allocated 6 sacks from 300 kg, leaving a 4 sack
backorder that can only ship once the warehouse is restocked.
"""

import pytest

from ricemill.application.allocate_order import AllocateOrderHandler
from ricemill.application.create_order import CreateOrderHandler
from ricemill.application.dto import AllocationLineSpec, OrderItemSpec
from ricemill.application.manage_delivery import (
    AdvanceShipmentStatusHandler,
    CheckDeliveryStockHandler,
    CreateBackorderDeliveryHandler,
    FulfillDeliveryHandler,
)
from ricemill.application.show_order import ShowOrderHandler
from ricemill.domain.exceptions import (
    AlreadyFulfilled,
    DeliveryNotReady,
    EntityNotFoundError,
    ValidationError,
)
from tests.fakes import FakeUnitOfWork, location, milled_rice, seed_stock


@pytest.fixture
def split_order():
    uow = FakeUnitOfWork(products=[milled_rice()], locations=[location("wh-a"), location("wh-b")])
    seed_stock(uow, "rice", "wh-a", 300)
    order = CreateOrderHandler(uow).handle("Aling Nena", [OrderItemSpec("Dinorado", 10)])
    allocation = AllocateOrderHandler(uow).handle(
        order.id, [AllocationLineSpec(order.items[0].id, "wh-a", 6)]
    )
    first = ShowOrderHandler(uow).handle(order.id).deliveries[0]
    return uow, order.id, first.id, allocation.backorder.id


class TestShipmentGate:

    def test_backorder_held_without_stock(self, split_order):
        uow, _, _, backorder_id = split_order

        result = AdvanceShipmentStatusHandler(uow).handle(backorder_id, "Delivered")

        assert result.accepted is False
        assert result.shipment_status == "Processing Order"
        assert "Insufficient stock for Dinorado" in result.reason
        assert CheckDeliveryStockHandler(uow).handle(backorder_id) == [
            "Insufficient stock for Dinorado. "
            "Available: 0 sacks (0 kg), Needed: 4 sacks (200 kg)"
        ]

    def test_backorder_moves_after_restock(self, split_order):
        uow, order_id, _, backorder_id = split_order
        seed_stock(uow, "rice", "wh-b", 200)

        result = AdvanceShipmentStatusHandler(uow).handle(backorder_id, "in transit")

        assert result.accepted is True
        assert result.shipment_status == "In Transit"
        assert CheckDeliveryStockHandler(uow).handle(backorder_id) == []
        order = ShowOrderHandler(uow).handle(order_id)
        assert order.deliveries[1].shipment_status == "In Transit"

    def test_unknown_status(self, split_order):
        uow, _, first_id, _ = split_order
        with pytest.raises(ValidationError, match="Invalid shipment status"):
            AdvanceShipmentStatusHandler(uow).handle(first_id, "Lost")

    def test_unknown_delivery(self, split_order):
        uow, _, _, _ = split_order
        with pytest.raises(EntityNotFoundError):
            AdvanceShipmentStatusHandler(uow).handle("missing", "Delivered")


class TestFulfillment:

    def test_fulfil_requires_delivered(self, split_order):
        uow, _, first_id, _ = split_order
        with pytest.raises(DeliveryNotReady, match="Processing Order"):
            FulfillDeliveryHandler(uow).handle(first_id, "clerk")

    def test_full_flow_completes_order(self, split_order):
        uow, order_id, first_id, backorder_id = split_order

        AdvanceShipmentStatusHandler(uow).handle(first_id, "Delivered")
        partial = FulfillDeliveryHandler(uow).handle(first_id, "clerk")
        assert (partial.order_status, partial.fulfillment_status) == ("partial", "Partial")

        seed_stock(uow, "rice", "wh-b", 250)
        assert AdvanceShipmentStatusHandler(uow).handle(backorder_id, "Delivered").accepted
        done = FulfillDeliveryHandler(uow).handle(backorder_id, "clerk")

        assert (done.order_status, done.fulfillment_status) == ("completed", "Completed")
        order = ShowOrderHandler(uow).handle(order_id)
        assert order.shipment_status == "Delivered"
        assert order.items[0].quantity_fulfilled == 10
        assert [d.fulfilled_by for d in order.deliveries] == ["clerk", "clerk"]
        rice = uow.products.get_by_id("rice")
        assert (rice.stock_on_hand, rice.stock_allocated) == (50, 0)

    def test_second_fulfil_changes_nothing(self, split_order):
        uow, order_id, first_id, _ = split_order
        AdvanceShipmentStatusHandler(uow).handle(first_id, "Delivered")
        FulfillDeliveryHandler(uow).handle(first_id, "clerk")
        before = ShowOrderHandler(uow).handle(order_id)
        entries = len(uow.ledger.list_all())

        with pytest.raises(AlreadyFulfilled):
            FulfillDeliveryHandler(uow).handle(first_id, "someone-else")

        assert ShowOrderHandler(uow).handle(order_id) == before
        assert len(uow.ledger.list_all()) == entries

    def test_fulfilled_delivery_stays_delivered(self, split_order):
        uow, _, first_id, _ = split_order
        AdvanceShipmentStatusHandler(uow).handle(first_id, "Delivered")
        FulfillDeliveryHandler(uow).handle(first_id, "clerk")
        with pytest.raises(AlreadyFulfilled):
            AdvanceShipmentStatusHandler(uow).handle(first_id, "In Transit")


class TestCreateBackorderDelivery:

    def test_nothing_left_to_backorder(self, split_order):
        uow, order_id, _, _ = split_order
        with pytest.raises(ValidationError, match="no unmet quantity"):
            CreateBackorderDeliveryHandler(uow).handle(order_id)

    def test_backorder_for_unallocated_order(self):
        uow = FakeUnitOfWork(products=[milled_rice()], locations=[location("wh-a")])
        order = CreateOrderHandler(uow).handle("Aling Nena", [OrderItemSpec("Dinorado", 3)])

        delivery = CreateBackorderDeliveryHandler(uow).handle(order.id)

        assert delivery.delivery_number == 1
        assert delivery.items[0].quantity == 3
        assert delivery.items[0].allocated_quantity == 0
