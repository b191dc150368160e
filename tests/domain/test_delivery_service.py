"""Unit tests for the DeliveryManager domain service."""

import pytest

from ricemill.domain.exceptions import (
    AlreadyFulfilled,
    DeliveryNotReady,
    InsufficientBackorderStock,
    InsufficientStock,
)
from ricemill.domain.model.delivery import DeliveryStatus, ShipmentStatus
from ricemill.domain.model.order import FulfillmentStatus, Order, OrderItem, OrderStatus
from ricemill.domain.model.value_objects import Money
from ricemill.domain.service.allocation_service import (
    LineAllocation,
    OrderAllocationService,
)
from ricemill.domain.service.delivery_service import DeliveryManager
from tests.fakes import FakeUnitOfWork, location, milled_rice, seed_stock


def _split_order():
    """10 sacks ordered, 6 allocated from 300 kg, 4 sacks on backorder."""
    uow = FakeUnitOfWork(products=[milled_rice()], locations=[location("wh-a"), location("wh-b")])
    order = Order.create(
        "Aling Nena", [OrderItem(product_id="rice", quantity=10, unit_price=Money.of("2450"))]
    )
    uow.orders.save(order)
    seed_stock(uow, "rice", "wh-a", 300)
    OrderAllocationService(uow).allocate(
        order, [LineAllocation(order.items[0].id, "rice", 6, "wh-a")]
    )
    manager = DeliveryManager(uow)
    backorder = manager.create_backorder_delivery(order)
    return uow, manager, order, backorder


class TestCreateBackorder:

    def test_backorder_covers_remaining_sacks(self):
        _, _, order, backorder = _split_order()
        assert backorder.delivery_number == 2
        assert backorder.items[0].quantity == 4
        assert backorder.shipment_status == ShipmentStatus.PROCESSING
        assert order.status == OrderStatus.PROCESSING


class TestShipmentGate:

    def test_backorder_blocked_without_stock(self):
        _, manager, order, backorder = _split_order()
        with pytest.raises(InsufficientBackorderStock) as exc_info:
            manager.advance_shipment_status(order, backorder, ShipmentStatus.DELIVERED)
        assert "Available: 0 sacks (0 kg), Needed: 4 sacks (200 kg)" in str(exc_info.value)
        assert backorder.shipment_status == ShipmentStatus.PROCESSING

    def test_backorder_moves_once_restocked(self):
        uow, manager, order, backorder = _split_order()
        seed_stock(uow, "rice", "wh-b", 200)
        manager.advance_shipment_status(order, backorder, ShipmentStatus.IN_TRANSIT)
        assert backorder.shipment_status == ShipmentStatus.IN_TRANSIT
        assert order.shipment_status == ShipmentStatus.PROCESSING

    def test_first_delivery_is_not_gated(self):
        _, manager, order, _ = _split_order()
        first = order.deliveries[0]
        manager.advance_shipment_status(order, first, ShipmentStatus.DELIVERED)
        assert first.shipment_status == ShipmentStatus.DELIVERED

    def test_check_stock_reads_only(self):
        uow, manager, order, backorder = _split_order()
        seed_stock(uow, "rice", "wh-b", 150)
        entries = len(uow.ledger.list_all())
        shortages = manager.check_stock(order, backorder)
        assert len(shortages) == 1
        assert len(uow.ledger.list_all()) == entries


class TestFulfillDelivery:

    def test_first_delivery_needs_no_extra_stock(self):
        uow, manager, order, _ = _split_order()
        first = order.deliveries[0]
        manager.advance_shipment_status(order, first, ShipmentStatus.DELIVERED)
        entries = len(uow.ledger.list_all())

        manager.fulfill_delivery(order, first, "clerk")

        assert first.status == DeliveryStatus.FULFILLED
        assert len(uow.ledger.list_all()) == entries
        assert order.status == OrderStatus.PARTIAL
        assert order.fulfillment_status == FulfillmentStatus.PARTIAL

    def test_backorder_fulfilment_drains_fifo(self):
        uow, manager, order, backorder = _split_order()
        seed_stock(uow, "rice", "wh-b", 250)
        manager.advance_shipment_status(order, order.deliveries[0], ShipmentStatus.DELIVERED)
        manager.fulfill_delivery(order, order.deliveries[0], "clerk")
        manager.advance_shipment_status(order, backorder, ShipmentStatus.DELIVERED)

        manager.fulfill_delivery(order, backorder, "clerk")

        assert uow.inventory.get("rice", "wh-b").quantity == 50
        item = order.items[0]
        assert (item.quantity_fulfilled, item.quantity_pending) == (10, 0)
        assert order.status == OrderStatus.COMPLETED
        assert order.fulfillment_status == FulfillmentStatus.COMPLETED
        assert order.shipment_status == ShipmentStatus.DELIVERED

    def test_not_delivered_yet(self):
        _, manager, order, backorder = _split_order()
        with pytest.raises(DeliveryNotReady):
            manager.fulfill_delivery(order, backorder, "clerk")

    def test_second_fulfil_rejected_without_changes(self):
        uow, manager, order, _ = _split_order()
        first = order.deliveries[0]
        manager.advance_shipment_status(order, first, ShipmentStatus.DELIVERED)
        manager.fulfill_delivery(order, first, "clerk")
        entries = len(uow.ledger.list_all())
        fulfilled_at = first.fulfilled_at

        with pytest.raises(AlreadyFulfilled):
            manager.fulfill_delivery(order, first, "someone-else")

        assert first.fulfilled_at == fulfilled_at
        assert first.fulfilled_by == "clerk"
        assert len(uow.ledger.list_all()) == entries

    def test_stock_ran_out_after_shipping(self):
        uow, manager, order, backorder = _split_order()
        seed_stock(uow, "rice", "wh-b", 200)
        manager.advance_shipment_status(order, backorder, ShipmentStatus.DELIVERED)
        uow.inventory.get("rice", "wh-b").quantity = 100
        with pytest.raises(InsufficientStock):
            manager.fulfill_delivery(order, backorder, "clerk")
        assert backorder.status == DeliveryStatus.PENDING
