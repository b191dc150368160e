"""Unit tests for the Delivery state machine."""

import pytest

from ricemill.domain.exceptions import AlreadyFulfilled, DeliveryNotReady, ValidationError
from ricemill.domain.model.delivery import (
    Delivery,
    DeliveryItem,
    DeliveryStatus,
    ShipmentStatus,
)


def _delivery(number: int = 1, allocated: int = 0) -> Delivery:
    return Delivery(
        order_id="o-1",
        delivery_number=number,
        items=[DeliveryItem(order_item_id="i-1", quantity=4, allocated_quantity=allocated)],
    )


class TestShipmentStatusParse:

    @pytest.mark.parametrize("raw", ["Delivered", "delivered", "DELIVERED", " Delivered "])
    def test_accepts_value_or_name(self, raw):
        assert ShipmentStatus.parse(raw) is ShipmentStatus.DELIVERED

    def test_in_transit_by_name(self):
        assert ShipmentStatus.parse("in_transit") is ShipmentStatus.IN_TRANSIT

    def test_unknown_rejected(self):
        with pytest.raises(ValidationError, match="Invalid shipment status"):
            ShipmentStatus.parse("Lost")


class TestTransitions:

    def test_backorder_flag(self):
        assert not _delivery(1).is_backorder
        assert _delivery(2).is_backorder

    def test_pending_delivery_moves_freely(self):
        d = _delivery()
        d.set_shipment_status(ShipmentStatus.DELIVERED)
        d.set_shipment_status(ShipmentStatus.PROCESSING)
        assert d.shipment_status == ShipmentStatus.PROCESSING

    def test_fulfill_requires_delivered(self):
        d = _delivery(allocated=4)
        with pytest.raises(DeliveryNotReady, match="Processing Order"):
            d.ensure_fulfillable()

    def test_mark_fulfilled(self):
        d = _delivery(allocated=4)
        d.set_shipment_status(ShipmentStatus.DELIVERED)
        d.mark_fulfilled("clerk")
        assert d.status == DeliveryStatus.FULFILLED
        assert d.fulfilled_by == "clerk"
        assert d.fulfilled_at is not None

    def test_unallocated_items_block_fulfilment(self):
        d = _delivery(allocated=1)
        d.set_shipment_status(ShipmentStatus.DELIVERED)
        with pytest.raises(ValidationError, match="unallocated"):
            d.mark_fulfilled("clerk")

    def test_fulfilled_is_terminal(self):
        d = _delivery(allocated=4)
        d.set_shipment_status(ShipmentStatus.DELIVERED)
        d.mark_fulfilled("clerk")
        with pytest.raises(AlreadyFulfilled):
            d.ensure_fulfillable()
        with pytest.raises(AlreadyFulfilled, match="cannot change"):
            d.set_shipment_status(ShipmentStatus.IN_TRANSIT)
        d.set_shipment_status(ShipmentStatus.DELIVERED)
        assert d.shipment_status == ShipmentStatus.DELIVERED
