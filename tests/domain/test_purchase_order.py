"""Unit tests for the PurchaseOrder aggregate."""

import pytest

from ricemill.domain.exceptions import (
    EntityNotFoundError,
    InvalidQuantity,
    OverReceipt,
    ValidationError,
)
from ricemill.domain.model.purchase_order import (
    LineStatus,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from ricemill.domain.model.value_objects import Money


def _po(*quantities: int) -> PurchaseOrder:
    items = [
        PurchaseOrderItem(product_id=f"p{i}", ordered_qty=q, unit_price=Money.of("40.00"))
        for i, q in enumerate(quantities or (100,))
    ]
    return PurchaseOrder.create(supplier_id="sup-1", items=items)


class TestCreate:

    def test_starts_pending(self):
        po = _po(100)
        assert po.status == PurchaseOrderStatus.PENDING
        assert po.items[0].line_status == LineStatus.PENDING

    def test_requires_supplier(self):
        with pytest.raises(ValidationError, match="Supplier is required"):
            PurchaseOrder.create("", [PurchaseOrderItem("p", 1, Money.of("1"))])

    def test_requires_items(self):
        with pytest.raises(ValidationError, match="at least one item"):
            PurchaseOrder.create("sup-1", [])

    def test_ordered_qty_must_be_positive(self):
        with pytest.raises(InvalidQuantity):
            PurchaseOrder.create("sup-1", [PurchaseOrderItem("p", 0, Money.of("1"))])


class TestLineReceiving:

    def test_partial_receipt(self):
        item = _po(100).items[0]
        item.receive(60)
        assert item.received_qty == 60
        assert item.line_status == LineStatus.PARTIAL
        assert item.outstanding_qty == 40

    def test_complete_receipt(self):
        item = _po(100).items[0]
        item.receive(60)
        item.receive(40)
        assert item.line_status == LineStatus.RECEIVED
        assert item.is_complete

    def test_over_receipt_rejected(self):
        item = _po(100).items[0]
        item.receive(60)
        with pytest.raises(OverReceipt) as exc_info:
            item.receive(41)
        assert exc_info.value.outstanding == 40
        assert item.received_qty == 60

    def test_zero_receipt_rejected(self):
        with pytest.raises(InvalidQuantity):
            _po(100).items[0].receive(0)

    def test_return_bounded_by_received(self):
        item = _po(100).items[0]
        item.receive(30)
        item.record_return(10)
        assert item.returnable_qty == 20
        with pytest.raises(ValidationError, match="only 20 returnable"):
            item.record_return(21)

    def test_backorder_flag(self):
        item = _po(100).items[0]
        item.receive(60)
        item.mark_backordered()
        assert item.line_status == LineStatus.BACKORDERED

    def test_cannot_backorder_complete_line(self):
        item = _po(10).items[0]
        item.receive(10)
        with pytest.raises(ValidationError, match="already fully received"):
            item.mark_backordered()


class TestStatus:

    def test_place(self):
        po = _po()
        po.place()
        assert po.status == PurchaseOrderStatus.ORDERED
        with pytest.raises(ValidationError, match="Cannot place"):
            po.place()

    def test_refresh_partial_then_received(self):
        po = _po(100, 50)
        po.items[0].receive(100)
        assert po.refresh_status() == PurchaseOrderStatus.PARTIAL
        po.items[1].receive(50)
        assert po.refresh_status() == PurchaseOrderStatus.RECEIVED

    def test_refresh_without_receipts_keeps_status(self):
        po = _po()
        po.place()
        assert po.refresh_status() == PurchaseOrderStatus.ORDERED

    def test_received_po_not_receivable(self):
        po = _po(10)
        po.items[0].receive(10)
        po.refresh_status()
        with pytest.raises(ValidationError, match="Received status"):
            po.ensure_receivable()

    def test_cancel_before_receipt(self):
        po = _po()
        po.cancel()
        assert po.status == PurchaseOrderStatus.CANCELLED
        with pytest.raises(ValidationError, match="Cancelled status"):
            po.ensure_receivable()

    def test_cancel_after_receipt_rejected(self):
        po = _po()
        po.items[0].receive(1)
        with pytest.raises(ValidationError, match="already received stock"):
            po.cancel()

    def test_find_item_unknown(self):
        with pytest.raises(EntityNotFoundError, match="not found"):
            _po().find_item("nope")
