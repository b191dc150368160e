"""PurchaseOrder aggregate: supplier orders and their receiving progress.

The PurchaseOrder owns its line items.  ``received_qty`` on a line only
ever grows and never passes ``ordered_qty``; the order's status is derived
from line completion by ``refresh_status``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ricemill.domain.exceptions import (
    EntityNotFoundError,
    OverReceipt,
    ValidationError,
)
from ricemill.domain.model.value_objects import Money, new_id, require_positive, utcnow


class PurchaseOrderStatus(Enum):
    PENDING = "Pending"
    ORDERED = "Ordered"
    PARTIAL = "Partial"
    RECEIVED = "Received"
    CANCELLED = "Cancelled"


class LineStatus(Enum):
    PENDING = "Pending"
    PARTIAL = "Partial"
    BACKORDERED = "Backordered"
    RECEIVED = "Received"


@dataclass
class PurchaseOrderItem:
    product_id: str
    ordered_qty: int
    unit_price: Money
    received_qty: int = 0
    returned_qty: int = 0
    line_status: LineStatus = LineStatus.PENDING
    id: str = field(default_factory=new_id)

    @property
    def outstanding_qty(self) -> int:
        return self.ordered_qty - self.received_qty

    @property
    def returnable_qty(self) -> int:
        return self.received_qty - self.returned_qty

    @property
    def is_complete(self) -> bool:
        return self.received_qty >= self.ordered_qty

    def check_receivable(self, quantity: int) -> None:
        require_positive(quantity, "Receive quantity")
        if quantity > self.outstanding_qty:
            raise OverReceipt(self.id, quantity, self.outstanding_qty)

    def receive(self, quantity: int) -> None:
        """Record *quantity* arriving from the supplier."""
        self.check_receivable(quantity)
        self.received_qty += quantity
        self.line_status = LineStatus.RECEIVED if self.is_complete else LineStatus.PARTIAL

    def record_return(self, quantity: int) -> None:
        require_positive(quantity, "Return quantity")
        if quantity > self.returnable_qty:
            raise ValidationError(
                f"Cannot return {quantity} on PO line {self.id} "
                f"(only {self.returnable_qty} returnable)"
            )
        self.returned_qty += quantity

    def mark_backordered(self) -> None:
        if self.is_complete:
            raise ValidationError(f"PO line {self.id} is already fully received")
        self.line_status = LineStatus.BACKORDERED


@dataclass
class PurchaseOrder:
    """Aggregate root for supplier purchase orders."""

    supplier_id: str
    items: list[PurchaseOrderItem]
    status: PurchaseOrderStatus = PurchaseOrderStatus.PENDING
    order_date: datetime = field(default_factory=utcnow)
    note: str = ""
    id: str = field(default_factory=new_id)

    @staticmethod
    def create(
        supplier_id: str,
        items: list[PurchaseOrderItem],
        note: str = "",
    ) -> PurchaseOrder:
        if not supplier_id:
            raise ValidationError("Supplier is required")
        if not items:
            raise ValidationError("Purchase order must contain at least one item")
        for item in items:
            require_positive(item.ordered_qty, "Ordered quantity")
        return PurchaseOrder(supplier_id=supplier_id, items=list(items), note=note)

    # --- State transitions ----------------------------------------------------

    def place(self) -> None:
        """Transition Pending -> Ordered (sent to the supplier)."""
        if self.status != PurchaseOrderStatus.PENDING:
            raise ValidationError(
                f"Cannot place purchase order in {self.status.value} status"
            )
        self.status = PurchaseOrderStatus.ORDERED

    def cancel(self) -> None:
        if self.status == PurchaseOrderStatus.CANCELLED:
            raise ValidationError("Purchase order is already cancelled")
        if any(item.received_qty > 0 for item in self.items):
            raise ValidationError(
                "Cannot cancel a purchase order that has already received stock"
            )
        self.status = PurchaseOrderStatus.CANCELLED

    def ensure_receivable(self) -> None:
        if self.status in (PurchaseOrderStatus.CANCELLED, PurchaseOrderStatus.RECEIVED):
            raise ValidationError(
                f"Cannot receive against purchase order in {self.status.value} status"
            )

    def refresh_status(self) -> PurchaseOrderStatus:
        """Derive the order status from line completion.

        Received when every line is complete, Partial when anything has
        been received, otherwise left as it was.
        """
        if all(item.is_complete for item in self.items):
            self.status = PurchaseOrderStatus.RECEIVED
        elif any(item.received_qty > 0 for item in self.items):
            self.status = PurchaseOrderStatus.PARTIAL
        return self.status

    # --- Lookups --------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self.status in (
            PurchaseOrderStatus.ORDERED,
            PurchaseOrderStatus.PARTIAL,
        )

    def find_item(self, po_item_id: str) -> PurchaseOrderItem:
        for item in self.items:
            if item.id == po_item_id:
                return item
        raise EntityNotFoundError(
            f"PO line '{po_item_id}' not found on purchase order {self.id}"
        )
