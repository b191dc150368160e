"""Deliveries: the shipments an order is split into.

Delivery 1 is the initial fulfillment attempt.  Deliveries numbered 2 and
up are backorder batches for quantities the earlier deliveries could not
cover.  A delivery is Pending until it is fulfilled or its order is cancelled;
both are terminal.
The shipment status runs alongside it and is what gates fulfillment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ricemill.domain.exceptions import (
    AlreadyFulfilled,
    DeliveryNotReady,
    ValidationError,
)
from ricemill.domain.model.value_objects import new_id, utcnow


class DeliveryStatus(Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class ShipmentStatus(Enum):
    PROCESSING = "Processing Order"
    IN_TRANSIT = "In Transit"
    DELIVERED = "Delivered"

    @staticmethod
    def parse(raw: str | ShipmentStatus) -> ShipmentStatus:
        if isinstance(raw, ShipmentStatus):
            return raw
        for status in ShipmentStatus:
            if raw.strip().lower() in (status.value.lower(), status.name.lower()):
                return status
        valid = ", ".join(s.value for s in ShipmentStatus)
        raise ValidationError(f"Invalid shipment status {raw!r} (expected one of: {valid})")


@dataclass
class DeliveryItem:
    """The part of one order item that a delivery covers.

    ``allocated_quantity`` is how much of ``quantity`` has already been
    debited from stock.
    """

    order_item_id: str
    quantity: int
    allocated_quantity: int = 0
    id: str = field(default_factory=new_id)

    @property
    def remaining_quantity(self) -> int:
        return self.quantity - self.allocated_quantity


@dataclass
class Delivery:
    order_id: str
    delivery_number: int
    items: list[DeliveryItem]
    status: DeliveryStatus = DeliveryStatus.PENDING
    shipment_status: ShipmentStatus = ShipmentStatus.PROCESSING
    fulfilled_at: datetime | None = None
    fulfilled_by: str | None = None
    note: str = ""
    created_at: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=new_id)

    @property
    def is_backorder(self) -> bool:
        return self.delivery_number > 1

    @property
    def is_fulfilled(self) -> bool:
        return self.status == DeliveryStatus.FULFILLED

    @property
    def is_open(self) -> bool:
        return self.status == DeliveryStatus.PENDING

    def items_for(self, order_item_id: str) -> list[DeliveryItem]:
        return [i for i in self.items if i.order_item_id == order_item_id]

    def set_shipment_status(self, new_status: ShipmentStatus) -> None:
        """Record a shipment status.

        Pending deliveries accept any status.  A fulfilled delivery has
        already left inventory, so it stays Delivered.
        """
        self._ensure_not_cancelled()
        if self.is_fulfilled and new_status != ShipmentStatus.DELIVERED:
            raise AlreadyFulfilled(
                f"Delivery #{self.delivery_number} is fulfilled; "
                f"its shipment status cannot change to '{new_status.value}'"
            )
        self.shipment_status = new_status

    def ensure_fulfillable(self) -> None:
        self._ensure_not_cancelled()
        if self.is_fulfilled:
            raise AlreadyFulfilled(
                f"Delivery #{self.delivery_number} is already fulfilled"
            )
        if self.shipment_status != ShipmentStatus.DELIVERED:
            raise DeliveryNotReady(
                f"Delivery #{self.delivery_number} must be marked as 'Delivered' "
                f"before fulfillment. Current status: {self.shipment_status.value}"
            )

    def mark_fulfilled(self, fulfilled_by: str) -> None:
        self.ensure_fulfillable()
        if any(item.remaining_quantity > 0 for item in self.items):
            raise ValidationError(
                f"Delivery #{self.delivery_number} still has unallocated items"
            )
        self.status = DeliveryStatus.FULFILLED
        self.fulfilled_at = utcnow()
        self.fulfilled_by = fulfilled_by

    def cancel(self) -> dict[str, int]:
        """Close a pending delivery; returns the allocated quantity per order item."""
        if self.is_fulfilled:
            raise AlreadyFulfilled(
                f"Delivery #{self.delivery_number} is already fulfilled"
            )
        released: dict[str, int] = {}
        for item in self.items:
            if item.allocated_quantity > 0:
                released[item.order_item_id] = (
                    released.get(item.order_item_id, 0) + item.allocated_quantity
                )
        self.status = DeliveryStatus.CANCELLED
        return released

    def _ensure_not_cancelled(self) -> None:
        if self.status == DeliveryStatus.CANCELLED:
            raise ValidationError(
                f"Delivery #{self.delivery_number} belongs to a cancelled order"
            )
