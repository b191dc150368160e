"""Order aggregate: customer orders, their line items and deliveries.

The Order is an aggregate root that owns its line items and its ordered
list of deliveries.  All fulfillment bookkeeping goes through it so the
split ``quantity_fulfilled + quantity_pending == quantity`` holds for every
line at all times.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ricemill.domain.exceptions import EntityNotFoundError, ValidationError
from ricemill.domain.model.delivery import (
    Delivery,
    DeliveryItem,
    DeliveryStatus,
    ShipmentStatus,
)
from ricemill.domain.model.value_objects import Money, new_id, require_positive, utcnow


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PARTIAL = "partial"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FulfillmentStatus(Enum):
    PENDING = "Pending"
    PARTIAL = "Partial"
    COMPLETED = "Completed"


@dataclass
class OrderItem:
    """One product line of an order, in order units (sacks or kg).

    ``quantity`` and ``unit_price`` never change after creation.
    """

    product_id: str
    quantity: int
    unit_price: Money
    quantity_fulfilled: int = 0
    quantity_pending: int | None = None
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if self.quantity_pending is None:
            self.quantity_pending = self.quantity - self.quantity_fulfilled

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity

    @property
    def is_fully_fulfilled(self) -> bool:
        return self.quantity_pending == 0

    def fulfill(self, qty: int) -> None:
        """Move *qty* from pending to fulfilled."""
        require_positive(qty, "Fulfill quantity")
        if qty > self.quantity_pending:
            raise ValidationError(
                f"Cannot fulfill {qty} on order item {self.id} "
                f"(only {self.quantity_pending} pending)"
            )
        self.quantity_fulfilled += qty
        self.quantity_pending -= qty

    def unfulfill(self, qty: int) -> None:
        """Move *qty* back from fulfilled to pending."""
        require_positive(qty, "Unfulfill quantity")
        if qty > self.quantity_fulfilled:
            raise ValidationError(
                f"Cannot return {qty} on order item {self.id} "
                f"(only {self.quantity_fulfilled} fulfilled)"
            )
        self.quantity_fulfilled -= qty
        self.quantity_pending += qty


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders.  The ``__init__``
    stays simple so the repository can reconstitute persisted orders
    without re-validating.
    """

    customer_name: str
    items: list[OrderItem]
    customer_email: str = ""
    status: OrderStatus = OrderStatus.PENDING
    shipment_status: ShipmentStatus = ShipmentStatus.PROCESSING
    fulfillment_status: FulfillmentStatus = FulfillmentStatus.PENDING
    deliveries: list[Delivery] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=new_id)

    @staticmethod
    def create(
        customer_name: str,
        items: list[OrderItem],
        customer_email: str = "",
    ) -> Order:
        if not customer_name or not customer_name.strip():
            raise ValidationError("Customer name is required")
        if not items:
            raise ValidationError("Order must contain at least one item")
        seen: set[str] = set()
        for item in items:
            require_positive(item.quantity, "Order quantity")
            if item.product_id in seen:
                raise ValidationError(
                    f"Product '{item.product_id}' appears more than once in the order"
                )
            seen.add(item.product_id)
        return Order(
            customer_name=customer_name.strip(),
            customer_email=customer_email.strip(),
            items=list(items),
        )

    # --- Computed properties --------------------------------------------------

    @property
    def total(self) -> Money:
        result = Money.zero()
        for item in self.items:
            result = result + item.line_total
        return result

    @property
    def remaining_pending(self) -> dict[str, int]:
        return {i.id: i.quantity_pending for i in self.items if i.quantity_pending > 0}

    @property
    def next_delivery_number(self) -> int:
        return max((d.delivery_number for d in self.deliveries), default=0) + 1

    def covered_quantity(self, order_item_id: str) -> int:
        """Quantity of an order item already assigned to some delivery."""
        return sum(
            di.quantity
            for d in self.deliveries
            for di in d.items_for(order_item_id)
        )

    def uncovered_lines(self) -> dict[str, int]:
        """Pending quantity per order item that no delivery covers yet."""
        result: dict[str, int] = {}
        for item in self.items:
            uncovered = item.quantity - self.covered_quantity(item.id)
            if uncovered > 0:
                result[item.id] = uncovered
        return result

    # --- Lookups --------------------------------------------------------------

    def find_item(self, order_item_id: str) -> OrderItem:
        for item in self.items:
            if item.id == order_item_id:
                return item
        raise EntityNotFoundError(
            f"Order item '{order_item_id}' not found in order {self.id}"
        )

    def find_delivery(self, delivery_id: str) -> Delivery:
        for delivery in self.deliveries:
            if delivery.id == delivery_id:
                return delivery
        raise EntityNotFoundError(
            f"Delivery '{delivery_id}' not found in order {self.id}"
        )

    # --- State transitions ----------------------------------------------------

    def ensure_open(self) -> None:
        if self.status == OrderStatus.CANCELLED:
            raise ValidationError(f"Order {self.id} is cancelled")
        if self.status == OrderStatus.COMPLETED:
            raise ValidationError(f"Order {self.id} is already completed")

    def record_allocation(self, order_item_id: str, qty: int) -> None:
        """Book *qty* of an order item as allocated from stock.

        The quantity first fills pending deliveries that already cover
        the item, oldest first.  Anything left lands on the first pending
        delivery, which is created as delivery 1 when none exists.
        """
        self.ensure_open()
        item = self.find_item(order_item_id)
        item.fulfill(qty)

        remaining = qty
        pending = [d for d in self.deliveries if d.is_open]
        for delivery in pending:
            for di in delivery.items_for(order_item_id):
                take = min(di.remaining_quantity, remaining)
                di.allocated_quantity += take
                remaining -= take
        if remaining == 0:
            return

        target = pending[0] if pending else self._new_delivery([])
        existing = target.items_for(order_item_id)
        if existing:
            existing[0].quantity += remaining
            existing[0].allocated_quantity += remaining
        else:
            target.items.append(
                DeliveryItem(
                    order_item_id=order_item_id,
                    quantity=remaining,
                    allocated_quantity=remaining,
                )
            )

    def open_backorder(self, note: str = "") -> Delivery:
        """Create the next delivery for every quantity no delivery covers."""
        self.ensure_open()
        lines = self.uncovered_lines()
        if not lines:
            raise ValidationError(f"Order {self.id} has no unmet quantity to backorder")
        return self._new_delivery(
            [DeliveryItem(order_item_id=oid, quantity=qty) for oid, qty in lines.items()],
            note=note or "Backorder",
        )

    def fulfill_delivery_item(self, delivery_item: DeliveryItem) -> int:
        """Book the unallocated remainder of a delivery item; returns it."""
        qty = delivery_item.remaining_quantity
        if qty > 0:
            self.find_item(delivery_item.order_item_id).fulfill(qty)
            delivery_item.allocated_quantity += qty
        return qty

    def cancel(self) -> dict[str, int]:
        """Cancel the order and close its pending deliveries.

        Quantities already allocated to those deliveries go back to
        pending.  Returns them per order item so the caller can put the
        stock back.
        """
        if self.status == OrderStatus.CANCELLED:
            raise ValidationError("Order is already cancelled")
        if self.status == OrderStatus.COMPLETED:
            raise ValidationError("Cannot cancel a completed order")
        if any(d.is_fulfilled for d in self.deliveries):
            raise ValidationError("Cannot cancel an order with fulfilled deliveries")
        returned: dict[str, int] = {}
        for delivery in self.deliveries:
            if not delivery.is_open:
                continue
            for order_item_id, qty in delivery.cancel().items():
                self.find_item(order_item_id).unfulfill(qty)
                returned[order_item_id] = returned.get(order_item_id, 0) + qty
        self.status = OrderStatus.CANCELLED
        self.refresh_status()
        return returned

    def refresh_status(self) -> None:
        """Derive fulfillment, order and shipment status from lines and deliveries."""
        if all(item.is_fully_fulfilled for item in self.items):
            self.fulfillment_status = FulfillmentStatus.COMPLETED
        elif any(item.quantity_fulfilled > 0 for item in self.items):
            self.fulfillment_status = FulfillmentStatus.PARTIAL
        else:
            self.fulfillment_status = FulfillmentStatus.PENDING

        pending = [d for d in self.deliveries if d.is_open]
        if pending:
            self.shipment_status = pending[0].shipment_status
        elif any(d.is_fulfilled for d in self.deliveries):
            self.shipment_status = ShipmentStatus.DELIVERED

        if self.status == OrderStatus.CANCELLED:
            return
        if self.deliveries and not pending and (
            self.fulfillment_status == FulfillmentStatus.COMPLETED
        ):
            self.status = OrderStatus.COMPLETED
        elif any(d.is_fulfilled for d in self.deliveries):
            self.status = OrderStatus.PARTIAL
        elif self.deliveries:
            self.status = OrderStatus.PROCESSING
        else:
            self.status = OrderStatus.PENDING

    # --- Internal helpers -----------------------------------------------------

    def _new_delivery(self, items: list[DeliveryItem], note: str = "") -> Delivery:
        delivery = Delivery(
            order_id=self.id,
            delivery_number=self.next_delivery_number,
            items=items,
            status=DeliveryStatus.PENDING,
            shipment_status=ShipmentStatus.PROCESSING,
            note=note,
        )
        self.deliveries.append(delivery)
        return delivery
