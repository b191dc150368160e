"""Domain service: Delivery / Backorder Manager.

Drives the per-delivery state machine:

    pending ──fulfill──> fulfilled            (terminal)
    Processing Order / In Transit / Delivered (shipment sub-state)

Backorder deliveries (number 2 and up) may only advance their shipment
status while the warehouse actually holds enough stock for them, and no
delivery may be fulfilled before its shipment is Delivered.  Fulfilling a
delivery is what debits the stock for quantities that were not allocated
up front.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from ricemill.domain.exceptions import InsufficientBackorderStock, InsufficientStock
from ricemill.domain.model.delivery import Delivery, ShipmentStatus
from ricemill.domain.model.order import Order
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.allocation_service import OrderAllocationService
from ricemill.domain.service.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


class DeliveryManager:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow
        self._ledger = StockLedger(uow)
        self._allocation = OrderAllocationService(uow)

    def create_backorder_delivery(self, order: Order) -> Delivery:
        """Split every uncovered pending quantity into the next delivery."""
        delivery = order.open_backorder()
        order.refresh_status()
        logger.info(
            "order %s: backorder delivery #%d for %d line(s)",
            order.id, delivery.delivery_number, len(delivery.items),
        )
        return delivery

    def check_stock(self, order: Order, delivery: Delivery) -> list[str]:
        """Describe every product the delivery cannot be covered for.

        An empty list means the warehouse currently holds enough stock.
        Reads only; nothing is reserved or debited.
        """
        needed: dict[str, int] = defaultdict(int)
        for di in delivery.items:
            if di.remaining_quantity <= 0:
                continue
            item = order.find_item(di.order_item_id)
            needed[item.product_id] += di.remaining_quantity

        shortages: list[str] = []
        for product_id, order_qty in sorted(needed.items()):
            product = self._ledger.require_product(product_id)
            needed_kg = product.to_stock_units(order_qty)
            available_kg = self._ledger.available(product_id)
            if available_kg < needed_kg:
                shortages.append(
                    f"Insufficient stock for {product.name}. "
                    f"Available: {product.describe_stock(available_kg)}, "
                    f"Needed: {product.describe_stock(needed_kg)}"
                )
        return shortages

    def advance_shipment_status(
        self,
        order: Order,
        delivery: Delivery,
        new_status: ShipmentStatus,
    ) -> None:
        """Record a new shipment status for a delivery.

        Raises InsufficientBackorderStock for a backorder the warehouse
        cannot cover yet; the status is left unchanged in that case.
        """
        if delivery.is_backorder and not delivery.is_fulfilled:
            shortages = self.check_stock(order, delivery)
            if shortages:
                logger.warning(
                    "order %s: delivery #%d held at '%s': %s",
                    order.id, delivery.delivery_number,
                    delivery.shipment_status.value, "; ".join(shortages),
                )
                raise InsufficientBackorderStock(shortages)
        delivery.set_shipment_status(new_status)
        order.refresh_status()
        logger.info(
            "order %s: delivery #%d shipment -> %s",
            order.id, delivery.delivery_number, new_status.value,
        )

    def fulfill_delivery(
        self,
        order: Order,
        delivery: Delivery,
        fulfilled_by: str = "system",
    ) -> Delivery:
        """Debit whatever the delivery still needs and close it.

        Raises AlreadyFulfilled or DeliveryNotReady without touching
        anything, and InsufficientStock if the remaining quantity cannot
        be covered across all locations.
        """
        delivery.ensure_fulfillable()
        order.ensure_open()

        # Phase 1: total what still has to leave inventory, per product
        needed: dict[str, int] = defaultdict(int)
        for di in delivery.items:
            if di.remaining_quantity > 0:
                needed[order.find_item(di.order_item_id).product_id] += di.remaining_quantity

        locked = self._allocation.lock_all_locations(set(needed))
        for product_id, order_qty in sorted(needed.items()):
            product = locked.product(product_id)
            needed_kg = product.to_stock_units(order_qty)
            available_kg = sum(
                row.quantity for key, row in locked.items.items() if key[0] == product_id
            )
            if available_kg < needed_kg:
                raise InsufficientStock(product.name, needed=needed_kg, available=available_kg)

        # Phase 2: drain FIFO and book each delivery item
        for di in delivery.items:
            if di.remaining_quantity <= 0:
                continue
            item = order.find_item(di.order_item_id)
            product = locked.product(item.product_id)
            self._allocation.fifo_debit(
                order,
                product,
                di.remaining_quantity,
                locked,
                allocated_by=fulfilled_by,
                note=f"Delivery {delivery.delivery_number} fulfillment for order {order.id}",
            )
            order.fulfill_delivery_item(di)

        delivery.mark_fulfilled(fulfilled_by)
        order.refresh_status()
        logger.info(
            "order %s: delivery #%d fulfilled, status=%s fulfillment=%s",
            order.id, delivery.delivery_number,
            order.status.value, order.fulfillment_status.value,
        )
        return delivery
