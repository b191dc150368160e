"""SQLAlchemy-backed implementation of OrderRepository.

An order is stored across four tables (orders, order_items, deliveries,
delivery_items) and always loaded and saved as one aggregate.  Items and
deliveries are only ever added, never removed, so ``save`` upserts rows
by id.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ricemill.domain.model.delivery import (
    Delivery,
    DeliveryItem,
    DeliveryStatus,
    ShipmentStatus,
)
from ricemill.domain.model.order import (
    FulfillmentStatus,
    Order,
    OrderItem,
    OrderStatus,
)
from ricemill.domain.model.value_objects import Money
from ricemill.domain.repository.order_repository import OrderRepository
from ricemill.infrastructure.persistence.db import as_utc
from ricemill.infrastructure.persistence.models import (
    DeliveryItemRow,
    DeliveryRow,
    OrderItemRow,
    OrderRow,
)


class SqlOrderRepository(OrderRepository):

    def __init__(self, session: Session) -> None:
        self._session = session
        self._seen: dict[str, Order] = {}

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: str) -> Order | None:
        if order_id in self._seen:
            return self._seen[order_id]
        row = self._session.scalars(
            select(OrderRow).where(OrderRow.id == order_id).with_for_update()
        ).first()
        if row is None:
            return None
        order = self._to_domain(row)
        self._seen[order.id] = order
        return order

    def get_by_delivery_id(self, delivery_id: str) -> Order | None:
        order_id = self._session.scalars(
            select(DeliveryRow.order_id).where(DeliveryRow.id == delivery_id)
        ).first()
        return self.get_by_id(order_id) if order_id is not None else None

    def save(self, order: Order) -> None:
        self._upsert(
            OrderRow,
            order.id,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            status=order.status.value,
            shipment_status=order.shipment_status.value,
            fulfillment_status=order.fulfillment_status.value,
            created_at=order.created_at,
        )
        for position, item in enumerate(order.items):
            self._upsert(
                OrderItemRow,
                item.id,
                order_id=order.id,
                position=position,
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_price.amount,
                quantity_fulfilled=item.quantity_fulfilled,
                quantity_pending=item.quantity_pending,
            )
        for delivery in order.deliveries:
            self._upsert(
                DeliveryRow,
                delivery.id,
                order_id=order.id,
                delivery_number=delivery.delivery_number,
                status=delivery.status.value,
                shipment_status=delivery.shipment_status.value,
                fulfilled_at=delivery.fulfilled_at,
                fulfilled_by=delivery.fulfilled_by,
                note=delivery.note,
                created_at=delivery.created_at,
            )
            for position, di in enumerate(delivery.items):
                self._upsert(
                    DeliveryItemRow,
                    di.id,
                    delivery_id=delivery.id,
                    position=position,
                    order_item_id=di.order_item_id,
                    quantity=di.quantity,
                    allocated_quantity=di.allocated_quantity,
                )

        self._session.flush()
        self._seen[order.id] = order

    # --- Mapping --------------------------------------------------------------

    def _upsert(self, row_type, row_id: str, **values) -> None:
        """Insert parents before children so foreign keys hold at flush."""
        row = self._session.get(row_type, row_id)
        if row is None:
            self._session.add(row_type(id=row_id, **values))
            self._session.flush()
            return
        for name, value in values.items():
            setattr(row, name, value)

    def _to_domain(self, row: OrderRow) -> Order:
        items = [
            OrderItem(
                id=i.id,
                product_id=i.product_id,
                quantity=i.quantity,
                unit_price=Money(Decimal(i.unit_price)),
                quantity_fulfilled=i.quantity_fulfilled,
                quantity_pending=i.quantity_pending,
            )
            for i in self._session.scalars(
                select(OrderItemRow)
                .where(OrderItemRow.order_id == row.id)
                .order_by(OrderItemRow.position)
            )
        ]
        deliveries = [
            self._delivery_to_domain(d)
            for d in self._session.scalars(
                select(DeliveryRow)
                .where(DeliveryRow.order_id == row.id)
                .order_by(DeliveryRow.delivery_number)
            )
        ]
        return Order(
            id=row.id,
            customer_name=row.customer_name,
            customer_email=row.customer_email,
            items=items,
            status=OrderStatus(row.status),
            shipment_status=ShipmentStatus(row.shipment_status),
            fulfillment_status=FulfillmentStatus(row.fulfillment_status),
            deliveries=deliveries,
            created_at=as_utc(row.created_at),
        )

    def _delivery_to_domain(self, row: DeliveryRow) -> Delivery:
        items = [
            DeliveryItem(
                id=i.id,
                order_item_id=i.order_item_id,
                quantity=i.quantity,
                allocated_quantity=i.allocated_quantity,
            )
            for i in self._session.scalars(
                select(DeliveryItemRow)
                .where(DeliveryItemRow.delivery_id == row.id)
                .order_by(DeliveryItemRow.position)
            )
        ]
        return Delivery(
            id=row.id,
            order_id=row.order_id,
            delivery_number=row.delivery_number,
            items=items,
            status=DeliveryStatus(row.status),
            shipment_status=ShipmentStatus(row.shipment_status),
            fulfilled_at=as_utc(row.fulfilled_at),
            fulfilled_by=row.fulfilled_by,
            note=row.note,
            created_at=as_utc(row.created_at),
        )
