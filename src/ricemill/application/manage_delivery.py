"""Application services: delivery and backorder use cases."""

from __future__ import annotations

import logging

from ricemill.application.dto import DeliveryDTO, FulfillmentDTO, ShipmentUpdateDTO
from ricemill.application.mappers import delivery_to_dto
from ricemill.domain.exceptions import EntityNotFoundError, InsufficientBackorderStock
from ricemill.domain.model.delivery import ShipmentStatus
from ricemill.domain.model.order import Order
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.delivery_service import DeliveryManager

logger = logging.getLogger(__name__)


def _load_by_delivery(uow: UnitOfWork, delivery_id: str) -> Order:
    order = uow.orders.get_by_delivery_id(delivery_id)
    if order is None:
        raise EntityNotFoundError(f"Delivery {delivery_id} not found")
    return order


class CreateBackorderDeliveryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: str) -> DeliveryDTO:
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order {order_id} not found")
            delivery = DeliveryManager(self._uow).create_backorder_delivery(order)
            self._uow.orders.save(order)
            dto = delivery_to_dto(self._uow.products, order, delivery)
            self._uow.commit()
        return dto


class AdvanceShipmentStatusHandler:
    """Record a delivery's shipment status.

    A backorder that the warehouse cannot cover yet is reported back as
    ``accepted=False`` with the shortage instead of raising, so the caller
    can show why the status did not move.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, delivery_id: str, new_status: str) -> ShipmentUpdateDTO:
        status = ShipmentStatus.parse(new_status)
        with self._uow:
            order = _load_by_delivery(self._uow, delivery_id)
            delivery = order.find_delivery(delivery_id)
            try:
                DeliveryManager(self._uow).advance_shipment_status(order, delivery, status)
            except InsufficientBackorderStock as exc:
                return ShipmentUpdateDTO(
                    accepted=False,
                    shipment_status=delivery.shipment_status.value,
                    reason=str(exc),
                )
            self._uow.orders.save(order)
            self._uow.commit()
            return ShipmentUpdateDTO(accepted=True, shipment_status=status.value)


class FulfillDeliveryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, delivery_id: str, fulfilled_by: str = "system") -> FulfillmentDTO:
        with self._uow:
            order = _load_by_delivery(self._uow, delivery_id)
            delivery = order.find_delivery(delivery_id)
            DeliveryManager(self._uow).fulfill_delivery(order, delivery, fulfilled_by)
            self._uow.orders.save(order)
            self._uow.commit()
        return FulfillmentDTO(
            order_status=order.status.value,
            fulfillment_status=order.fulfillment_status.value,
        )


class CheckDeliveryStockHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, delivery_id: str) -> list[str]:
        """Return the shortages blocking a delivery (empty when it can ship)."""
        with self._uow:
            order = _load_by_delivery(self._uow, delivery_id)
            delivery = order.find_delivery(delivery_id)
            if delivery.is_fulfilled:
                return []
            return DeliveryManager(self._uow).check_stock(order, delivery)
