"""Application service: Allocate Order use case.

Debits stock for an order from the chosen locations, or from a FIFO plan
when the caller does not choose.  Whatever stays pending is split into a
backorder delivery in the same unit of work.
"""

from __future__ import annotations

from ricemill.application.dto import AllocationDTO, AllocationLineDTO, AllocationLineSpec
from ricemill.application.mappers import delivery_to_dto
from ricemill.domain.exceptions import EntityNotFoundError
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.allocation_service import (
    LineAllocation,
    OrderAllocationService,
)
from ricemill.domain.service.delivery_service import DeliveryManager


class AllocateOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        order_id: str,
        lines: list[AllocationLineSpec] | None = None,
        allocated_by: str = "system",
    ) -> AllocationDTO:
        """Allocate stock to an order.

        Args:
            order_id: The order to allocate.
            lines: Explicit per-location allocations.  If None, every
                pending item is planned oldest-stock-first; when nothing is
                in stock the whole order goes to a backorder delivery.
        """
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order {order_id} not found")

            svc = OrderAllocationService(self._uow)
            if lines is None:
                order.ensure_open()
                allocations = svc.plan(order)
            else:
                allocations = [
                    LineAllocation(
                        order_item_id=l.order_item_id,
                        product_id=l.product_id or order.find_item(l.order_item_id).product_id,
                        quantity=l.quantity,
                        location_id=l.location_id,
                    )
                    for l in lines
                ]

            results = (
                svc.allocate(order, allocations, allocated_by=allocated_by)
                if allocations or lines is not None
                else []
            )

            backorder = None
            if order.uncovered_lines():
                delivery = DeliveryManager(self._uow).create_backorder_delivery(order)
                backorder = delivery_to_dto(self._uow.products, order, delivery)

            self._uow.orders.save(order)
            dto = AllocationDTO(
                per_line_result=[
                    AllocationLineDTO(
                        order_item_id=r.order_item_id,
                        location_id=r.location_id,
                        quantity=r.quantity,
                        stock_quantity=r.stock_quantity,
                        quantity_fulfilled=r.quantity_fulfilled,
                        quantity_pending=r.quantity_pending,
                    )
                    for r in results
                ],
                remaining_pending=order.remaining_pending,
                backorder=backorder,
            )
            self._uow.commit()
        return dto
