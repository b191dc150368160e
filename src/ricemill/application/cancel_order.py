"""Application service: Cancel Order use case.

Closes the order's pending deliveries, credits any stock already
allocated to them back to the locations it was taken from, and releases
the reservation on the never-allocated remainder.  Orders with a
fulfilled delivery cannot be cancelled.
"""

from __future__ import annotations

from ricemill.domain.exceptions import EntityNotFoundError
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.allocation_service import OrderAllocationService


class CancelOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: str, cancelled_by: str = "system") -> int:
        """Cancel the order; returns the kg put back into inventory."""
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order {order_id} not found")

            returned = OrderAllocationService(self._uow).cancel(order, cancelled_by)
            self._uow.orders.save(order)
            self._uow.commit()
        return sum(returned.values())
