"""Application service: Show Order use case (query)."""

from __future__ import annotations

from ricemill.application.dto import OrderDTO
from ricemill.application.mappers import order_to_dto
from ricemill.domain.exceptions import EntityNotFoundError
from ricemill.domain.repository.unit_of_work import UnitOfWork


class ShowOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: str) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order {order_id} not found")
            return order_to_dto(self._uow.products, order)
