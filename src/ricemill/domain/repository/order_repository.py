"""Abstract repository for Order aggregate (items and deliveries included)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ricemill.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: str) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_by_delivery_id(self, delivery_id: str) -> Order | None:
        """Return the order owning a delivery, or None."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order."""
