"""Abstract repository for PurchaseOrder aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ricemill.domain.model.purchase_order import PurchaseOrder


class PurchaseOrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, purchase_order_id: str) -> PurchaseOrder | None:
        """Return a purchase order by its ID, or None if not found."""

    @abstractmethod
    def save(self, purchase_order: PurchaseOrder) -> None:
        """Persist a new or updated purchase order."""
