"""Abstract repository for the append-only inventory ledger.

There is deliberately no update or delete: corrections are new entries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ricemill.domain.model.ledger import InventoryTransaction


class LedgerRepository(ABC):

    @abstractmethod
    def append(self, entry: InventoryTransaction) -> InventoryTransaction:
        """Persist *entry* and return it with its sequence ``id`` assigned."""

    @abstractmethod
    def list_for_product(self, product_id: str) -> list[InventoryTransaction]:
        """Return a product's entries in append order."""

    @abstractmethod
    def list_for_order(self, order_id: str) -> list[InventoryTransaction]:
        """Return the entries written while fulfilling a customer order."""

    @abstractmethod
    def list_all(self) -> list[InventoryTransaction]:
        """Return every entry in append order."""
