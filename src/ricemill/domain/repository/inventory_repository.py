"""Abstract repository for per-location InventoryItem balances."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ricemill.domain.model.inventory import InventoryItem


class InventoryRepository(ABC):

    @abstractmethod
    def get(self, product_id: str, location_id: str) -> InventoryItem | None:
        """Return the balance row for a (product, location) pair, or None."""

    @abstractmethod
    def lock(self, keys: list[tuple[str, str]]) -> dict[tuple[str, str], InventoryItem]:
        """Lock the rows for *keys* for the rest of the unit of work.

        Implementations take the locks sorted by (product_id, location_id)
        so overlapping batches cannot deadlock.  Missing rows are simply
        absent from the result.
        """

    @abstractmethod
    def list_for_product(self, product_id: str) -> list[InventoryItem]:
        """Return every balance row of a product, oldest first (FIFO order)."""

    @abstractmethod
    def list_all(self) -> list[InventoryItem]:
        """Return every balance row."""

    @abstractmethod
    def save(self, item: InventoryItem) -> None:
        """Persist a new or updated balance row."""
