"""InventoryItem: the materialized balance of one product at one location.

There is one InventoryItem per (product, location) pair.  Its quantity is
a projection of the ledger; it is only mutated by ``StockLedger.post``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ricemill.domain.exceptions import InvalidQuantity, InsufficientStock
from ricemill.domain.model.value_objects import utcnow


@dataclass
class InventoryItem:
    """Per-location balance in stock units (kg).

    Invariants:
    - ``quantity`` is never negative
    - ``created_at`` records when the row was first populated and is the
      FIFO age key; it never changes afterwards
    """

    product_id: str
    location_id: str
    quantity: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.location_id)

    def credit(self, quantity: int) -> None:
        if quantity <= 0:
            raise InvalidQuantity("Credit quantity must be positive")
        self.quantity += quantity
        self.updated_at = utcnow()

    def debit(self, quantity: int, product_name: str | None = None) -> None:
        """Remove stock from this location.

        Raises InsufficientStock if the location holds less than *quantity*.
        """
        if quantity <= 0:
            raise InvalidQuantity("Debit quantity must be positive")
        if quantity > self.quantity:
            raise InsufficientStock(
                product_name or self.product_id,
                needed=quantity,
                available=self.quantity,
                location_id=self.location_id,
            )
        self.quantity -= quantity
        self.updated_at = utcnow()
