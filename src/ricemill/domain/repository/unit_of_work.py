"""Unit of Work: one atomic transaction spanning every repository.

Each external call runs as::

    with uow:
        ...            # read, lock, mutate through uow.<repository>
        uow.commit()

Leaving the block without ``commit()`` (including by exception) rolls
everything back, so a rejected call never leaves a partial ledger write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ricemill.domain.repository.inventory_repository import InventoryRepository
from ricemill.domain.repository.ledger_repository import LedgerRepository
from ricemill.domain.repository.location_repository import LocationRepository
from ricemill.domain.repository.order_repository import OrderRepository
from ricemill.domain.repository.product_repository import ProductRepository
from ricemill.domain.repository.purchase_order_repository import (
    PurchaseOrderRepository,
)


class UnitOfWork(ABC):

    products: ProductRepository
    locations: LocationRepository
    inventory: InventoryRepository
    ledger: LedgerRepository
    purchase_orders: PurchaseOrderRepository
    orders: OrderRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every change since ``__enter__`` durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted changes; a no-op after ``commit()``."""
