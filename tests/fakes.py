"""In-memory fake repositories for testing.

These implement the same abstract interfaces as the SQL repositories
but keep everything in a dict. No database, no side effects.
"""

from __future__ import annotations

import copy
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from ricemill.domain.model.inventory import InventoryItem
from ricemill.domain.model.ledger import InventoryTransaction, TransactionKind
from ricemill.domain.model.location import StorageLocation
from ricemill.domain.model.order import Order
from ricemill.domain.model.product import Product
from ricemill.domain.model.purchase_order import PurchaseOrder
from ricemill.domain.model.value_objects import Money
from ricemill.domain.repository.inventory_repository import InventoryRepository
from ricemill.domain.repository.ledger_repository import LedgerRepository
from ricemill.domain.repository.location_repository import LocationRepository
from ricemill.domain.repository.order_repository import OrderRepository
from ricemill.domain.repository.product_repository import ProductRepository
from ricemill.domain.repository.purchase_order_repository import (
    PurchaseOrderRepository,
)
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.stock_ledger import StockLedger


class FakeProductRepository(ProductRepository):

    def __init__(self, products: list[Product] | None = None) -> None:
        self._store: dict[str, Product] = {}
        self.locked: list[str] = []
        for p in products or []:
            self._store[p.id] = p

    def get_by_id(self, product_id: str) -> Product | None:
        return self._store.get(product_id)

    def get_for_update(self, product_id: str) -> Product | None:
        self.locked.append(product_id)
        return self._store.get(product_id)

    def get_by_name(self, name: str) -> Product | None:
        for p in self._store.values():
            if p.name.lower() == name.strip().lower():
                return p
        return None

    def list_all(self) -> list[Product]:
        return list(self._store.values())

    def save(self, product: Product) -> None:
        self._store[product.id] = product


class FakeLocationRepository(LocationRepository):

    def __init__(self, locations: list[StorageLocation] | None = None) -> None:
        self._store: dict[str, StorageLocation] = {}
        for loc in locations or []:
            self._store[loc.id] = loc

    def get_by_id(self, location_id: str) -> StorageLocation | None:
        return self._store.get(location_id)

    def list_all(self) -> list[StorageLocation]:
        return sorted(self._store.values(), key=lambda loc: loc.code)

    def save(self, location: StorageLocation) -> None:
        self._store[location.id] = location


class FakeInventoryRepository(InventoryRepository):

    def __init__(self, items: list[InventoryItem] | None = None) -> None:
        self._store: dict[tuple[str, str], InventoryItem] = {}
        self.locked: list[tuple[str, str]] = []
        for item in items or []:
            self._store[item.key] = item

    def get(self, product_id: str, location_id: str) -> InventoryItem | None:
        return self._store.get((product_id, location_id))

    def lock(self, keys: list[tuple[str, str]]) -> dict[tuple[str, str], InventoryItem]:
        result = {}
        for key in sorted(set(keys)):
            self.locked.append(key)
            if key in self._store:
                result[key] = self._store[key]
        return result

    def list_for_product(self, product_id: str) -> list[InventoryItem]:
        return sorted(
            (i for i in self._store.values() if i.product_id == product_id),
            key=lambda i: i.created_at,
        )

    def list_all(self) -> list[InventoryItem]:
        return list(self._store.values())

    def save(self, item: InventoryItem) -> None:
        self._store[item.key] = item


class FakeLedgerRepository(LedgerRepository):

    def __init__(self) -> None:
        self._entries: list[InventoryTransaction] = []

    def append(self, entry: InventoryTransaction) -> InventoryTransaction:
        stored = replace(entry, id=len(self._entries) + 1)
        self._entries.append(stored)
        return stored

    def list_for_product(self, product_id: str) -> list[InventoryTransaction]:
        return [e for e in self._entries if e.product_id == product_id]

    def list_for_order(self, order_id: str) -> list[InventoryTransaction]:
        return [e for e in self._entries if e.order_id == order_id]

    def list_all(self) -> list[InventoryTransaction]:
        return list(self._entries)


class FakePurchaseOrderRepository(PurchaseOrderRepository):

    def __init__(self) -> None:
        self._store: dict[str, PurchaseOrder] = {}

    def get_by_id(self, purchase_order_id: str) -> PurchaseOrder | None:
        return self._store.get(purchase_order_id)

    def save(self, purchase_order: PurchaseOrder) -> None:
        self._store[purchase_order.id] = purchase_order


class FakeOrderRepository(OrderRepository):

    def __init__(self) -> None:
        self._store: dict[str, Order] = {}

    def get_by_id(self, order_id: str) -> Order | None:
        return self._store.get(order_id)

    def get_by_delivery_id(self, delivery_id: str) -> Order | None:
        for order in self._store.values():
            if any(d.id == delivery_id for d in order.deliveries):
                return order
        return None

    def save(self, order: Order) -> None:
        self._store[order.id] = order


class FakeUnitOfWork(UnitOfWork):
    """Snapshots every repository on enter and restores it unless committed."""

    def __init__(
        self,
        products: list[Product] | None = None,
        locations: list[StorageLocation] | None = None,
        inventory: list[InventoryItem] | None = None,
    ) -> None:
        self.products = FakeProductRepository(products)
        self.locations = FakeLocationRepository(locations)
        self.inventory = FakeInventoryRepository(inventory)
        self.ledger = FakeLedgerRepository()
        self.purchase_orders = FakePurchaseOrderRepository()
        self.orders = FakeOrderRepository()
        self.commits = 0
        self._snapshot: dict | None = None
        self._committed = False

    def _repos(self) -> dict:
        return {
            "products": self.products,
            "locations": self.locations,
            "inventory": self.inventory,
            "ledger": self.ledger,
            "purchase_orders": self.purchase_orders,
            "orders": self.orders,
        }

    def __enter__(self) -> FakeUnitOfWork:
        self._committed = False
        self._snapshot = copy.deepcopy(
            {name: vars(repo) for name, repo in self._repos().items()}
        )
        return self

    def commit(self) -> None:
        self._committed = True
        self.commits += 1

    def rollback(self) -> None:
        if self._committed or self._snapshot is None:
            return
        for name, repo in self._repos().items():
            vars(repo).clear()
            vars(repo).update(self._snapshot[name])
        self._snapshot = None


# --- Builders -----------------------------------------------------------------

T0 = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


def milled_rice(
    product_id: str = "rice",
    name: str = "Dinorado",
    price: str = "2450.00",
    reorder_point: int = 0,
) -> Product:
    """A product sold by the 50 kg sack."""
    return Product(
        id=product_id,
        name=name,
        price=Money.of(price),
        category="Milled Rice",
        is_milled_rice=True,
        reorder_point=reorder_point,
    )


def rice_bran(product_id: str = "bran", name: str = "Rice Bran", price: str = "18.00") -> Product:
    """A product sold by the kilogram."""
    return Product(id=product_id, name=name, price=Money.of(price), category="By-product")


def palay(product_id: str = "palay", yield_rate: str | None = None) -> Product:
    """Unmilled rice, the input to milling."""
    return Product(
        id=product_id,
        name="Palay",
        price=Money.of("22.00"),
        category="Unmilled Rice",
        milling_yield_rate=Decimal(yield_rate) if yield_rate is not None else None,
    )


def location(location_id: str, code: str | None = None, active: bool = True) -> StorageLocation:
    return StorageLocation(
        id=location_id,
        name=f"Warehouse {location_id}",
        code=code or location_id.upper(),
        is_active=active,
    )


def seed_stock(
    uow: FakeUnitOfWork,
    product_id: str,
    location_id: str,
    quantity: int,
    age_minutes: int = 0,
) -> None:
    """Put stock on hand through the ledger, optionally backdating the row.

    ``age_minutes`` sets the FIFO age: T0 + age_minutes.
    """
    with uow:
        ledger = StockLedger(uow)
        locked = ledger.lock({product_id}, {(product_id, location_id)})
        ledger.post(
            InventoryTransaction(
                product_id=product_id,
                kind=TransactionKind.STOCK_IN,
                quantity=quantity,
                location_id=location_id,
                note="opening stock",
            ),
            locked.product(product_id),
            locked,
        )
        uow.inventory.get(product_id, location_id).created_at = T0 + timedelta(
            minutes=age_minutes
        )
        uow.commit()
