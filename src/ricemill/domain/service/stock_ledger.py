"""Domain service: Stock Ledger.

The single path through which stock quantities change.  ``post()``
appends an immutable ledger entry and applies it to the per-location
balance and to the Product's cached stock fields inside the caller's unit
of work, so the materialized view can never drift from the ledger.

Callers follow the two-phase approach: ``lock()`` the rows they will
touch and validate everything, then ``post()`` the entries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ricemill.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStock,
    LocationInactiveOrMissing,
)
from ricemill.domain.model.inventory import InventoryItem
from ricemill.domain.model.ledger import InventoryTransaction, replay
from ricemill.domain.model.location import StorageLocation
from ricemill.domain.model.product import Product
from ricemill.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass
class LockedRows:
    products: dict[str, Product]
    items: dict[tuple[str, str], InventoryItem]

    def product(self, product_id: str) -> Product:
        return self.products[product_id]

    def quantity_at(self, product_id: str, location_id: str) -> int:
        item = self.items.get((product_id, location_id))
        return item.quantity if item is not None else 0


@dataclass
class Reconciliation:
    """Differences between the ledger and the materialized balances."""

    product_id: str
    ledger_total: int
    cached_on_hand: int
    location_drift: dict[str, tuple[int, int]] = field(default_factory=dict)

    @property
    def is_consistent(self) -> bool:
        return not self.location_drift and self.ledger_total == self.cached_on_hand


class StockLedger:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    # --- Reads and locks ------------------------------------------------------

    def require_product(self, product_id: str) -> Product:
        product = self._uow.products.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product '{product_id}' not found")
        return product

    def require_location(
        self, location_id: str, *, accepting_stock: bool = True
    ) -> StorageLocation:
        """Return the location, or raise LocationInactiveOrMissing.

        Stock may still be taken out of an inactive location, so debits
        pass ``accepting_stock=False``.
        """
        location = self._uow.locations.get_by_id(location_id) if location_id else None
        if location is None:
            raise LocationInactiveOrMissing(f"Location '{location_id}' does not exist")
        if accepting_stock and not location.is_active:
            raise LocationInactiveOrMissing(
                f"Location '{location.name}' is inactive and cannot receive stock"
            )
        return location

    def lock(
        self,
        product_ids: set[str],
        keys: set[tuple[str, str]] | None = None,
    ) -> LockedRows:
        """Lock product rows, then inventory rows, both in sorted order."""
        products: dict[str, Product] = {}
        for product_id in sorted(product_ids):
            product = self._uow.products.get_for_update(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product '{product_id}' not found")
            products[product_id] = product
        items = self._uow.inventory.lock(sorted(keys or ()))
        return LockedRows(products=products, items=items)

    def available(self, product_id: str) -> int:
        """Total stock units of a product across all locations."""
        return sum(i.quantity for i in self._uow.inventory.list_for_product(product_id))

    # --- Posting --------------------------------------------------------------

    def post(
        self,
        entry: InventoryTransaction,
        product: Product,
        locked: LockedRows | None = None,
    ) -> InventoryTransaction:
        """Validate, apply and append one ledger entry.

        Raises InvalidTransactionKind / InvalidQuantity for malformed
        entries and InsufficientStock when a debit exceeds the balance.
        """
        entry.validate()

        if entry.kind.affects_on_hand:
            key = (entry.product_id, entry.location_id)
            item = locked.items.get(key) if locked is not None else None
            if item is None:
                item = self._uow.inventory.get(*key)
            if item is None:
                if entry.quantity < 0:
                    raise InsufficientStock(
                        product.name,
                        needed=-entry.quantity,
                        available=0,
                        location_id=entry.location_id,
                    )
                item = InventoryItem(product_id=entry.product_id, location_id=entry.location_id)
                if locked is not None:
                    locked.items[key] = item
            if entry.quantity > 0:
                item.credit(entry.quantity)
            else:
                item.debit(-entry.quantity, product.name)
            self._uow.inventory.save(item)
            product.apply_on_hand_delta(entry.quantity)
        else:
            product.apply_on_order_delta(entry.quantity)

        self._uow.products.save(product)
        stored = self._uow.ledger.append(entry)
        logger.debug(
            "ledger #%s %s %+d product=%s location=%s",
            stored.id, entry.kind.value, entry.quantity,
            entry.product_id, entry.location_id,
        )
        return stored

    # --- Audit ----------------------------------------------------------------

    def reconcile(self, product_id: str) -> Reconciliation:
        """Compare a product's ledger replay against its materialized rows."""
        product = self.require_product(product_id)
        replayed = {
            location_id: qty
            for (_, location_id), qty in replay(
                self._uow.ledger.list_for_product(product_id)
            ).items()
        }
        materialized = {
            item.location_id: item.quantity
            for item in self._uow.inventory.list_for_product(product_id)
        }
        drift: dict[str, tuple[int, int]] = {}
        for location_id in sorted(set(replayed) | set(materialized)):
            expected = replayed.get(location_id, 0)
            actual = materialized.get(location_id, 0)
            if expected != actual:
                drift[location_id] = (expected, actual)

        report = Reconciliation(
            product_id=product_id,
            ledger_total=sum(replayed.values()),
            cached_on_hand=product.stock_on_hand,
            location_drift=drift,
        )
        if not report.is_consistent:
            logger.warning(
                "ledger drift for %s: ledger=%d cached=%d locations=%s",
                product.name, report.ledger_total, report.cached_on_hand, drift,
            )
        return report

    def rebuild(self, product_id: str) -> Reconciliation:
        """Overwrite a product's materialized balances with the ledger replay."""
        report = self.reconcile(product_id)
        if report.is_consistent:
            return report

        locked = self.lock(
            {product_id},
            {(product_id, location_id) for location_id in report.location_drift},
        )
        product = locked.product(product_id)
        for location_id, (expected, _) in report.location_drift.items():
            item = locked.items.get((product_id, location_id))
            if item is None:
                item = InventoryItem(product_id=product_id, location_id=location_id)
            item.quantity = expected
            self._uow.inventory.save(item)
        product.stock_on_hand = report.ledger_total
        self._uow.products.save(product)
        logger.info("rebuilt balances for %s from the ledger", product.name)
        return self.reconcile(product_id)
