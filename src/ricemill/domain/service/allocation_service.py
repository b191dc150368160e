"""Domain service: Order Allocation.

Allocates stock to customer orders.  Stock is depleted oldest-first: the
FIFO age of a location's stock is the moment its InventoryItem row was
first populated, so the location helper prefers the oldest row that can
cover the request and the draining helper walks rows from oldest to
newest.

Order quantities are in order units (sacks for milled rice); everything
that touches inventory is converted to stock units (kg) first.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from ricemill.domain.exceptions import InsufficientStock, ValidationError
from ricemill.domain.model.inventory import InventoryItem
from ricemill.domain.model.ledger import InventoryTransaction, TransactionKind
from ricemill.domain.model.order import Order
from ricemill.domain.model.product import Product
from ricemill.domain.model.value_objects import require_positive
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.stock_ledger import LockedRows, StockLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineAllocation:
    """Take *quantity* order units of an order item from one location."""

    order_item_id: str
    product_id: str
    quantity: int
    location_id: str


@dataclass(frozen=True)
class AllocationResult:
    order_item_id: str
    product_id: str
    location_id: str
    quantity: int
    stock_quantity: int
    quantity_fulfilled: int
    quantity_pending: int


class OrderAllocationService:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow
        self._ledger = StockLedger(uow)

    # --- Location selection ---------------------------------------------------

    def select_location(self, product_id: str, stock_quantity: int) -> InventoryItem | None:
        """Oldest location holding at least *stock_quantity*, or None."""
        for item in self._uow.inventory.list_for_product(product_id):
            if item.quantity >= stock_quantity:
                return item
        return None

    def plan(self, order: Order) -> list[LineAllocation]:
        """Propose one allocation per pending order item.

        Uses the oldest location that covers the whole pending quantity.
        When none does, takes the whole order units available at the
        oldest stocked location and leaves the rest pending.
        """
        plan: list[LineAllocation] = []
        for item in order.items:
            if item.quantity_pending <= 0:
                continue
            product = self._ledger.require_product(item.product_id)
            needed = product.to_stock_units(item.quantity_pending)
            chosen = self.select_location(product.id, needed)
            quantity = item.quantity_pending
            if chosen is None:
                stocked = [
                    i for i in self._uow.inventory.list_for_product(product.id)
                    if product.to_order_units(i.quantity) > 0
                ]
                if not stocked:
                    continue
                chosen = stocked[0]
                quantity = product.to_order_units(chosen.quantity)
            plan.append(
                LineAllocation(
                    order_item_id=item.id,
                    product_id=product.id,
                    quantity=quantity,
                    location_id=chosen.location_id,
                )
            )
        return plan

    # --- Allocation -----------------------------------------------------------

    def allocate(
        self,
        order: Order,
        lines: list[LineAllocation],
        allocated_by: str = "system",
    ) -> list[AllocationResult]:
        """Debit the chosen locations and book the quantities on the order.

        All lines are validated under lock before anything is debited; a
        short line raises InsufficientStock for the whole call.
        """
        order.ensure_open()
        if not lines:
            raise ValidationError("An allocation must contain at least one line")

        # Phase 1a: validate lines against the order
        requested: dict[str, int] = defaultdict(int)
        for line in lines:
            require_positive(line.quantity, "Allocation quantity")
            item = order.find_item(line.order_item_id)
            if item.product_id != line.product_id:
                raise ValidationError(
                    f"Order item {item.id} is for product '{item.product_id}', "
                    f"not '{line.product_id}'"
                )
            self._ledger.require_location(line.location_id, accepting_stock=False)
            requested[item.id] += line.quantity
            if requested[item.id] > item.quantity_pending:
                raise ValidationError(
                    f"Cannot allocate {requested[item.id]} on order item {item.id} "
                    f"(only {item.quantity_pending} pending)"
                )

        # Phase 1b: lock the rows and check stock at every location
        locked = self._ledger.lock(
            {line.product_id for line in lines},
            {(line.product_id, line.location_id) for line in lines},
        )
        self._check_stock(lines, locked)

        # Phase 2: debit, post and book on the order
        results: list[AllocationResult] = []
        for line in lines:
            product = locked.product(line.product_id)
            stock_qty = product.to_stock_units(line.quantity)
            self._ledger.post(
                InventoryTransaction(
                    product_id=product.id,
                    kind=TransactionKind.STOCK_OUT,
                    quantity=-stock_qty,
                    location_id=line.location_id,
                    unit_price=order.find_item(line.order_item_id).unit_price,
                    order_id=order.id,
                    note=_allocation_note(order, product, line.quantity),
                    created_by=allocated_by,
                ),
                product,
                locked,
            )
            product.release(stock_qty)
            self._uow.products.save(product)
            order.record_allocation(line.order_item_id, line.quantity)
            item = order.find_item(line.order_item_id)
            results.append(
                AllocationResult(
                    order_item_id=item.id,
                    product_id=product.id,
                    location_id=line.location_id,
                    quantity=line.quantity,
                    stock_quantity=stock_qty,
                    quantity_fulfilled=item.quantity_fulfilled,
                    quantity_pending=item.quantity_pending,
                )
            )

        order.refresh_status()
        logger.info(
            "allocated %d line(s) to order %s, pending=%s",
            len(results), order.id, order.remaining_pending,
        )
        return results

    def fifo_debit(
        self,
        order: Order,
        product: Product,
        order_quantity: int,
        locked: LockedRows,
        allocated_by: str = "system",
        note: str = "",
    ) -> list[tuple[str, int]]:
        """Drain *order_quantity* across locations, oldest stock first.

        The caller must have locked the product's rows and checked the
        total with ``self.available``.  Returns (location_id, kg) pairs.
        """
        remaining = product.to_stock_units(order_quantity)
        taken: list[tuple[str, int]] = []
        for item in self._uow.inventory.list_for_product(product.id):
            if remaining <= 0:
                break
            row = locked.items.get(item.key, item)
            take = min(row.quantity, remaining)
            if take <= 0:
                continue
            self._ledger.post(
                InventoryTransaction(
                    product_id=product.id,
                    kind=TransactionKind.STOCK_OUT,
                    quantity=-take,
                    location_id=row.location_id,
                    order_id=order.id,
                    note=note or _allocation_note(order, product, order_quantity),
                    created_by=allocated_by,
                ),
                product,
                locked,
            )
            taken.append((row.location_id, take))
            remaining -= take
        if remaining > 0:
            raise InsufficientStock(
                product.name,
                needed=product.to_stock_units(order_quantity),
                available=product.to_stock_units(order_quantity) - remaining,
            )
        product.release(product.to_stock_units(order_quantity))
        self._uow.products.save(product)
        return taken

    # --- Cancellation ---------------------------------------------------------

    def cancel(self, order: Order, cancelled_by: str = "system") -> dict[tuple[str, str], int]:
        """Cancel *order* and put its unshipped stock back where it came from.

        Only pending deliveries can be open on a cancellable order, so every
        debit the ledger holds for the order is still in the warehouse.
        Each (product, location) gets one RETURN_IN entry; the reservation
        on the never-allocated remainder is released.  Returns the kg
        credited per (product_id, location_id).
        """
        reserved = {item.id: item.quantity_pending for item in order.items}
        taken: dict[tuple[str, str], int] = defaultdict(int)
        for entry in self._uow.ledger.list_for_order(order.id):
            if entry.kind.affects_on_hand:
                taken[(entry.product_id, entry.location_id)] -= entry.quantity
        taken = {key: qty for key, qty in taken.items() if qty > 0}

        locked = self._ledger.lock(
            {item.product_id for item in order.items} | {pid for pid, _ in taken},
            set(taken),
        )
        order.cancel()

        for (product_id, location_id), qty in sorted(taken.items()):
            self._ledger.post(
                InventoryTransaction(
                    product_id=product_id,
                    kind=TransactionKind.RETURN_IN,
                    quantity=qty,
                    location_id=location_id,
                    order_id=order.id,
                    note=f"Cancelled order {order.id}",
                    created_by=cancelled_by,
                ),
                locked.product(product_id),
                locked,
            )
        for item in order.items:
            if reserved[item.id] > 0:
                product = locked.product(item.product_id)
                product.release(product.to_stock_units(reserved[item.id]))
                self._uow.products.save(product)

        logger.info(
            "cancelled order %s, returned %s", order.id,
            {f"{pid}@{loc}": qty for (pid, loc), qty in taken.items()},
        )
        return taken

    def available(self, product_id: str) -> int:
        return self._ledger.available(product_id)

    def lock_all_locations(self, product_ids: set[str]) -> LockedRows:
        """Lock every stocked row of the given products."""
        keys = {
            item.key
            for product_id in product_ids
            for item in self._uow.inventory.list_for_product(product_id)
        }
        return self._ledger.lock(product_ids, keys)

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _check_stock(lines: list[LineAllocation], locked: LockedRows) -> None:
        needed: dict[tuple[str, str], int] = defaultdict(int)
        for line in lines:
            product = locked.product(line.product_id)
            needed[(line.product_id, line.location_id)] += product.to_stock_units(line.quantity)
        for (product_id, location_id), qty in sorted(needed.items()):
            available = locked.quantity_at(product_id, location_id)
            if qty > available:
                raise InsufficientStock(
                    locked.product(product_id).name,
                    needed=qty,
                    available=available,
                    location_id=location_id,
                )


def _allocation_note(order: Order, product: Product, order_quantity: int) -> str:
    note = f"Fulfillment for order {order.id}"
    if product.is_milled_rice:
        note += f" ({order_quantity} sacks)"
    return note
