"""Domain service: Purchase-Order Receiving.

Reconciles supplier shipments against ordered quantities.  Each receipt
credits a storage location through the stock ledger and advances the
line's receiving status; the purchase order's status is derived from its
lines once the whole batch has been applied.

The two-phase approach (validate-then-mutate) means a batch with a single
bad line is rejected before anything is written.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from ricemill.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStock,
    OverReceipt,
    ValidationError,
)
from ricemill.domain.model.ledger import InventoryTransaction, TransactionKind
from ricemill.domain.model.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from ricemill.domain.model.value_objects import require_positive
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiptLine:
    po_item_id: str
    location_id: str
    quantity: int


@dataclass(frozen=True)
class ReturnLine:
    po_item_id: str
    location_id: str
    quantity: int


class PurchaseOrderReceivingService:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow
        self._ledger = StockLedger(uow)

    def load(self, purchase_order_id: str) -> PurchaseOrder:
        po = self._uow.purchase_orders.get_by_id(purchase_order_id)
        if po is None:
            raise EntityNotFoundError(f"Purchase order '{purchase_order_id}' not found")
        return po

    # --- Receiving ------------------------------------------------------------

    def receive(
        self,
        po: PurchaseOrder,
        lines: list[ReceiptLine],
        received_by: str = "system",
        note: str = "",
    ) -> list[PurchaseOrderItem]:
        """Apply a supplier shipment to the purchase order and inventory.

        Raises InvalidQuantity, OverReceipt or LocationInactiveOrMissing
        before any mutation if a line is invalid.
        """
        po.ensure_receivable()
        if not lines:
            raise ValidationError("A receipt must contain at least one line")

        # Phase 1: validate every line against what is still outstanding
        totals: dict[str, int] = defaultdict(int)
        for line in lines:
            require_positive(line.quantity, "Receive quantity")
            item = po.find_item(line.po_item_id)
            self._ledger.require_location(line.location_id)
            totals[item.id] += line.quantity
            if totals[item.id] > item.outstanding_qty:
                raise OverReceipt(item.id, totals[item.id], item.outstanding_qty)

        # Phase 2: lock, mutate and post
        was_placed = po.status != PurchaseOrderStatus.PENDING
        items = {line.po_item_id: po.find_item(line.po_item_id) for line in lines}
        locked = self._ledger.lock(
            {item.product_id for item in items.values()},
            {(items[line.po_item_id].product_id, line.location_id) for line in lines},
        )

        for line in lines:
            item = items[line.po_item_id]
            product = locked.product(item.product_id)
            item.receive(line.quantity)
            self._ledger.post(
                InventoryTransaction(
                    product_id=item.product_id,
                    kind=TransactionKind.STOCK_IN,
                    quantity=line.quantity,
                    location_id=line.location_id,
                    unit_price=item.unit_price,
                    purchase_order_id=po.id,
                    note=note or f"Received from PO {po.id}",
                    created_by=received_by,
                ),
                product,
                locked,
            )
            if was_placed:
                self._ledger.post(
                    InventoryTransaction(
                        product_id=item.product_id,
                        kind=TransactionKind.PO_ON_ORDER,
                        quantity=-line.quantity,
                        purchase_order_id=po.id,
                        note=f"Received against PO {po.id}",
                        created_by=received_by,
                    ),
                    product,
                )

        status = po.refresh_status()
        self._uow.purchase_orders.save(po)
        logger.info(
            "received %d line(s) on PO %s, status=%s", len(lines), po.id, status.value
        )
        return list(items.values())

    # --- Order lifecycle ------------------------------------------------------

    def place(self, po: PurchaseOrder, placed_by: str = "system") -> None:
        """Send the purchase order to the supplier and book on-order stock."""
        po.place()
        locked = self._ledger.lock({item.product_id for item in po.items})
        for item in po.items:
            self._ledger.post(
                InventoryTransaction(
                    product_id=item.product_id,
                    kind=TransactionKind.PO_ON_ORDER,
                    quantity=item.ordered_qty,
                    unit_price=item.unit_price,
                    purchase_order_id=po.id,
                    note=f"Ordered on PO {po.id}",
                    created_by=placed_by,
                ),
                locked.product(item.product_id),
            )
        self._uow.purchase_orders.save(po)
        logger.info("placed PO %s with %d line(s)", po.id, len(po.items))

    def cancel(self, po: PurchaseOrder, cancelled_by: str = "system") -> None:
        was_placed = po.status != PurchaseOrderStatus.PENDING
        po.cancel()
        if was_placed:
            locked = self._ledger.lock({item.product_id for item in po.items})
            for item in po.items:
                self._ledger.post(
                    InventoryTransaction(
                        product_id=item.product_id,
                        kind=TransactionKind.PO_ON_ORDER,
                        quantity=-item.outstanding_qty,
                        purchase_order_id=po.id,
                        note=f"Cancelled PO {po.id}",
                        created_by=cancelled_by,
                    ),
                    locked.product(item.product_id),
                )
        self._uow.purchase_orders.save(po)
        logger.info("cancelled PO %s", po.id)

    def mark_backordered(self, po: PurchaseOrder, po_item_ids: list[str]) -> None:
        """Flag lines the supplier confirmed it will ship later."""
        if not po.is_open:
            raise ValidationError(
                f"Cannot backorder lines on purchase order in {po.status.value} status"
            )
        items = [po.find_item(item_id) for item_id in po_item_ids]
        for item in items:
            item.mark_backordered()
        self._uow.purchase_orders.save(po)

    # --- Supplier returns -----------------------------------------------------

    def return_to_supplier(
        self,
        po: PurchaseOrder,
        lines: list[ReturnLine],
        reason: str,
        returned_by: str = "system",
    ) -> None:
        """Send received stock back to the supplier.

        Bounded per line by ``received_qty - returned_qty`` and by the stock
        held at the chosen location.
        """
        if not reason or not reason.strip():
            raise ValidationError("A reason is required for supplier returns")
        if not lines:
            raise ValidationError("A return must contain at least one line")

        totals: dict[str, int] = defaultdict(int)
        for line in lines:
            require_positive(line.quantity, "Return quantity")
            item = po.find_item(line.po_item_id)
            self._ledger.require_location(line.location_id, accepting_stock=False)
            totals[item.id] += line.quantity
            if totals[item.id] > item.returnable_qty:
                raise ValidationError(
                    f"Cannot return {totals[item.id]} on PO line {item.id} "
                    f"(only {item.returnable_qty} returnable)"
                )

        items = {line.po_item_id: po.find_item(line.po_item_id) for line in lines}
        locked = self._ledger.lock(
            {item.product_id for item in items.values()},
            {(items[line.po_item_id].product_id, line.location_id) for line in lines},
        )
        needed: dict[tuple[str, str], int] = defaultdict(int)
        for line in lines:
            needed[(items[line.po_item_id].product_id, line.location_id)] += line.quantity
        for (product_id, location_id), qty in needed.items():
            available = locked.quantity_at(product_id, location_id)
            if qty > available:
                raise InsufficientStock(
                    locked.product(product_id).name,
                    needed=qty,
                    available=available,
                    location_id=location_id,
                )

        for line in lines:
            item = items[line.po_item_id]
            self._ledger.post(
                InventoryTransaction(
                    product_id=item.product_id,
                    kind=TransactionKind.RETURN_OUT,
                    quantity=-line.quantity,
                    location_id=line.location_id,
                    unit_price=item.unit_price,
                    purchase_order_id=po.id,
                    note=reason.strip(),
                    created_by=returned_by,
                ),
                locked.product(item.product_id),
                locked,
            )
            item.record_return(line.quantity)

        self._uow.purchase_orders.save(po)
        logger.info("returned %d line(s) on PO %s to supplier", len(lines), po.id)
