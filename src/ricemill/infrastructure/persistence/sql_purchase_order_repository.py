"""SQLAlchemy-backed implementation of PurchaseOrderRepository."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ricemill.domain.model.purchase_order import (
    LineStatus,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from ricemill.domain.model.value_objects import Money
from ricemill.domain.repository.purchase_order_repository import (
    PurchaseOrderRepository,
)
from ricemill.infrastructure.persistence.db import as_utc
from ricemill.infrastructure.persistence.models import (
    PurchaseOrderItemRow,
    PurchaseOrderRow,
)


class SqlPurchaseOrderRepository(PurchaseOrderRepository):

    def __init__(self, session: Session) -> None:
        self._session = session
        self._seen: dict[str, PurchaseOrder] = {}

    def get_by_id(self, purchase_order_id: str) -> PurchaseOrder | None:
        if purchase_order_id in self._seen:
            return self._seen[purchase_order_id]
        row = self._session.scalars(
            select(PurchaseOrderRow)
            .where(PurchaseOrderRow.id == purchase_order_id)
            .with_for_update()
        ).first()
        if row is None:
            return None
        po = self._to_domain(row)
        self._seen[po.id] = po
        return po

    def save(self, po: PurchaseOrder) -> None:
        row = self._session.get(PurchaseOrderRow, po.id)
        if row is None:
            row = PurchaseOrderRow(
                id=po.id,
                supplier_id=po.supplier_id,
                status=po.status.value,
                order_date=po.order_date,
            )
            self._session.add(row)
            self._session.flush()
        row.supplier_id = po.supplier_id
        row.status = po.status.value
        row.order_date = po.order_date
        row.note = po.note

        for position, item in enumerate(po.items):
            item_row = self._session.get(PurchaseOrderItemRow, item.id)
            if item_row is None:
                item_row = PurchaseOrderItemRow(id=item.id, purchase_order_id=po.id)
                self._session.add(item_row)
            item_row.position = position
            item_row.product_id = item.product_id
            item_row.ordered_qty = item.ordered_qty
            item_row.unit_price = item.unit_price.amount
            item_row.received_qty = item.received_qty
            item_row.returned_qty = item.returned_qty
            item_row.line_status = item.line_status.value
        self._session.flush()
        self._seen[po.id] = po

    def _to_domain(self, row: PurchaseOrderRow) -> PurchaseOrder:
        item_rows = self._session.scalars(
            select(PurchaseOrderItemRow)
            .where(PurchaseOrderItemRow.purchase_order_id == row.id)
            .order_by(PurchaseOrderItemRow.position)
        )
        items = [
            PurchaseOrderItem(
                id=i.id,
                product_id=i.product_id,
                ordered_qty=i.ordered_qty,
                unit_price=Money(Decimal(i.unit_price)),
                received_qty=i.received_qty,
                returned_qty=i.returned_qty,
                line_status=LineStatus(i.line_status),
            )
            for i in item_rows
        ]
        return PurchaseOrder(
            id=row.id,
            supplier_id=row.supplier_id,
            items=items,
            status=PurchaseOrderStatus(row.status),
            order_date=as_utc(row.order_date),
            note=row.note,
        )
