"""SQLAlchemy-backed implementation of LedgerRepository (insert-only)."""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ricemill.domain.model.ledger import InventoryTransaction, TransactionKind
from ricemill.domain.model.value_objects import Money
from ricemill.domain.repository.ledger_repository import LedgerRepository
from ricemill.infrastructure.persistence.db import as_utc
from ricemill.infrastructure.persistence.models import LedgerEntryRow


class SqlLedgerRepository(LedgerRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def append(self, entry: InventoryTransaction) -> InventoryTransaction:
        row = LedgerEntryRow(
            product_id=entry.product_id,
            kind=entry.kind.value,
            quantity=entry.quantity,
            location_id=entry.location_id,
            unit_price=entry.unit_price.amount if entry.unit_price is not None else None,
            purchase_order_id=entry.purchase_order_id,
            order_id=entry.order_id,
            note=entry.note,
            created_by=entry.created_by,
            created_at=entry.created_at,
        )
        self._session.add(row)
        self._session.flush()
        return replace(entry, id=row.id)

    def list_for_product(self, product_id: str) -> list[InventoryTransaction]:
        return self._query(LedgerEntryRow.product_id == product_id)

    def list_for_order(self, order_id: str) -> list[InventoryTransaction]:
        return self._query(LedgerEntryRow.order_id == order_id)

    def list_all(self) -> list[InventoryTransaction]:
        return self._query()

    def _query(self, *criteria) -> list[InventoryTransaction]:
        stmt = select(LedgerEntryRow).where(*criteria).order_by(LedgerEntryRow.id)
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    @staticmethod
    def _to_domain(row: LedgerEntryRow) -> InventoryTransaction:
        return InventoryTransaction(
            product_id=row.product_id,
            kind=TransactionKind(row.kind),
            quantity=row.quantity,
            location_id=row.location_id,
            unit_price=Money(Decimal(row.unit_price)) if row.unit_price is not None else None,
            purchase_order_id=row.purchase_order_id,
            order_id=row.order_id,
            note=row.note,
            created_by=row.created_by,
            created_at=as_utc(row.created_at),
            id=row.id,
        )
