"""SQLAlchemy-backed implementation of InventoryRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ricemill.domain.model.inventory import InventoryItem
from ricemill.domain.repository.inventory_repository import InventoryRepository
from ricemill.infrastructure.persistence.db import as_utc
from ricemill.infrastructure.persistence.models import InventoryItemRow


class SqlInventoryRepository(InventoryRepository):

    def __init__(self, session: Session) -> None:
        self._session = session
        self._seen: dict[tuple[str, str], InventoryItem] = {}

    def get(self, product_id: str, location_id: str) -> InventoryItem | None:
        key = (product_id, location_id)
        if key in self._seen:
            return self._seen[key]
        return self._track(self._session.get(InventoryItemRow, key))

    def lock(self, keys: list[tuple[str, str]]) -> dict[tuple[str, str], InventoryItem]:
        locked: dict[tuple[str, str], InventoryItem] = {}
        for product_id, location_id in sorted(set(keys)):
            row = self._session.scalars(
                select(InventoryItemRow)
                .where(
                    InventoryItemRow.product_id == product_id,
                    InventoryItemRow.location_id == location_id,
                )
                .with_for_update()
            ).first()
            if row is not None:
                locked[(product_id, location_id)] = (
                    self._seen.get((product_id, location_id)) or self._track(row)
                )
        return locked

    def list_for_product(self, product_id: str) -> list[InventoryItem]:
        rows = self._session.scalars(
            select(InventoryItemRow)
            .where(InventoryItemRow.product_id == product_id)
            .order_by(InventoryItemRow.created_at, InventoryItemRow.location_id)
        )
        return [self._seen.get((r.product_id, r.location_id)) or self._track(r) for r in rows]

    def list_all(self) -> list[InventoryItem]:
        rows = self._session.scalars(
            select(InventoryItemRow).order_by(
                InventoryItemRow.product_id, InventoryItemRow.created_at
            )
        )
        return [self._seen.get((r.product_id, r.location_id)) or self._track(r) for r in rows]

    def save(self, item: InventoryItem) -> None:
        row = self._session.get(InventoryItemRow, item.key)
        if row is None:
            row = InventoryItemRow(
                product_id=item.product_id,
                location_id=item.location_id,
                created_at=item.created_at,
            )
            self._session.add(row)
        row.quantity = item.quantity
        row.updated_at = item.updated_at
        self._session.flush()
        self._seen[item.key] = item

    def _track(self, row: InventoryItemRow | None) -> InventoryItem | None:
        if row is None:
            return None
        item = InventoryItem(
            product_id=row.product_id,
            location_id=row.location_id,
            quantity=row.quantity,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )
        self._seen[item.key] = item
        return item
