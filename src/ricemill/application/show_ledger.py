"""Application service: Show Ledger use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from ricemill.domain.repository.unit_of_work import UnitOfWork


@dataclass(frozen=True)
class LedgerEntryDTO:
    id: int
    kind: str
    product_id: str
    location_id: str | None
    quantity: int
    note: str
    created_by: str
    created_at: str


class ShowLedgerHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        product_id: str | None = None,
        order_id: str | None = None,
    ) -> list[LedgerEntryDTO]:
        """List ledger entries in append order, optionally filtered."""
        with self._uow:
            if order_id is not None:
                entries = self._uow.ledger.list_for_order(order_id)
                if product_id is not None:
                    entries = [e for e in entries if e.product_id == product_id]
            elif product_id is not None:
                entries = self._uow.ledger.list_for_product(product_id)
            else:
                entries = self._uow.ledger.list_all()
            return [
                LedgerEntryDTO(
                    id=e.id,
                    kind=e.kind.value,
                    product_id=e.product_id,
                    location_id=e.location_id,
                    quantity=e.quantity,
                    note=e.note,
                    created_by=e.created_by,
                    created_at=e.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                )
                for e in entries
            ]
