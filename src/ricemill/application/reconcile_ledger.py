"""Application service: Reconcile Ledger use case.

Replays the ledger and compares it with the materialized balances.  With
``rebuild=True`` the balances are overwritten from the replay.
"""

from __future__ import annotations

import logging

from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.stock_ledger import Reconciliation, StockLedger

logger = logging.getLogger(__name__)


class ReconcileLedgerHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        product_id: str | None = None,
        rebuild: bool = False,
    ) -> list[Reconciliation]:
        with self._uow:
            ledger = StockLedger(self._uow)
            if product_id is not None:
                product_ids = [ledger.require_product(product_id).id]
            else:
                product_ids = sorted(p.id for p in self._uow.products.list_all())

            check = ledger.rebuild if rebuild else ledger.reconcile
            reports = [check(pid) for pid in product_ids]
            if rebuild:
                self._uow.commit()

        drifted = [r.product_id for r in reports if not r.is_consistent]
        if drifted:
            logger.warning("ledger drift remains for %s", ", ".join(drifted))
        return reports
