"""SQLAlchemy implementation of the UnitOfWork: one session per ``with`` block."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session, sessionmaker

from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.infrastructure.persistence.sql_inventory_repository import (
    SqlInventoryRepository,
)
from ricemill.infrastructure.persistence.sql_ledger_repository import (
    SqlLedgerRepository,
)
from ricemill.infrastructure.persistence.sql_location_repository import (
    SqlLocationRepository,
)
from ricemill.infrastructure.persistence.sql_order_repository import (
    SqlOrderRepository,
)
from ricemill.infrastructure.persistence.sql_product_repository import (
    SqlProductRepository,
)
from ricemill.infrastructure.persistence.sql_purchase_order_repository import (
    SqlPurchaseOrderRepository,
)

logger = logging.getLogger(__name__)


class SqlUnitOfWork(UnitOfWork):

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self) -> SqlUnitOfWork:
        self._session = self._session_factory()
        self.products = SqlProductRepository(self._session)
        self.locations = SqlLocationRepository(self._session)
        self.inventory = SqlInventoryRepository(self._session)
        self.ledger = SqlLedgerRepository(self._session)
        self.purchase_orders = SqlPurchaseOrderRepository(self._session)
        self.orders = SqlOrderRepository(self._session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            logger.debug("rolling back unit of work after %s", exc_type.__name__)
        try:
            self.rollback()
        finally:
            self._session.close()
            self._session = None

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()
