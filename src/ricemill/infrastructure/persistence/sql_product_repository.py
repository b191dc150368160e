"""SQLAlchemy-backed implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ricemill.domain.model.product import Product
from ricemill.domain.model.value_objects import Money
from ricemill.domain.repository.product_repository import ProductRepository
from ricemill.infrastructure.persistence.models import ProductRow


class SqlProductRepository(ProductRepository):
    """Hands out one Product instance per id for the life of the session."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._seen: dict[str, Product] = {}

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        if product_id in self._seen:
            return self._seen[product_id]
        return self._track(self._session.get(ProductRow, product_id))

    def get_for_update(self, product_id: str) -> Product | None:
        row = self._session.scalars(
            select(ProductRow).where(ProductRow.id == product_id).with_for_update()
        ).first()
        if row is None:
            return None
        return self._seen.get(product_id) or self._track(row)

    def get_by_name(self, name: str) -> Product | None:
        row = self._session.scalars(
            select(ProductRow).where(func.lower(ProductRow.name) == name.strip().lower())
        ).first()
        if row is None:
            return None
        return self._seen.get(row.id) or self._track(row)

    def list_all(self) -> list[Product]:
        rows = self._session.scalars(select(ProductRow).order_by(ProductRow.name))
        return [self._seen.get(row.id) or self._track(row) for row in rows]

    def save(self, product: Product) -> None:
        row = self._session.get(ProductRow, product.id)
        if row is None:
            row = ProductRow(id=product.id)
            self._session.add(row)
        row.name = product.name
        row.price = product.price.amount
        row.currency = product.price.currency
        row.category = product.category
        row.is_milled_rice = product.is_milled_rice
        row.milling_yield_rate = product.milling_yield_rate
        row.reorder_point = product.reorder_point
        row.stock_on_hand = product.stock_on_hand
        row.stock_allocated = product.stock_allocated
        row.stock_on_order = product.stock_on_order
        self._session.flush()
        self._seen[product.id] = product

    # --- Mapping --------------------------------------------------------------

    def _track(self, row: ProductRow | None) -> Product | None:
        if row is None:
            return None
        product = self._to_domain(row)
        self._seen[product.id] = product
        return product

    @staticmethod
    def _to_domain(row: ProductRow) -> Product:
        return Product(
            id=row.id,
            name=row.name,
            price=Money(Decimal(row.price), row.currency),
            category=row.category,
            is_milled_rice=row.is_milled_rice,
            milling_yield_rate=(
                Decimal(row.milling_yield_rate) if row.milling_yield_rate is not None else None
            ),
            reorder_point=row.reorder_point,
            stock_on_hand=row.stock_on_hand,
            stock_allocated=row.stock_allocated,
            stock_on_order=row.stock_on_order,
        )
