"""Application service: Show Inventory use case (query).

This is the one read API for stock: per-location balances plus each
product's cached totals and low-stock flag.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ricemill.domain.repository.unit_of_work import UnitOfWork


@dataclass(frozen=True)
class LocationStockDTO:
    location_id: str
    location_code: str
    quantity: int


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: str
    product_name: str
    unit: str
    on_hand: int
    allocated: int
    on_order: int
    available: int
    low_stock: bool
    locations: list[LocationStockDTO] = field(default_factory=list)


class ShowInventoryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, product_id: str | None = None) -> list[InventoryLineDTO]:
        with self._uow:
            locations = {loc.id: loc for loc in self._uow.locations.list_all()}
            if product_id is None:
                products = self._uow.products.list_all()
            else:
                product = self._uow.products.get_by_id(product_id)
                products = [product] if product is not None else []

            lines = []
            for product in sorted(products, key=lambda p: p.name):
                rows = [
                    LocationStockDTO(
                        location_id=item.location_id,
                        location_code=(
                            locations[item.location_id].code
                            if item.location_id in locations
                            else item.location_id
                        ),
                        quantity=item.quantity,
                    )
                    for item in self._uow.inventory.list_for_product(product.id)
                ]
                lines.append(
                    InventoryLineDTO(
                        product_id=product.id,
                        product_name=product.name,
                        unit=product.order_unit,
                        on_hand=product.stock_on_hand,
                        allocated=product.stock_allocated,
                        on_order=product.stock_on_order,
                        available=product.available_to_promise,
                        low_stock=product.is_low_stock,
                        locations=rows,
                    )
                )
            return lines
