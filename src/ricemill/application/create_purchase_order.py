"""Application service: Create Purchase Order use case (procurement seam)."""

from __future__ import annotations

from ricemill.application.dto import PurchaseItemSpec, PurchaseOrderDTO
from ricemill.application.mappers import purchase_order_to_dto
from ricemill.domain.exceptions import EntityNotFoundError
from ricemill.domain.model.purchase_order import PurchaseOrder, PurchaseOrderItem
from ricemill.domain.model.value_objects import Money
from ricemill.domain.repository.unit_of_work import UnitOfWork


class CreatePurchaseOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        supplier_id: str,
        item_specs: list[PurchaseItemSpec],
        note: str = "",
    ) -> PurchaseOrderDTO:
        with self._uow:
            items: list[PurchaseOrderItem] = []
            for spec in item_specs:
                product = self._uow.products.get_by_name(spec.product_name)
                if product is None:
                    raise EntityNotFoundError(f"Product not found: '{spec.product_name}'")
                items.append(
                    PurchaseOrderItem(
                        product_id=product.id,
                        ordered_qty=spec.quantity,
                        unit_price=Money.of(spec.unit_price),
                    )
                )
            po = PurchaseOrder.create(supplier_id=supplier_id, items=items, note=note)
            self._uow.purchase_orders.save(po)
            dto = purchase_order_to_dto(self._uow.products, po)
            self._uow.commit()
        return dto
