"""Application services: purchase-order lifecycle use cases.

Placing an order books the on-order quantity, cancelling it takes the
quantity back, and supplier returns send received stock back out.
"""

from __future__ import annotations

from ricemill.application.dto import PurchaseOrderDTO, ReceiptLineSpec
from ricemill.application.mappers import purchase_order_to_dto
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.receiving_service import (
    PurchaseOrderReceivingService,
    ReturnLine,
)


class PlacePurchaseOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, purchase_order_id: str, placed_by: str = "system") -> PurchaseOrderDTO:
        with self._uow:
            svc = PurchaseOrderReceivingService(self._uow)
            po = svc.load(purchase_order_id)
            svc.place(po, placed_by=placed_by)
            dto = purchase_order_to_dto(self._uow.products, po)
            self._uow.commit()
        return dto


class CancelPurchaseOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, purchase_order_id: str, cancelled_by: str = "system") -> PurchaseOrderDTO:
        with self._uow:
            svc = PurchaseOrderReceivingService(self._uow)
            po = svc.load(purchase_order_id)
            svc.cancel(po, cancelled_by=cancelled_by)
            dto = purchase_order_to_dto(self._uow.products, po)
            self._uow.commit()
        return dto


class BackorderPurchaseLinesHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, purchase_order_id: str, po_item_ids: list[str]) -> PurchaseOrderDTO:
        with self._uow:
            svc = PurchaseOrderReceivingService(self._uow)
            po = svc.load(purchase_order_id)
            svc.mark_backordered(po, po_item_ids)
            dto = purchase_order_to_dto(self._uow.products, po)
            self._uow.commit()
        return dto


class ReturnToSupplierHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        purchase_order_id: str,
        lines: list[ReceiptLineSpec],
        reason: str,
        returned_by: str = "system",
    ) -> PurchaseOrderDTO:
        with self._uow:
            svc = PurchaseOrderReceivingService(self._uow)
            po = svc.load(purchase_order_id)
            svc.return_to_supplier(
                po,
                [ReturnLine(l.po_item_id, l.location_id, l.quantity) for l in lines],
                reason=reason,
                returned_by=returned_by,
            )
            dto = purchase_order_to_dto(self._uow.products, po)
            self._uow.commit()
        return dto


class ShowPurchaseOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, purchase_order_id: str) -> PurchaseOrderDTO:
        with self._uow:
            po = PurchaseOrderReceivingService(self._uow).load(purchase_order_id)
            return purchase_order_to_dto(self._uow.products, po)
