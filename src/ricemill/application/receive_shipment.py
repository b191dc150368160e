"""Application service: Receive Shipment use case.

Applies a supplier delivery against a purchase order in one unit of work:
either every line is received or none is.
"""

from __future__ import annotations

import logging

from ricemill.application.dto import ReceiptDTO, ReceiptLineSpec
from ricemill.application.mappers import po_line_to_dto
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.receiving_service import (
    PurchaseOrderReceivingService,
    ReceiptLine,
)

logger = logging.getLogger(__name__)


class ReceiveShipmentHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        purchase_order_id: str,
        lines: list[ReceiptLineSpec],
        received_by: str = "system",
        note: str = "",
    ) -> ReceiptDTO:
        with self._uow:
            svc = PurchaseOrderReceivingService(self._uow)
            po = svc.load(purchase_order_id)
            updated = svc.receive(
                po,
                [ReceiptLine(l.po_item_id, l.location_id, l.quantity) for l in lines],
                received_by=received_by,
                note=note,
            )
            result = ReceiptDTO(
                updated_lines=[po_line_to_dto(self._uow.products, i) for i in updated],
                new_po_status=po.status.value,
            )
            self._uow.commit()
        return result
