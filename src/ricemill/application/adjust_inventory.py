"""Application service: Adjust Inventory use case."""

from __future__ import annotations

from ricemill.application.dto import AdjustmentDTO
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.adjustment_service import (
    AdjustmentType,
    InventoryAdjustmentService,
)


class AdjustInventoryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        product_id: str,
        location_id: str,
        adjustment_type: str,
        quantity: int,
        reason: str,
        created_by: str = "system",
    ) -> AdjustmentDTO:
        kind = AdjustmentType.parse(adjustment_type)
        with self._uow:
            result = InventoryAdjustmentService(self._uow).adjust(
                product_id, location_id, kind, quantity, reason, created_by
            )
            self._uow.commit()
        return AdjustmentDTO(
            previous_quantity=result.previous_quantity,
            new_quantity=result.new_quantity,
        )
