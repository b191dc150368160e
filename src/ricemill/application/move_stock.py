"""Application service: Move Stock use case."""

from __future__ import annotations

from ricemill.application.dto import MoveDTO
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.adjustment_service import InventoryAdjustmentService


class MoveStockHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        product_id: str,
        source_location_id: str,
        target_location_id: str,
        quantity: int,
        created_by: str = "system",
        note: str = "",
    ) -> MoveDTO:
        with self._uow:
            result = InventoryAdjustmentService(self._uow).move(
                product_id,
                source_location_id,
                target_location_id,
                quantity,
                created_by=created_by,
                note=note,
            )
            self._uow.commit()
        return MoveDTO(
            source_quantity=result.source_quantity,
            target_quantity=result.target_quantity,
        )
