"""Application service: Mill Rice use case."""

from __future__ import annotations

from ricemill.application.dto import MillDTO
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.adjustment_service import InventoryAdjustmentService


class MillRiceHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        source_product_id: str,
        target_product_id: str,
        source_location_id: str,
        target_location_id: str,
        quantity: int,
        created_by: str = "system",
    ) -> MillDTO:
        """Turn unmilled kg at one location into milled sacks at another."""
        with self._uow:
            result = InventoryAdjustmentService(self._uow).mill(
                source_product_id,
                target_product_id,
                source_location_id,
                target_location_id,
                quantity,
                created_by=created_by,
            )
            self._uow.commit()
        return MillDTO(
            input_quantity=result.input_quantity,
            sacks_produced=result.sacks_produced,
            output_quantity=result.output_quantity,
            source_quantity=result.source_quantity,
            target_quantity=result.target_quantity,
        )
