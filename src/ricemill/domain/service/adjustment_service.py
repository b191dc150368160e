"""Domain service: Inventory Adjustment.

Manual corrections for damage, loss and physical counts, stock moves
between locations, and milling of unmilled rice into sacks of milled rice.
All of them go through the stock ledger like every other writer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from ricemill.domain.exceptions import (
    InvalidQuantity,
    InsufficientStock,
    NegativeResultNotAllowed,
    ValidationError,
)
from ricemill.domain.model.ledger import InventoryTransaction, TransactionKind
from ricemill.domain.model.product import KG_PER_SACK
from ricemill.domain.model.value_objects import require_positive
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


class AdjustmentType(Enum):
    ADD = "ADD"
    REMOVE = "REMOVE"
    SET = "SET"

    @staticmethod
    def parse(raw: str | AdjustmentType) -> AdjustmentType:
        if isinstance(raw, AdjustmentType):
            return raw
        try:
            return AdjustmentType(str(raw).upper())
        except ValueError as exc:
            raise ValidationError(
                f"Invalid adjustment type {raw!r}. Must be ADD, REMOVE, or SET"
            ) from exc


@dataclass(frozen=True)
class AdjustmentResult:
    previous_quantity: int
    new_quantity: int
    entry_id: int | None

    @property
    def delta(self) -> int:
        return self.new_quantity - self.previous_quantity


@dataclass(frozen=True)
class MoveResult:
    source_quantity: int
    target_quantity: int


@dataclass(frozen=True)
class MillResult:
    input_quantity: int
    sacks_produced: int
    output_quantity: int
    source_quantity: int
    target_quantity: int


class InventoryAdjustmentService:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow
        self._ledger = StockLedger(uow)

    def adjust(
        self,
        product_id: str,
        location_id: str,
        adjustment_type: AdjustmentType,
        quantity: int,
        reason: str,
        created_by: str = "system",
    ) -> AdjustmentResult:
        """Apply an ADD / REMOVE / SET correction to one location.

        Writes a single ADJUSTMENT entry carrying ``new - current``.  A SET
        to the current quantity changes nothing and writes nothing.
        """
        if not reason or not reason.strip():
            raise ValidationError("A reason is required for inventory adjustments")
        if adjustment_type == AdjustmentType.SET:
            if not isinstance(quantity, int) or quantity < 0:
                raise InvalidQuantity("Cannot set quantity to a negative value")
        else:
            require_positive(quantity, "Adjustment quantity")
        self._ledger.require_location(
            location_id,
            accepting_stock=adjustment_type != AdjustmentType.REMOVE,
        )

        locked = self._ledger.lock({product_id}, {(product_id, location_id)})
        product = locked.product(product_id)
        current = locked.quantity_at(product_id, location_id)

        if adjustment_type == AdjustmentType.ADD:
            new = current + quantity
        elif adjustment_type == AdjustmentType.REMOVE:
            new = current - quantity
            if new < 0:
                raise NegativeResultNotAllowed(
                    f"Cannot remove {quantity} of {product.name}. "
                    f"Only {current} available at this location."
                )
        else:
            new = quantity

        if new == current:
            return AdjustmentResult(previous_quantity=current, new_quantity=new, entry_id=None)

        entry = self._ledger.post(
            InventoryTransaction(
                product_id=product_id,
                kind=TransactionKind.ADJUSTMENT,
                quantity=new - current,
                location_id=location_id,
                note=(
                    f"{adjustment_type.value}: {reason.strip()} "
                    f"(Before: {current}, After: {new})"
                ),
                created_by=created_by,
            ),
            product,
            locked,
        )
        logger.info(
            "adjusted %s at %s: %s %d (%d -> %d)",
            product.name, location_id, adjustment_type.value, quantity, current, new,
        )
        return AdjustmentResult(previous_quantity=current, new_quantity=new, entry_id=entry.id)

    def move(
        self,
        product_id: str,
        source_location_id: str,
        target_location_id: str,
        quantity: int,
        created_by: str = "system",
        note: str = "",
    ) -> MoveResult:
        """Transfer stock between two locations as a STOCK_OUT/STOCK_IN pair."""
        require_positive(quantity, "Move quantity")
        if source_location_id == target_location_id:
            raise ValidationError("Source and target locations must differ")
        source = self._ledger.require_location(source_location_id, accepting_stock=False)
        target = self._ledger.require_location(target_location_id)

        locked = self._ledger.lock(
            {product_id},
            {(product_id, source_location_id), (product_id, target_location_id)},
        )
        product = locked.product(product_id)
        available = locked.quantity_at(product_id, source_location_id)
        if quantity > available:
            raise InsufficientStock(
                product.name,
                needed=quantity,
                available=available,
                location_id=source_location_id,
            )

        memo = note or f"Transfer {source.code} -> {target.code}"
        for location_id, signed in (
            (source_location_id, -quantity),
            (target_location_id, quantity),
        ):
            self._ledger.post(
                InventoryTransaction(
                    product_id=product_id,
                    kind=TransactionKind.STOCK_OUT if signed < 0 else TransactionKind.STOCK_IN,
                    quantity=signed,
                    location_id=location_id,
                    note=memo,
                    created_by=created_by,
                ),
                product,
                locked,
            )

        result = MoveResult(
            source_quantity=locked.quantity_at(product_id, source_location_id),
            target_quantity=locked.quantity_at(product_id, target_location_id),
        )
        logger.info(
            "moved %d of %s from %s to %s", quantity, product.name,
            source.code, target.code,
        )
        return result

    def mill(
        self,
        source_product_id: str,
        target_product_id: str,
        source_location_id: str,
        target_location_id: str,
        quantity: int,
        created_by: str = "system",
    ) -> MillResult:
        """Mill *quantity* kg of unmilled rice into sacks of milled rice.

        The kg per sack comes from the unmilled product's yield rate, or
        the milled product's when only that one is set.  *quantity* must
        make whole sacks.  The STOCK_OUT and STOCK_IN entries are posted
        together or not at all.
        """
        require_positive(quantity, "Milling quantity")
        if source_product_id == target_product_id:
            raise ValidationError("Milling needs two different products")
        source_location = self._ledger.require_location(
            source_location_id, accepting_stock=False
        )
        target_location = self._ledger.require_location(target_location_id)

        locked = self._ledger.lock(
            {source_product_id, target_product_id},
            {
                (source_product_id, source_location_id),
                (target_product_id, target_location_id),
            },
        )
        source = locked.product(source_product_id)
        target = locked.product(target_product_id)
        if source.is_milled_rice:
            raise ValidationError(f"{source.name} is already milled")
        if not target.is_milled_rice:
            raise ValidationError(f"{target.name} is not a milled-rice product")

        rated = source if source.milling_yield_rate is not None else target
        per_sack = rated.unmilled_kg_per_sack
        if quantity % per_sack:
            raise InvalidQuantity(
                f"Quantity must be a multiple of {per_sack} kg "
                f"({per_sack} kg unmilled = 1 sack of {KG_PER_SACK} kg)"
            )
        available = locked.quantity_at(source_product_id, source_location_id)
        if quantity > available:
            raise InsufficientStock(
                source.name,
                needed=quantity,
                available=available,
                location_id=source_location_id,
            )

        sacks = quantity // per_sack
        output = target.to_stock_units(sacks)
        self._ledger.post(
            InventoryTransaction(
                product_id=source_product_id,
                kind=TransactionKind.STOCK_OUT,
                quantity=-quantity,
                location_id=source_location_id,
                note=f"Stock out for milling - Output: {target.name}",
                created_by=created_by,
            ),
            source,
            locked,
        )
        self._ledger.post(
            InventoryTransaction(
                product_id=target_product_id,
                kind=TransactionKind.STOCK_IN,
                quantity=output,
                location_id=target_location_id,
                note=f"Stock in from milling - Input: {source.name} ({sacks} sacks)",
                created_by=created_by,
            ),
            target,
            locked,
        )

        logger.info(
            "milled %d kg of %s at %s into %d sack(s) of %s at %s",
            quantity, source.name, source_location.code,
            sacks, target.name, target_location.code,
        )
        return MillResult(
            input_quantity=quantity,
            sacks_produced=sacks,
            output_quantity=output,
            source_quantity=locked.quantity_at(source_product_id, source_location_id),
            target_quantity=locked.quantity_at(target_product_id, target_location_id),
        )
