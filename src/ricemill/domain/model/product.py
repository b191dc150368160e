"""Product aggregate.

Products are owned by the catalog; the inventory core only reads their
unit semantics and maintains the cached stock projection
(``stock_on_hand``, ``stock_allocated``, ``stock_on_order``).

Stock is tracked in kilograms.  Milled rice is sold by the sack, so order
quantities for milled-rice products are converted with ``KG_PER_SACK``
before they touch inventory.  Milling turns unmilled kg into whole sacks;
without a configured yield rate it takes ``UNMILLED_KG_PER_SACK`` per sack.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal

from ricemill.domain.exceptions import ValidationError
from ricemill.domain.model.value_objects import Money

KG_PER_SACK = 50
UNMILLED_KG_PER_SACK = 75


@dataclass
class Product:
    """A product in the catalog plus its cached stock projection.

    The stock fields are only ever changed by the ledger posting path
    (``apply_on_hand_delta`` / ``apply_on_order_delta``) and by the order
    reservation hooks, never by catalog edits.
    """

    id: str
    name: str
    price: Money
    category: str = ""
    is_milled_rice: bool = False
    milling_yield_rate: Decimal | None = None
    reorder_point: int = 0
    stock_on_hand: int = 0
    stock_allocated: int = 0
    stock_on_order: int = 0

    # --- Unit conversion ------------------------------------------------------

    @property
    def order_unit(self) -> str:
        return "sack" if self.is_milled_rice else "kg"

    def to_stock_units(self, order_quantity: int) -> int:
        """Convert an order-level quantity to inventory (kg) units."""
        if self.is_milled_rice:
            return order_quantity * KG_PER_SACK
        return order_quantity

    def to_order_units(self, stock_quantity: int) -> int:
        """Whole order units that *stock_quantity* kg can cover (rounded down)."""
        if self.is_milled_rice:
            return stock_quantity // KG_PER_SACK
        return stock_quantity

    @property
    def unmilled_kg_per_sack(self) -> int:
        """Unmilled kg consumed per milled sack, from ``milling_yield_rate``.

        A rate of 0.65 means 65 kg of milled rice per 100 kg unmilled, so
        one sack needs 77 kg (rounded up to whole kg).
        """
        if self.milling_yield_rate is None:
            return UNMILLED_KG_PER_SACK
        per_sack = Decimal(KG_PER_SACK) / self.milling_yield_rate
        return int(per_sack.to_integral_value(rounding=ROUND_CEILING))

    def describe_stock(self, stock_quantity: int) -> str:
        if self.is_milled_rice:
            return f"{self.to_order_units(stock_quantity)} sacks ({stock_quantity} kg)"
        return f"{stock_quantity} kg"

    # --- Projection -----------------------------------------------------------

    @property
    def available_to_promise(self) -> int:
        return self.stock_on_hand - self.stock_allocated

    @property
    def is_low_stock(self) -> bool:
        return self.reorder_point > 0 and self.stock_on_hand <= self.reorder_point

    def apply_on_hand_delta(self, delta: int) -> None:
        if self.stock_on_hand + delta < 0:
            raise ValidationError(
                f"Stock on hand for {self.name} cannot go negative "
                f"({self.stock_on_hand} {delta:+d})"
            )
        self.stock_on_hand += delta

    def apply_on_order_delta(self, delta: int) -> None:
        if self.stock_on_order + delta < 0:
            raise ValidationError(
                f"Stock on order for {self.name} cannot go negative "
                f"({self.stock_on_order} {delta:+d})"
            )
        self.stock_on_order += delta

    def reserve(self, stock_quantity: int) -> None:
        """Earmark stock for a placed customer order."""
        self.stock_allocated += stock_quantity

    def release(self, stock_quantity: int) -> None:
        """Drop an earmark, either because it shipped or was cancelled.

        Orders placed outside the checkout seam never reserved anything,
        so the counter bottoms out at zero.
        """
        self.stock_allocated = max(0, self.stock_allocated - stock_quantity)
