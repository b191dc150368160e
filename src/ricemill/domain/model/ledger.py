"""Inventory transaction ledger.

Every change to a stock quantity is recorded as an immutable
``InventoryTransaction``.  The ledger is append-only: corrections are new
offsetting entries, never edits.  Summing the signed quantities of the
on-hand kinds for a product reproduces its materialized balances.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ricemill.domain.exceptions import InvalidQuantity, InvalidTransactionKind
from ricemill.domain.model.value_objects import Money, utcnow


class TransactionKind(Enum):
    STOCK_IN = "STOCK_IN"
    STOCK_OUT = "STOCK_OUT"
    ADJUSTMENT = "ADJUSTMENT"
    RETURN_IN = "RETURN_IN"
    RETURN_OUT = "RETURN_OUT"
    PO_ON_ORDER = "PO_ON_ORDER"

    @property
    def is_inbound(self) -> bool:
        return self in _INBOUND

    @property
    def is_outbound(self) -> bool:
        return self in _OUTBOUND

    @property
    def affects_on_hand(self) -> bool:
        """PO_ON_ORDER tracks expected stock and never touches a location."""
        return self is not TransactionKind.PO_ON_ORDER

    @staticmethod
    def parse(raw: str | TransactionKind) -> TransactionKind:
        if isinstance(raw, TransactionKind):
            return raw
        try:
            return TransactionKind(str(raw).upper())
        except ValueError as exc:
            raise InvalidTransactionKind(
                f"Unknown transaction kind: {raw!r}"
            ) from exc


_INBOUND = frozenset({TransactionKind.STOCK_IN, TransactionKind.RETURN_IN})
_OUTBOUND = frozenset({TransactionKind.STOCK_OUT, TransactionKind.RETURN_OUT})


@dataclass(frozen=True)
class InventoryTransaction:
    """One ledger entry.

    ``quantity`` is signed: positive for inbound kinds, negative for
    outbound kinds, either sign for ADJUSTMENT and PO_ON_ORDER (placing a
    purchase order adds on-order stock, cancelling it takes it back).
    ``id`` is assigned by the ledger repository on append and grows
    monotonically.
    """

    product_id: str
    kind: TransactionKind
    quantity: int
    location_id: str | None = None
    unit_price: Money | None = None
    purchase_order_id: str | None = None
    order_id: str | None = None
    note: str = ""
    created_by: str = "system"
    created_at: datetime = field(default_factory=utcnow)
    id: int | None = None

    def validate(self) -> None:
        """Check kind/sign/location consistency.

        Raises InvalidTransactionKind or InvalidQuantity.
        """
        if not isinstance(self.kind, TransactionKind):
            raise InvalidTransactionKind(f"Unknown transaction kind: {self.kind!r}")
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool):
            raise InvalidQuantity("Ledger quantity must be an integer")
        if self.quantity == 0:
            raise InvalidQuantity("Ledger quantity cannot be zero")
        if self.kind.is_inbound and self.quantity < 0:
            raise InvalidTransactionKind(
                f"{self.kind.value} entries must carry a positive quantity"
            )
        if self.kind.is_outbound and self.quantity > 0:
            raise InvalidTransactionKind(
                f"{self.kind.value} entries must carry a negative quantity"
            )
        if self.kind.affects_on_hand and not self.location_id:
            raise InvalidTransactionKind(
                f"{self.kind.value} entries require a location"
            )
        if not self.kind.affects_on_hand and self.location_id:
            raise InvalidTransactionKind(
                f"{self.kind.value} entries cannot reference a location"
            )


def replay(entries: Iterable[InventoryTransaction]) -> dict[tuple[str, str], int]:
    """Rebuild per-(product, location) balances from ledger entries."""
    balances: dict[tuple[str, str], int] = defaultdict(int)
    for entry in entries:
        if entry.kind.affects_on_hand:
            balances[(entry.product_id, entry.location_id)] += entry.quantity  # type: ignore[index]
    return dict(balances)
