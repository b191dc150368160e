"""Small immutable values shared by the whole domain: money, ids, clock."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from ricemill.domain.exceptions import InvalidQuantity, ValidationError

CENTAVO = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """A non-negative peso amount, kept as a Decimal rounded to centavos."""

    amount: Decimal
    currency: str = "PHP"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount < 0:
            raise ValidationError(f"Money amount cannot be negative, got {self.amount}")
        object.__setattr__(self, "amount", self.amount.quantize(CENTAVO))

    def __add__(self, other: Money) -> Money:
        if self.currency != other.currency:
            raise ValidationError(f"Cannot add {other.currency} to {self.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, quantity: int) -> Money:
        if not isinstance(quantity, int):
            raise TypeError(f"Money can only be scaled by an int, got {type(quantity).__name__}")
        return Money(self.amount * quantity, self.currency)

    def __str__(self) -> str:
        return f"₱{self.amount:.2f}"

    @staticmethod
    def of(amount: str | int | Decimal, currency: str = "PHP") -> Money:
        try:
            return Money(Decimal(str(amount)), currency)
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    @staticmethod
    def zero() -> Money:
        return Money(Decimal("0"))


def require_positive(quantity: int, what: str = "Quantity") -> int:
    """Return *quantity* unchanged, or raise InvalidQuantity if it is not > 0."""
    if not isinstance(quantity, int) or isinstance(quantity, bool):
        raise InvalidQuantity(
            f"{what} must be an integer, got {type(quantity).__name__}"
        )
    if quantity <= 0:
        raise InvalidQuantity(f"{what} must be positive, got {quantity}")
    return quantity


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
