"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
Stock errors also carry the product, location and quantities involved so a
caller can describe the shortfall without parsing the message.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InvalidQuantity(ValidationError):
    """A quantity was zero or negative where a positive one is required."""


class InvalidTransactionKind(ValidationError):
    """A ledger entry has an unknown kind or a sign that contradicts it."""


class OverReceipt(ValidationError):
    """A receipt exceeds what is still outstanding on a purchase-order line."""

    def __init__(self, po_item_id: str, requested: int, outstanding: int) -> None:
        self.po_item_id = po_item_id
        self.requested = requested
        self.outstanding = outstanding
        super().__init__(
            f"Cannot receive {requested} on PO line {po_item_id} "
            f"(only {outstanding} outstanding)"
        )


class InsufficientStock(ValidationError):
    """Not enough stock at a location (or across locations) for a debit."""

    def __init__(
        self,
        product_name: str,
        needed: int,
        available: int,
        location_id: str | None = None,
    ) -> None:
        self.product_name = product_name
        self.location_id = location_id
        self.needed = needed
        self.available = available
        where = f" at location {location_id}" if location_id else ""
        super().__init__(
            f"Insufficient stock for {product_name}{where} "
            f"(need {needed}, have {available}, short {needed - available})"
        )

    @property
    def shortfall(self) -> int:
        return self.needed - self.available


class InsufficientBackorderStock(ValidationError):
    """A backorder delivery cannot move forward until stock is replenished."""

    def __init__(self, shortages: list[str]) -> None:
        self.shortages = shortages
        super().__init__(
            "Cannot update shipment status for backorder: " + "; ".join(shortages)
        )


class NegativeResultNotAllowed(ValidationError):
    """An adjustment would drive a location balance below zero."""


class DeliveryNotReady(ValidationError):
    """A delivery was fulfilled before its shipment reached 'Delivered'."""


class AlreadyFulfilled(ValidationError):
    """The delivery has already been fulfilled."""


class LocationInactiveOrMissing(ValidationError):
    """A storage location does not exist or is not accepting stock."""
