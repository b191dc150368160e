"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field


# --- Inputs -------------------------------------------------------------------


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the customer asked for (product name + order units)."""

    product_name: str
    quantity: int


@dataclass(frozen=True)
class PurchaseItemSpec:
    """Input: one purchase-order line (product name + kg + unit price)."""

    product_name: str
    quantity: int
    unit_price: str


@dataclass(frozen=True)
class ReceiptLineSpec:
    po_item_id: str
    location_id: str
    quantity: int


@dataclass(frozen=True)
class AllocationLineSpec:
    """Input: take *quantity* order units of an order item from one location.

    ``product_id`` defaults to the order item's product.
    """

    order_item_id: str
    location_id: str
    quantity: int
    product_id: str | None = None


# --- Outputs ------------------------------------------------------------------


@dataclass(frozen=True)
class PurchaseOrderLineDTO:
    id: str
    product_name: str
    ordered_qty: int
    received_qty: int
    returned_qty: int
    line_status: str


@dataclass(frozen=True)
class PurchaseOrderDTO:
    id: str
    supplier_id: str
    status: str
    lines: list[PurchaseOrderLineDTO]


@dataclass(frozen=True)
class ReceiptDTO:
    updated_lines: list[PurchaseOrderLineDTO]
    new_po_status: str


@dataclass(frozen=True)
class AllocationLineDTO:
    order_item_id: str
    location_id: str
    quantity: int
    stock_quantity: int
    quantity_fulfilled: int
    quantity_pending: int


@dataclass(frozen=True)
class DeliveryItemDTO:
    order_item_id: str
    product_name: str
    quantity: int
    allocated_quantity: int


@dataclass(frozen=True)
class DeliveryDTO:
    id: str
    delivery_number: int
    status: str
    shipment_status: str
    items: list[DeliveryItemDTO]
    fulfilled_at: str | None = None
    fulfilled_by: str | None = None


@dataclass(frozen=True)
class AllocationDTO:
    per_line_result: list[AllocationLineDTO]
    remaining_pending: dict[str, int]
    backorder: DeliveryDTO | None = None


@dataclass(frozen=True)
class ShipmentUpdateDTO:
    accepted: bool
    shipment_status: str
    reason: str | None = None


@dataclass(frozen=True)
class FulfillmentDTO:
    order_status: str
    fulfillment_status: str


@dataclass(frozen=True)
class OrderLineItemDTO:
    """Output: a single line item as displayed to the user."""

    id: str
    product_name: str
    unit: str
    quantity: int
    quantity_fulfilled: int
    quantity_pending: int
    unit_price: str  # formatted, e.g. "₱1250.00"
    line_total: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: str
    customer_name: str
    status: str
    fulfillment_status: str
    shipment_status: str
    items: list[OrderLineItemDTO]
    total: str
    created_at: str
    deliveries: list[DeliveryDTO] = field(default_factory=list)

    @property
    def has_shipments(self) -> bool:
        return any(item.quantity_fulfilled > 0 for item in self.items)


@dataclass(frozen=True)
class AdjustmentDTO:
    previous_quantity: int
    new_quantity: int


@dataclass(frozen=True)
class MoveDTO:
    source_quantity: int
    target_quantity: int


@dataclass(frozen=True)
class MillDTO:
    input_quantity: int
    sacks_produced: int
    output_quantity: int
    source_quantity: int
    target_quantity: int


@dataclass(frozen=True)
class ProductSpec:
    """Input: one catalog product as loaded from a catalog file."""

    id: str
    name: str
    price: str
    category: str = ""
    is_milled_rice: bool = False
    milling_yield_rate: str | None = None
    reorder_point: int = 0


@dataclass(frozen=True)
class LocationSpec:
    id: str
    name: str
    code: str
    type: str = "WAREHOUSE"
    parent_id: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class CatalogLoadDTO:
    products_created: int
    products_updated: int
    locations_created: int
    locations_updated: int
