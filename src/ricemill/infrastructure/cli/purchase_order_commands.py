"""CLI commands for purchase orders and supplier receipts."""

from __future__ import annotations

import click

from ricemill.application.create_purchase_order import CreatePurchaseOrderHandler
from ricemill.application.dto import PurchaseItemSpec, PurchaseOrderDTO, ReceiptLineSpec
from ricemill.application.manage_purchase_order import (
    BackorderPurchaseLinesHandler,
    CancelPurchaseOrderHandler,
    PlacePurchaseOrderHandler,
    ReturnToSupplierHandler,
    ShowPurchaseOrderHandler,
)
from ricemill.application.receive_shipment import ReceiveShipmentHandler
from ricemill.domain.exceptions import DomainException
from ricemill.infrastructure.bootstrap import default_actor, unit_of_work
from ricemill.infrastructure.cli.parsing import split_items, to_int


def _parse_receipt_lines(raw: str) -> list[ReceiptLineSpec]:
    """Parse 'LINE_ID:LOCATION_ID:KG,...' into ReceiptLineSpec list."""
    return [
        ReceiptLineSpec(po_item_id=item_id, location_id=location_id, quantity=to_int(qty, "quantity"))
        for item_id, location_id, qty in split_items(raw, ("LineId", "LocationId", "Kg"))
    ]


def _display_purchase_order(dto: PurchaseOrderDTO) -> None:
    click.echo(f"Purchase order {dto.id}  (status={dto.status})")
    click.echo(f"Supplier: {dto.supplier_id}")
    click.echo()
    click.echo(
        f"  {'Line':<32} {'Product':<20} {'Ordered':>8} {'Received':>9} {'Returned':>9} {'Status':<12}"
    )
    click.echo(f"  {'-'*94}")
    for line in dto.lines:
        click.echo(
            f"  {line.id:<32} {line.product_name:<20} {line.ordered_qty:>8} "
            f"{line.received_qty:>9} {line.returned_qty:>9} {line.line_status:<12}"
        )


@click.command("create")
@click.option("--supplier", required=True, help="Supplier ID.")
@click.option("--items", required=True, help="Lines as 'Product:Kg:UnitPrice,...'.")
@click.option("--note", default="", help="Free-text note.")
def po_create(supplier: str, items: str, note: str) -> None:
    """Create a new (pending) purchase order."""
    specs = [
        PurchaseItemSpec(product_name=name, quantity=to_int(qty, "quantity"), unit_price=price)
        for name, qty, price in split_items(items, ("Product", "Kg", "UnitPrice"))
    ]
    try:
        dto = CreatePurchaseOrderHandler(unit_of_work()).handle(
            supplier_id=supplier, item_specs=specs, note=note
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _display_purchase_order(dto)


@click.command("place")
@click.option("--id", "po_id", required=True, help="Purchase order ID.")
def po_place(po_id: str) -> None:
    """Send a purchase order to the supplier (books stock on order)."""
    try:
        dto = PlacePurchaseOrderHandler(unit_of_work()).handle(po_id, placed_by=default_actor())
    except DomainException as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Purchase order {dto.id} placed (status={dto.status}).")


@click.command("receive")
@click.option("--id", "po_id", required=True, help="Purchase order ID.")
@click.option("--lines", required=True, help="Receipts as 'LineId:LocationId:Kg,...'.")
@click.option("--by", "received_by", default=None, help="Who received the shipment.")
@click.option("--note", default="", help="Free-text note.")
def po_receive(po_id: str, lines: str, received_by: str | None, note: str) -> None:
    """Receive a supplier shipment into storage locations."""
    specs = _parse_receipt_lines(lines)
    try:
        dto = ReceiveShipmentHandler(unit_of_work()).handle(
            po_id, specs, received_by=received_by or default_actor(), note=note
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Purchase order {po_id} is now {dto.new_po_status}.")
    for line in dto.updated_lines:
        click.echo(
            f"  {line.product_name:<20} received {line.received_qty}/{line.ordered_qty} ({line.line_status})"
        )


@click.command("backorder")
@click.option("--id", "po_id", required=True, help="Purchase order ID.")
@click.option("--line", "line_ids", multiple=True, required=True, help="Line ID (repeatable).")
def po_backorder(po_id: str, line_ids: tuple[str, ...]) -> None:
    """Flag purchase-order lines the supplier could not ship."""
    try:
        dto = BackorderPurchaseLinesHandler(unit_of_work()).handle(po_id, list(line_ids))
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _display_purchase_order(dto)


@click.command("return")
@click.option("--id", "po_id", required=True, help="Purchase order ID.")
@click.option("--lines", required=True, help="Returns as 'LineId:LocationId:Kg,...'.")
@click.option("--reason", required=True, help="Why the goods go back.")
def po_return(po_id: str, lines: str, reason: str) -> None:
    """Return received goods to the supplier."""
    specs = _parse_receipt_lines(lines)
    try:
        dto = ReturnToSupplierHandler(unit_of_work()).handle(
            po_id, specs, reason=reason, returned_by=default_actor()
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _display_purchase_order(dto)


@click.command("cancel")
@click.option("--id", "po_id", required=True, help="Purchase order ID.")
def po_cancel(po_id: str) -> None:
    """Cancel a purchase order nothing has been received against."""
    try:
        CancelPurchaseOrderHandler(unit_of_work()).handle(po_id, cancelled_by=default_actor())
    except DomainException as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Purchase order {po_id} cancelled.")


@click.command("show")
@click.option("--id", "po_id", required=True, help="Purchase order ID.")
def po_show(po_id: str) -> None:
    """Show a purchase order and its lines."""
    try:
        dto = ShowPurchaseOrderHandler(unit_of_work()).handle(po_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _display_purchase_order(dto)
