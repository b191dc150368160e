"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from ricemill.application.allocate_order import AllocateOrderHandler
from ricemill.application.cancel_order import CancelOrderHandler
from ricemill.application.create_order import CreateOrderHandler
from ricemill.application.dto import AllocationLineSpec, OrderDTO, OrderItemSpec
from ricemill.application.show_order import ShowOrderHandler
from ricemill.domain.exceptions import DomainException
from ricemill.infrastructure.bootstrap import default_actor, unit_of_work
from ricemill.infrastructure.cli.parsing import split_items, to_int


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse 'Dinorado:3,Jasmine:5' into OrderItemSpec list."""
    return [
        OrderItemSpec(product_name=name, quantity=to_int(qty, f"quantity for product '{name}'"))
        for name, qty in split_items(raw, ("ProductName", "Quantity"))
    ]


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  (status={dto.status}, fulfillment={dto.fulfillment_status})")
    click.echo(f"Customer: {dto.customer_name}")
    click.echo(f"Created:  {dto.created_at}")
    click.echo(f"Shipment: {dto.shipment_status}")
    click.echo()

    if dto.has_shipments:
        click.echo(
            f"  {'Product':<20} {'Unit':<5} {'Qty':>5} {'Fulfilled':>10} {'Pending':>8} {'Price':>12} {'Total':>12}"
        )
        click.echo(f"  {'-'*78}")
        for item in dto.items:
            click.echo(
                f"  {item.product_name:<20} {item.unit:<5} {item.quantity:>5} "
                f"{item.quantity_fulfilled:>10} {item.quantity_pending:>8} "
                f"{item.unit_price:>12} {item.line_total:>12}"
            )
        click.echo(f"  {'-'*78}")
    else:
        click.echo(f"  {'Product':<20} {'Unit':<5} {'Qty':>5} {'Price':>12} {'Total':>12}")
        click.echo(f"  {'-'*58}")
        for item in dto.items:
            click.echo(
                f"  {item.product_name:<20} {item.unit:<5} {item.quantity:>5} "
                f"{item.unit_price:>12} {item.line_total:>12}"
            )
        click.echo(f"  {'-'*58}")

    click.echo(f"  {'Order Total':<27} {dto.total:>20}")

    for delivery in dto.deliveries:
        click.echo()
        click.echo(
            f"  Delivery #{delivery.delivery_number} {delivery.id}  "
            f"({delivery.status}, {delivery.shipment_status})"
        )
        for di in delivery.items:
            click.echo(
                f"    {di.product_name:<20} {di.quantity:>5} (allocated {di.allocated_quantity})"
            )


@click.command("create")
@click.option("--customer", required=True, help="Customer name.")
@click.option("--email", default="", help="Customer email.")
@click.option("--items", required=True, help="Items as 'Product:Qty,Product:Qty'.")
def order_create(customer: str, email: str, items: str) -> None:
    """Create a new customer order (reserves stock)."""
    specs = _parse_items(items)
    try:
        dto = CreateOrderHandler(unit_of_work()).handle(
            customer_name=customer, item_specs=specs, customer_email=email
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} created  (status={dto.status})")
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, help="Order ID to display.")
def order_show(order_id: str) -> None:
    """Show details of an existing order."""
    try:
        dto = ShowOrderHandler(unit_of_work()).handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _display_order(dto)


@click.command("allocate")
@click.option("--id", "order_id", required=True, help="Order ID to allocate.")
@click.option(
    "--lines",
    default=None,
    help="Allocations as 'OrderItemId:LocationId:Qty,...'. Omit to allocate oldest stock first.",
)
def order_allocate(order_id: str, lines: str | None) -> None:
    """Allocate stock to an order; any shortfall becomes a backorder."""
    specs = None
    if lines:
        specs = [
            AllocationLineSpec(
                order_item_id=item_id, location_id=location_id, quantity=to_int(qty, "quantity")
            )
            for item_id, location_id, qty in split_items(lines, ("OrderItemId", "LocationId", "Qty"))
        ]
    try:
        dto = AllocateOrderHandler(unit_of_work()).handle(
            order_id, specs, allocated_by=default_actor()
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    for line in dto.per_line_result:
        click.echo(
            f"  {line.order_item_id}: {line.quantity} from {line.location_id} "
            f"({line.stock_quantity} kg), pending {line.quantity_pending}"
        )
    if dto.backorder is not None:
        click.echo(
            f"Backorder delivery #{dto.backorder.delivery_number} created: {dto.backorder.id}"
        )
    elif not dto.remaining_pending:
        click.echo(f"Order #{order_id} fully allocated.")


@click.command("cancel")
@click.option("--id", "order_id", required=True, help="Order ID to cancel.")
def order_cancel(order_id: str) -> None:
    """Cancel an order (returns unshipped stock and releases reservations)."""
    try:
        returned = CancelOrderHandler(unit_of_work()).handle(order_id, default_actor())
    except DomainException as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Order #{order_id} cancelled.")
    if returned:
        click.echo(f"  {returned} kg returned to inventory")
