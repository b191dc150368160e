"""CLI commands for deliveries and backorders."""

from __future__ import annotations

import click

from ricemill.application.manage_delivery import (
    AdvanceShipmentStatusHandler,
    CheckDeliveryStockHandler,
    CreateBackorderDeliveryHandler,
    FulfillDeliveryHandler,
)
from ricemill.domain.exceptions import DomainException
from ricemill.domain.model.delivery import ShipmentStatus
from ricemill.infrastructure.bootstrap import default_actor, unit_of_work


@click.command("backorder")
@click.option("--order", "order_id", required=True, help="Order ID.")
def delivery_backorder(order_id: str) -> None:
    """Split the order's uncovered pending quantity into a new delivery."""
    try:
        dto = CreateBackorderDeliveryHandler(unit_of_work()).handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Delivery #{dto.delivery_number} created: {dto.id}")
    for item in dto.items:
        click.echo(f"  {item.product_name:<20} {item.quantity:>5}")


@click.command("ship")
@click.option("--id", "delivery_id", required=True, help="Delivery ID.")
@click.option(
    "--status",
    required=True,
    type=click.Choice([s.value for s in ShipmentStatus], case_sensitive=False),
    help="New shipment status.",
)
def delivery_ship(delivery_id: str, status: str) -> None:
    """Set a delivery's shipment status."""
    try:
        dto = AdvanceShipmentStatusHandler(unit_of_work()).handle(delivery_id, status)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    if not dto.accepted:
        raise click.ClickException(dto.reason or "Shipment status change rejected")
    click.echo(f"Delivery {delivery_id} is now '{dto.shipment_status}'.")


@click.command("fulfill")
@click.option("--id", "delivery_id", required=True, help="Delivery ID.")
@click.option("--by", "fulfilled_by", default=None, help="Who fulfilled the delivery.")
def delivery_fulfill(delivery_id: str, fulfilled_by: str | None) -> None:
    """Fulfill a delivered delivery (debits any stock still needed)."""
    try:
        dto = FulfillDeliveryHandler(unit_of_work()).handle(
            delivery_id, fulfilled_by=fulfilled_by or default_actor()
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))
    click.echo(
        f"Delivery {delivery_id} fulfilled. Order status={dto.order_status}, "
        f"fulfillment={dto.fulfillment_status}"
    )


@click.command("stock-check")
@click.option("--id", "delivery_id", required=True, help="Delivery ID.")
def delivery_stock_check(delivery_id: str) -> None:
    """Report whether the warehouse can cover a delivery right now."""
    try:
        shortages = CheckDeliveryStockHandler(unit_of_work()).handle(delivery_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    if not shortages:
        click.echo("Sufficient stock.")
        return
    for line in shortages:
        click.echo(line)
