"""CLI commands for inventory management."""

from __future__ import annotations

import click

from ricemill.application.adjust_inventory import AdjustInventoryHandler
from ricemill.application.mill_rice import MillRiceHandler
from ricemill.application.move_stock import MoveStockHandler
from ricemill.application.reconcile_ledger import ReconcileLedgerHandler
from ricemill.application.show_inventory import ShowInventoryHandler
from ricemill.application.show_ledger import ShowLedgerHandler
from ricemill.domain.exceptions import DomainException
from ricemill.infrastructure.bootstrap import default_actor, unit_of_work


@click.command("show")
@click.option("--product", "product_id", default=None, help="Limit to one product ID.")
def inventory_show(product_id: str | None) -> None:
    """Show current inventory levels."""
    lines = ShowInventoryHandler(unit_of_work()).handle(product_id)

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(
        f"{'Product':<24} {'On hand':>9} {'Allocated':>10} {'On order':>9} {'Available':>10}"
    )
    click.echo("-" * 66)
    for line in lines:
        flag = "  LOW" if line.low_stock else ""
        click.echo(
            f"{line.product_name:<24} {line.on_hand:>9} {line.allocated:>10} "
            f"{line.on_order:>9} {line.available:>10}{flag}"
        )
        for row in line.locations:
            click.echo(f"    {row.location_code:<20} {row.quantity:>9}")


@click.command("adjust")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--location", "location_id", required=True, help="Location ID.")
@click.option(
    "--type",
    "adjustment_type",
    required=True,
    type=click.Choice(["ADD", "REMOVE", "SET"], case_sensitive=False),
)
@click.option("--quantity", required=True, type=int, help="Quantity in kg.")
@click.option("--reason", required=True, help="Reason for the correction.")
def inventory_adjust(
    product_id: str, location_id: str, adjustment_type: str, quantity: int, reason: str
) -> None:
    """Correct the stock at one location."""
    try:
        dto = AdjustInventoryHandler(unit_of_work()).handle(
            product_id, location_id, adjustment_type, quantity, reason,
            created_by=default_actor(),
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Stock adjusted: {dto.previous_quantity} -> {dto.new_quantity}")


@click.command("move")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--from", "source_id", required=True, help="Source location ID.")
@click.option("--to", "target_id", required=True, help="Target location ID.")
@click.option("--quantity", required=True, type=int, help="Quantity in kg.")
@click.option("--note", default="", help="Free-text note.")
def inventory_move(
    product_id: str, source_id: str, target_id: str, quantity: int, note: str
) -> None:
    """Move stock between two locations."""
    try:
        dto = MoveStockHandler(unit_of_work()).handle(
            product_id, source_id, target_id, quantity,
            created_by=default_actor(), note=note,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))
    click.echo(
        f"Moved {quantity}. Source now {dto.source_quantity}, target now {dto.target_quantity}"
    )


@click.command("mill")
@click.option("--from-product", "source_product_id", required=True, help="Unmilled product ID.")
@click.option("--to-product", "target_product_id", required=True, help="Milled product ID.")
@click.option("--from", "source_id", required=True, help="Location holding the unmilled rice.")
@click.option("--to", "target_id", required=True, help="Location receiving the sacks.")
@click.option("--quantity", required=True, type=int, help="Unmilled kg to mill.")
def inventory_mill(
    source_product_id: str, target_product_id: str, source_id: str, target_id: str, quantity: int
) -> None:
    """Mill unmilled rice into sacks of milled rice."""
    try:
        dto = MillRiceHandler(unit_of_work()).handle(
            source_product_id, target_product_id, source_id, target_id, quantity,
            created_by=default_actor(),
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))
    click.echo(
        f"Milled {dto.input_quantity} kg into {dto.sacks_produced} sack(s) "
        f"({dto.output_quantity} kg). Source now {dto.source_quantity}, "
        f"target now {dto.target_quantity}"
    )


@click.command("ledger")
@click.option("--product", "product_id", default=None, help="Filter by product ID.")
@click.option("--order", "order_id", default=None, help="Filter by customer order ID.")
def inventory_ledger(product_id: str | None, order_id: str | None) -> None:
    """List ledger entries in the order they were written."""
    entries = ShowLedgerHandler(unit_of_work()).handle(product_id=product_id, order_id=order_id)
    if not entries:
        click.echo("No ledger entries found.")
        return
    click.echo(f"{'#':>5} {'When':<19} {'Kind':<12} {'Product':<12} {'Location':<12} {'Qty':>8}  Note")
    click.echo("-" * 90)
    for e in entries:
        click.echo(
            f"{e.id:>5} {e.created_at:<19} {e.kind:<12} {e.product_id:<12} "
            f"{e.location_id or '-':<12} {e.quantity:>+8}  {e.note}"
        )


@click.command("reconcile")
@click.option("--product", "product_id", default=None, help="Limit to one product ID.")
@click.option("--rebuild", is_flag=True, default=False, help="Rewrite balances from the ledger.")
def inventory_reconcile(product_id: str | None, rebuild: bool) -> None:
    """Check materialized balances against a replay of the ledger."""
    try:
        reports = ReconcileLedgerHandler(unit_of_work()).handle(product_id, rebuild=rebuild)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    drifted = [r for r in reports if not r.is_consistent]
    for r in drifted:
        click.echo(
            f"{r.product_id}: ledger={r.ledger_total} cached={r.cached_on_hand} "
            f"locations={r.location_drift}"
        )
    if drifted:
        raise click.ClickException(f"{len(drifted)} product(s) out of balance")
    click.echo(f"{len(reports)} product(s) consistent with the ledger.")
