"""CLI commands for the product and location catalog."""

from __future__ import annotations

from pathlib import Path

import click

from ricemill.application.load_catalog import LoadCatalogHandler
from ricemill.domain.exceptions import DomainException
from ricemill.infrastructure.bootstrap import unit_of_work
from ricemill.infrastructure.catalog_file import read_catalog


@click.command("load")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def catalog_load(path: Path) -> None:
    """Load products and storage locations from a JSON catalog file."""
    try:
        catalog = read_catalog(path)
        dto = LoadCatalogHandler(unit_of_work()).handle(
            products=catalog.product_specs(),
            locations=catalog.location_specs(),
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Products: {dto.products_created} added, {dto.products_updated} updated"
    )
    click.echo(
        f"Locations: {dto.locations_created} added, {dto.locations_updated} updated"
    )


@click.command("list")
def catalog_list() -> None:
    """List all products in the catalog."""
    uow = unit_of_work()
    with uow:
        products = uow.products.list_all()
        locations = uow.locations.list_all()

    if not products:
        click.echo("No products found.")
    else:
        click.echo(f"{'ID':<12} {'Name':<24} {'Unit':<5} {'Price':>12}")
        click.echo("-" * 56)
        for p in products:
            click.echo(f"{p.id:<12} {p.name:<24} {p.order_unit:<5} {str(p.price):>12}")

    if locations:
        click.echo()
        click.echo(f"{'ID':<12} {'Code':<8} {'Name':<24} {'Active':>6}")
        click.echo("-" * 53)
        for loc in locations:
            click.echo(
                f"{loc.id:<12} {loc.code:<8} {loc.name:<24} {'yes' if loc.is_active else 'no':>6}"
            )
