import logging

import click

from ricemill.infrastructure.cli.catalog_commands import catalog_list, catalog_load
from ricemill.infrastructure.cli.delivery_commands import (
    delivery_backorder,
    delivery_fulfill,
    delivery_ship,
    delivery_stock_check,
)
from ricemill.infrastructure.cli.inventory_commands import (
    inventory_adjust,
    inventory_ledger,
    inventory_mill,
    inventory_move,
    inventory_reconcile,
    inventory_show,
)
from ricemill.infrastructure.cli.order_commands import (
    order_allocate,
    order_cancel,
    order_create,
    order_show,
)
from ricemill.infrastructure.cli.purchase_order_commands import (
    po_backorder,
    po_cancel,
    po_create,
    po_place,
    po_receive,
    po_return,
    po_show,
)
from ricemill.infrastructure.log_config import configure_logging
from ricemill.infrastructure.settings import get_settings


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log at INFO level.")
def cli(verbose: bool) -> None:
    """Rice mill inventory: stock ledger, receiving, allocation and deliveries."""
    configure_logging(logging.INFO if verbose else get_settings().LOG_LEVEL)


@cli.group()
def catalog() -> None:
    """Manage products and storage locations."""


@cli.group()
def po() -> None:
    """Manage purchase orders."""


@cli.group()
def order() -> None:
    """Manage customer orders."""


@cli.group()
def delivery() -> None:
    """Manage deliveries and backorders."""


@cli.group()
def inventory() -> None:
    """Manage inventory."""


# Register subcommands
catalog.add_command(catalog_list)
catalog.add_command(catalog_load)
po.add_command(po_backorder)
po.add_command(po_cancel)
po.add_command(po_create)
po.add_command(po_place)
po.add_command(po_receive)
po.add_command(po_return)
po.add_command(po_show)
order.add_command(order_allocate)
order.add_command(order_cancel)
order.add_command(order_create)
order.add_command(order_show)
delivery.add_command(delivery_backorder)
delivery.add_command(delivery_fulfill)
delivery.add_command(delivery_ship)
delivery.add_command(delivery_stock_check)
inventory.add_command(inventory_adjust)
inventory.add_command(inventory_ledger)
inventory.add_command(inventory_mill)
inventory.add_command(inventory_move)
inventory.add_command(inventory_reconcile)
inventory.add_command(inventory_show)
