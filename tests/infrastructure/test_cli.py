"""CLI tests: the click commands wired to a throwaway SQLite file."""

import json

import pytest
from click.testing import CliRunner

from ricemill.application.create_purchase_order import CreatePurchaseOrderHandler
from ricemill.application.dto import PurchaseItemSpec
from ricemill.infrastructure import bootstrap
from ricemill.infrastructure.cli.main import cli

CATALOG = {
    "locations": [
        {"id": "wh-a", "name": "Main warehouse", "code": "WH-A"},
        {"id": "wh-b", "name": "Annex", "code": "WH-B"},
    ],
    "products": [
        {"id": "rice", "name": "Dinorado", "price": "2450.00",
         "category": "Milled Rice", "is_milled_rice": True, "reorder_point": 100},
        {"id": "bran", "name": "Rice Bran", "price": "18.00"},
        {"id": "palay", "name": "Palay", "price": "22.00", "category": "Unmilled Rice"},
    ],
}


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("RICEMILL_DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    bootstrap.engine.cache_clear()
    catalog = tmp_path / "catalog.json"
    catalog.write_text(json.dumps(CATALOG), encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["catalog", "load", str(catalog)])
    assert result.exit_code == 0, result.output
    yield runner
    bootstrap.engine().dispose()
    bootstrap.engine.cache_clear()


def _receive(runner, kg: int) -> None:
    po = CreatePurchaseOrderHandler(bootstrap.unit_of_work()).handle(
        "sup-1", [PurchaseItemSpec("Dinorado", 500, "40.00")]
    )
    result = runner.invoke(cli, ["po", "place", "--id", po.id])
    assert result.exit_code == 0, result.output
    result = runner.invoke(
        cli, ["po", "receive", "--id", po.id, "--lines", f"{po.lines[0].id}:wh-a:{kg}"]
    )
    assert result.exit_code == 0, result.output
    assert "is now Partial" in result.output


class TestCatalog:

    def test_reload_updates(self, runner, tmp_path):
        result = runner.invoke(cli, ["catalog", "load", str(tmp_path / "catalog.json")])
        assert "Products: 0 added, 3 updated" in result.output
        assert "Locations: 0 added, 2 updated" in result.output

    def test_list(self, runner):
        result = runner.invoke(cli, ["catalog", "list"])
        assert result.exit_code == 0
        assert "Dinorado" in result.output
        assert "WH-B" in result.output

    def test_invalid_file(self, runner, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"products": [{"id": "x", "price": "-1"}]}), encoding="utf-8")
        result = runner.invoke(cli, ["catalog", "load", str(bad)])
        assert result.exit_code == 1
        assert "Invalid catalog file" in result.output


class TestInventory:

    def test_show_after_receipt(self, runner):
        _receive(runner, 300)
        result = runner.invoke(cli, ["inventory", "show", "--product", "rice"])
        assert result.exit_code == 0
        assert "Dinorado" in result.output
        assert "WH-A" in result.output

    def test_remove_too_much(self, runner):
        _receive(runner, 30)
        result = runner.invoke(cli, [
            "inventory", "adjust", "--product", "rice", "--location", "wh-a",
            "--type", "remove", "--quantity", "50", "--reason", "Flood",
        ])
        assert result.exit_code == 1
        assert "Cannot remove 50 of Dinorado" in result.output

    def test_move_and_reconcile(self, runner):
        _receive(runner, 30)
        result = runner.invoke(cli, [
            "inventory", "move", "--product", "rice", "--from", "wh-a", "--to", "wh-b",
            "--quantity", "20",
        ])
        assert "Source now 10, target now 20" in result.output

        result = runner.invoke(cli, ["inventory", "reconcile"])
        assert result.exit_code == 0
        assert "3 product(s) consistent with the ledger." in result.output

        result = runner.invoke(cli, ["inventory", "ledger", "--product", "rice"])
        assert result.output.count("STOCK_") == 3

    def test_mill_palay_into_sacks(self, runner):
        result = runner.invoke(cli, [
            "inventory", "adjust", "--product", "palay", "--location", "wh-a",
            "--type", "add", "--quantity", "150", "--reason", "Harvest intake",
        ])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, [
            "inventory", "mill", "--from-product", "palay", "--to-product", "rice",
            "--from", "wh-a", "--to", "wh-b", "--quantity", "150",
        ])
        assert result.exit_code == 0, result.output
        assert "Milled 150 kg into 2 sack(s) (100 kg). Source now 0, target now 100" in result.output

    def test_mill_partial_sack_rejected(self, runner):
        result = runner.invoke(cli, [
            "inventory", "mill", "--from-product", "palay", "--to-product", "rice",
            "--from", "wh-a", "--to", "wh-b", "--quantity", "100",
        ])
        assert result.exit_code == 1
        assert "multiple of 75 kg" in result.output


class TestOrders:

    def test_bad_item_format(self, runner):
        result = runner.invoke(cli, ["order", "create", "--customer", "Nena", "--items", "Dinorado"])
        assert result.exit_code == 2
        assert "Invalid item format" in result.output

    def test_unknown_product(self, runner):
        result = runner.invoke(cli, ["order", "create", "--customer", "Nena", "--items", "Jasmine:2"])
        assert result.exit_code == 1
        assert "Product not found" in result.output

    def test_backorder_is_held_until_restocked(self, runner):
        _receive(runner, 300)
        result = runner.invoke(
            cli, ["order", "create", "--customer", "Nena", "--items", "Dinorado:10"]
        )
        assert result.exit_code == 0, result.output
        order_id = result.output.split()[1].lstrip("#")

        result = runner.invoke(cli, ["order", "allocate", "--id", order_id])
        assert result.exit_code == 0, result.output
        assert "Backorder delivery #2 created" in result.output
        delivery_id = result.output.strip().split()[-1]

        result = runner.invoke(cli, ["delivery", "stock-check", "--id", delivery_id])
        assert "Needed: 4 sacks (200 kg)" in result.output

        result = runner.invoke(
            cli, ["delivery", "ship", "--id", delivery_id, "--status", "delivered"]
        )
        assert result.exit_code == 1
        assert "Cannot update shipment status for backorder" in result.output

    def test_cancel_returns_allocated_stock(self, runner):
        _receive(runner, 300)
        result = runner.invoke(
            cli, ["order", "create", "--customer", "Nena", "--items", "Dinorado:10"]
        )
        order_id = result.output.split()[1].lstrip("#")
        result = runner.invoke(cli, ["order", "allocate", "--id", order_id])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["order", "cancel", "--id", order_id])
        assert result.exit_code == 0, result.output
        assert "300 kg returned to inventory" in result.output

        result = runner.invoke(cli, ["inventory", "reconcile"])
        assert result.exit_code == 0, result.output
