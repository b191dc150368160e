"""Unit tests for StockLedger posting, reconciliation and rebuild."""

import pytest

from ricemill.domain.exceptions import (
    InsufficientStock,
    InvalidTransactionKind,
    LocationInactiveOrMissing,
)
from ricemill.domain.model.ledger import InventoryTransaction, TransactionKind
from ricemill.domain.service.stock_ledger import StockLedger
from tests.fakes import FakeUnitOfWork, location, milled_rice, seed_stock


def _uow() -> FakeUnitOfWork:
    return FakeUnitOfWork(
        products=[milled_rice()],
        locations=[location("wh-a"), location("wh-b"), location("old", active=False)],
    )


def _post(uow, kind, quantity, location_id="wh-a"):
    with uow:
        ledger = StockLedger(uow)
        locked = ledger.lock({"rice"}, {("rice", location_id)} if location_id else set())
        entry = ledger.post(
            InventoryTransaction(
                product_id="rice", kind=kind, quantity=quantity, location_id=location_id
            ),
            locked.product("rice"),
            locked,
        )
        uow.commit()
    return entry


class TestPost:

    def test_first_credit_creates_row(self):
        uow = _uow()
        _post(uow, TransactionKind.STOCK_IN, 60)
        assert uow.inventory.get("rice", "wh-a").quantity == 60
        assert uow.products.get_by_id("rice").stock_on_hand == 60

    def test_entry_ids_are_monotonic(self):
        uow = _uow()
        first = _post(uow, TransactionKind.STOCK_IN, 60)
        second = _post(uow, TransactionKind.STOCK_OUT, -10)
        assert second.id > first.id

    def test_debit_beyond_balance_rejected(self):
        uow = _uow()
        _post(uow, TransactionKind.STOCK_IN, 30)
        with pytest.raises(InsufficientStock):
            _post(uow, TransactionKind.STOCK_OUT, -50)
        assert uow.inventory.get("rice", "wh-a").quantity == 30
        assert len(uow.ledger.list_all()) == 1

    def test_debit_from_empty_location_rejected(self):
        uow = _uow()
        with pytest.raises(InsufficientStock) as exc_info:
            _post(uow, TransactionKind.STOCK_OUT, -1, "wh-b")
        assert exc_info.value.available == 0

    def test_wrong_sign_rejected_before_any_write(self):
        uow = _uow()
        with pytest.raises(InvalidTransactionKind):
            _post(uow, TransactionKind.STOCK_IN, -5)
        assert uow.ledger.list_all() == []

    def test_on_order_moves_only_on_order(self):
        uow = _uow()
        _post(uow, TransactionKind.PO_ON_ORDER, 100, location_id=None)
        product = uow.products.get_by_id("rice")
        assert product.stock_on_order == 100
        assert product.stock_on_hand == 0
        assert uow.inventory.list_all() == []

    def test_lock_order_is_sorted(self):
        uow = _uow()
        with uow:
            StockLedger(uow).lock({"rice"}, {("rice", "wh-b"), ("rice", "wh-a")})
            assert uow.inventory.locked == [("rice", "wh-a"), ("rice", "wh-b")]


class TestRequireLocation:

    def test_missing(self):
        with pytest.raises(LocationInactiveOrMissing, match="does not exist"):
            StockLedger(_uow()).require_location("nowhere")

    def test_inactive_cannot_accept_stock(self):
        with pytest.raises(LocationInactiveOrMissing, match="inactive"):
            StockLedger(_uow()).require_location("old")

    def test_inactive_can_release_stock(self):
        loc = StockLedger(_uow()).require_location("old", accepting_stock=False)
        assert loc.id == "old"


class TestReconcile:

    def test_consistent_after_postings(self):
        uow = _uow()
        seed_stock(uow, "rice", "wh-a", 500)
        _post(uow, TransactionKind.STOCK_OUT, -300)
        _post(uow, TransactionKind.ADJUSTMENT, 20, "wh-b")
        report = StockLedger(uow).reconcile("rice")
        assert report.is_consistent
        assert report.ledger_total == 220

    def test_detects_and_rebuilds_drift(self):
        uow = _uow()
        seed_stock(uow, "rice", "wh-a", 500)
        uow.inventory.get("rice", "wh-a").quantity = 480
        uow.products.get_by_id("rice").stock_on_hand = 999

        report = StockLedger(uow).reconcile("rice")
        assert not report.is_consistent
        assert report.location_drift == {"wh-a": (500, 480)}
        assert report.cached_on_hand == 999

        with uow:
            fixed = StockLedger(uow).rebuild("rice")
            uow.commit()
        assert fixed.is_consistent
        assert uow.inventory.get("rice", "wh-a").quantity == 500
        assert uow.products.get_by_id("rice").stock_on_hand == 500

    def test_rebuild_fixes_cached_total_only(self):
        uow = _uow()
        seed_stock(uow, "rice", "wh-a", 100)
        uow.products.get_by_id("rice").stock_on_hand = 0
        with uow:
            fixed = StockLedger(uow).rebuild("rice")
            uow.commit()
        assert fixed.is_consistent
        assert uow.products.get_by_id("rice").stock_on_hand == 100
