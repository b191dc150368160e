"""Unit tests for ledger entries: sign rules and replay."""

import pytest

from ricemill.domain.exceptions import InvalidQuantity, InvalidTransactionKind
from ricemill.domain.model.ledger import InventoryTransaction, TransactionKind, replay


def _entry(kind: TransactionKind, quantity: int, location_id: str | None = "wh-a"):
    return InventoryTransaction(
        product_id="rice", kind=kind, quantity=quantity, location_id=location_id
    )


class TestTransactionKind:

    def test_parse_is_case_insensitive(self):
        assert TransactionKind.parse("stock_in") is TransactionKind.STOCK_IN

    def test_parse_unknown(self):
        with pytest.raises(InvalidTransactionKind, match="Unknown transaction kind"):
            TransactionKind.parse("TELEPORT")

    def test_directions(self):
        assert TransactionKind.RETURN_IN.is_inbound
        assert TransactionKind.RETURN_OUT.is_outbound
        assert not TransactionKind.ADJUSTMENT.is_inbound
        assert not TransactionKind.ADJUSTMENT.is_outbound

    def test_on_order_never_touches_on_hand(self):
        assert not TransactionKind.PO_ON_ORDER.affects_on_hand
        assert TransactionKind.STOCK_IN.affects_on_hand


class TestValidate:

    @pytest.mark.parametrize(
        "kind, quantity",
        [
            (TransactionKind.STOCK_IN, 60),
            (TransactionKind.RETURN_IN, 5),
            (TransactionKind.STOCK_OUT, -300),
            (TransactionKind.RETURN_OUT, -5),
            (TransactionKind.ADJUSTMENT, 10),
            (TransactionKind.ADJUSTMENT, -10),
        ],
    )
    def test_valid_signs(self, kind, quantity):
        _entry(kind, quantity).validate()

    @pytest.mark.parametrize(
        "kind, quantity",
        [
            (TransactionKind.STOCK_IN, -60),
            (TransactionKind.RETURN_IN, -1),
            (TransactionKind.STOCK_OUT, 300),
            (TransactionKind.RETURN_OUT, 1),
        ],
    )
    def test_sign_contradicting_kind(self, kind, quantity):
        with pytest.raises(InvalidTransactionKind, match="quantity"):
            _entry(kind, quantity).validate()

    def test_zero_rejected(self):
        with pytest.raises(InvalidQuantity, match="cannot be zero"):
            _entry(TransactionKind.ADJUSTMENT, 0).validate()

    def test_location_required_for_on_hand_kinds(self):
        with pytest.raises(InvalidTransactionKind, match="require a location"):
            _entry(TransactionKind.STOCK_IN, 10, location_id=None).validate()

    def test_on_order_takes_either_sign_without_location(self):
        _entry(TransactionKind.PO_ON_ORDER, 100, location_id=None).validate()
        _entry(TransactionKind.PO_ON_ORDER, -100, location_id=None).validate()

    def test_on_order_with_location_rejected(self):
        with pytest.raises(InvalidTransactionKind, match="cannot reference a location"):
            _entry(TransactionKind.PO_ON_ORDER, 100).validate()

    def test_unknown_kind_rejected(self):
        entry = InventoryTransaction(
            product_id="rice", kind="STOCK_IN", quantity=1, location_id="wh-a"
        )
        with pytest.raises(InvalidTransactionKind):
            entry.validate()


class TestReplay:

    def test_sums_per_product_and_location(self):
        entries = [
            _entry(TransactionKind.STOCK_IN, 100, "wh-a"),
            _entry(TransactionKind.STOCK_OUT, -30, "wh-a"),
            _entry(TransactionKind.STOCK_IN, 20, "wh-b"),
            _entry(TransactionKind.ADJUSTMENT, -5, "wh-b"),
        ]
        assert replay(entries) == {("rice", "wh-a"): 70, ("rice", "wh-b"): 15}

    def test_ignores_on_order_entries(self):
        entries = [
            _entry(TransactionKind.PO_ON_ORDER, 100, None),
            _entry(TransactionKind.STOCK_IN, 60, "wh-a"),
            _entry(TransactionKind.PO_ON_ORDER, -60, None),
        ]
        assert replay(entries) == {("rice", "wh-a"): 60}

    def test_empty(self):
        assert replay([]) == {}
