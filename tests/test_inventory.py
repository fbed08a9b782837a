"""Tests for the inventory ledger's stock mutations."""

import pytest

from storefront.core.exceptions import ResourceNotFoundError, StorageError
from storefront.services.inventory import InventoryLedger


class TestConditionalDecrement:

    def test_decrements_when_enough_stock(self, session, make_product, read_stock):
        product_id = make_product(stock=5)
        ledger = InventoryLedger(session)

        assert ledger.conditional_decrement(product_id, 3) is True
        session.commit()

        assert read_stock(product_id) == 2

    def test_can_take_exactly_the_remaining_stock(self, session, make_product, read_stock):
        product_id = make_product(stock=2)
        ledger = InventoryLedger(session)

        assert ledger.conditional_decrement(product_id, 2) is True
        session.commit()

        assert read_stock(product_id) == 0

    def test_insufficient_stock_returns_false_without_change(self, session, make_product, read_stock):
        product_id = make_product(stock=1)
        ledger = InventoryLedger(session)

        assert ledger.conditional_decrement(product_id, 2) is False
        session.commit()

        assert read_stock(product_id) == 1

    def test_unknown_product_is_a_storage_error(self, session):
        ledger = InventoryLedger(session)
        with pytest.raises(StorageError):
            ledger.conditional_decrement(999, 1)

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_rejects_non_positive_quantity(self, session, make_product, quantity):
        product_id = make_product(stock=5)
        with pytest.raises(ValueError):
            InventoryLedger(session).conditional_decrement(product_id, quantity)

    def test_uncommitted_decrement_is_undone_by_rollback(self, session, make_product, read_stock):
        product_id = make_product(stock=4)
        ledger = InventoryLedger(session)

        ledger.conditional_decrement(product_id, 4)
        session.rollback()

        assert read_stock(product_id) == 4


class TestIncrement:

    def test_adds_stock(self, session, make_product, read_stock):
        product_id = make_product(stock=0)
        InventoryLedger(session).increment(product_id, 7)
        session.commit()

        assert read_stock(product_id) == 7

    def test_unknown_product_is_a_storage_error(self, session):
        with pytest.raises(StorageError):
            InventoryLedger(session).increment(12345, 1)


class TestGetAvailable:

    def test_reads_current_stock(self, session, make_product):
        product_id = make_product(stock=9)
        assert InventoryLedger(session).get_available(product_id) == 9

    def test_sees_own_uncommitted_decrement(self, session, make_product):
        product_id = make_product(stock=9)
        ledger = InventoryLedger(session)
        ledger.conditional_decrement(product_id, 4)

        assert ledger.get_available(product_id) == 5

    def test_unknown_product(self, session):
        with pytest.raises(ResourceNotFoundError):
            InventoryLedger(session).get_available(42)
