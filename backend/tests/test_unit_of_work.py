# Overview: Pytest coverage for the unit-of-work boundary (rollback, retry, error mapping).

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from smart_inventory.errors import InsufficientStockError, PersistenceError
from smart_inventory.extensions import db
from smart_inventory.models import Product
from smart_inventory.services.alert_service import AlertOutbox
from smart_inventory.services.concurrency import run_in_unit_of_work


def _locked_error():
    return OperationalError("UPDATE products", {}, Exception("database is locked"))


class TestRunInUnitOfWork:

    def test_commits_result(self, shop_a, make_product):
        product = make_product(shop_a, stock=4)

        def op():
            db.session.get(Product, product.id).stock_quantity = 9
            return "done"

        assert run_in_unit_of_work(op) == "done"
        db.session.expire_all()
        assert db.session.get(Product, product.id).stock_quantity == 9

    def test_retries_transient_failures_with_fresh_state(self, shop_a, make_product):
        product = make_product(shop_a, stock=4)
        outboxes = []

        def op():
            outbox = AlertOutbox()
            outboxes.append(outbox)
            db.session.get(Product, product.id).stock_quantity = 7
            if len(outboxes) == 1:
                raise StaleDataError("version mismatch")
            return outbox

        result = run_in_unit_of_work(op, backoff_base=0)

        assert len(outboxes) == 2
        assert result is outboxes[1]
        assert db.session.get(Product, product.id).stock_quantity == 7

    def test_exhausted_retries_become_persistence_error(self, shop_a, make_product):
        product = make_product(shop_a, stock=4)
        calls = []

        def op():
            calls.append(1)
            db.session.get(Product, product.id).stock_quantity = 0
            raise _locked_error()

        with pytest.raises(PersistenceError):
            run_in_unit_of_work(op, attempts=3, backoff_base=0)

        assert len(calls) == 3
        assert db.session.get(Product, product.id).stock_quantity == 4

    def test_stock_error_rolls_back_and_propagates(self, shop_a, make_product):
        product = make_product(shop_a, stock=4)

        def op():
            db.session.get(Product, product.id).stock_quantity = 1
            db.session.flush()
            raise InsufficientStockError(product_id=product.id, product_name="Widget", available=4, requested=5)

        with pytest.raises(InsufficientStockError):
            run_in_unit_of_work(op)

        assert db.session.get(Product, product.id).stock_quantity == 4
