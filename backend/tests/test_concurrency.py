# Overview: Threaded concurrency tests for stock mutations against a file-backed SQLite database.

"""
Concurrency tests.

Each worker thread pushes its own app context (own session and connection),
the way concurrent requests would. SQLite serializes the units of work via
BEGIN IMMEDIATE.
"""
import os
import tempfile
import threading
import unittest

from smart_inventory import create_app
from smart_inventory.errors import InsufficientStockError
from smart_inventory.extensions import db
from smart_inventory.models import Shop, User, Product, StockMovement
from smart_inventory.models.auth import ROLE_OWNER
from smart_inventory.services import sales_service, stock_service
from smart_inventory.services.stock_movement_service import movement_total


class ConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "SMTP_USER": None,
            "SMTP_PASS": None,
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            shop = Shop(name="Concurrency Shop")
            db.session.add(shop)
            db.session.commit()
            self.shop_id = shop.id

            user = User(
                shop_id=self.shop_id,
                email="concurrent@example.com",
                password_hash="dummy",
                role=ROLE_OWNER,
            )
            db.session.add(user)
            db.session.commit()
            self.user_id = user.id

            product = Product(
                shop_id=self.shop_id,
                sku="CON-000001",
                name="Concurrent Product",
                price_cents=1000,
                stock_quantity=1,
            )
            db.session.add(product)
            db.session.commit()
            self.product_id = product.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _run_threads(self, target, count):
        results = []
        lock = threading.Lock()

        def worker():
            with self.app.app_context():
                try:
                    outcome = target()
                    with lock:
                        results.append(outcome)
                except Exception as exc:
                    with lock:
                        results.append(exc)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker) for _ in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results

    def test_two_checkouts_for_last_unit(self):
        def checkout():
            return sales_service.checkout(
                self.shop_id, self.user_id, [{"product_id": self.product_id, "quantity": 1}]
            )

        results = self._run_threads(checkout, 2)

        successes = [r for r in results if isinstance(r, sales_service.SaleReceipt)]
        failures = [r for r in results if isinstance(r, InsufficientStockError)]
        self.assertEqual(len(successes), 1, results)
        self.assertEqual(len(failures), 1, results)
        self.assertEqual(failures[0].available, 0)

        with self.app.app_context():
            product = db.session.get(Product, self.product_id)
            self.assertEqual(product.stock_quantity, 0)
            self.assertTrue(product.low_stock_alert_sent)
            self.assertEqual(
                db.session.query(StockMovement).filter_by(product_id=self.product_id).count(), 1
            )

    def test_concurrent_restocks_are_not_lost(self):
        def restock():
            return stock_service.adjust_stock(
                shop_id=self.shop_id,
                product_id=self.product_id,
                actor_user_id=self.user_id,
                direction="add",
                quantity=1,
            )

        results = self._run_threads(restock, 8)

        errors = [r for r in results if isinstance(r, Exception)]
        self.assertFalse(errors)

        with self.app.app_context():
            product = db.session.get(Product, self.product_id)
            self.assertEqual(product.stock_quantity, 9)
            # Stock started at 1 without a movement row
            self.assertEqual(movement_total(self.product_id, self.shop_id), 8)


if __name__ == "__main__":
    unittest.main()
