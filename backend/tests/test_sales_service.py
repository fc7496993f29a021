# Overview: Pytest coverage for atomic POS checkout.

import pytest

from smart_inventory.errors import (
    EmptyCartError,
    InsufficientStockError,
    InvalidCartLineError,
    NotFoundError,
    PersistenceError,
)
from smart_inventory.extensions import db
from smart_inventory.models import Notification, Product, StockMovement
from smart_inventory.services import sales_service, stock_service
from smart_inventory.services.alert_service import EVENT_OUT_OF_STOCK
from smart_inventory.services.sales_service import CartLine, SALE_REASON, TAX_RATE_BPS


def _stock(product_id):
    return db.session.get(Product, product_id).stock_quantity


def _movement_count(shop):
    return db.session.query(StockMovement).filter_by(shop_id=shop.id).count()


class TestCheckoutHappyPath:

    def test_single_unit_sale_receipt(self, shop_a, owner_a, staff_a, make_product, alerts):
        widget = make_product(shop_a, name="Widget", stock=1, price_cents=999)

        receipt = sales_service.checkout(
            shop_a.id, staff_a.id, [{"product_id": widget.id, "quantity": 1}]
        )

        assert receipt.subtotal_cents == 999
        assert receipt.tax_cents == 100
        assert receipt.grand_total_cents == 1099
        assert receipt.alerts_triggered == [EVENT_OUT_OF_STOCK]

        data = receipt.to_dict()
        assert data["subtotal"] == "9.99"
        assert data["tax"] == "1.00"
        assert data["grand_total"] == "10.99"
        assert data["timestamp"].endswith("Z")
        assert data["items"][0]["price"] == "9.99"
        assert data["items"][0]["total"] == "9.99"
        assert data["items"][0]["product_name"] == "Widget"

        assert _stock(widget.id) == 0
        assert db.session.get(Product, widget.id).low_stock_alert_sent is True

        [movement] = db.session.query(StockMovement).filter_by(product_id=widget.id).all()
        assert movement.quantity_change == -1
        assert movement.reason == SALE_REASON
        assert movement.user_id == staff_a.id

        # Owner is notified, not the cashier
        assert alerts.out_of_stock == [("owner@shop-a.test", "Widget")]
        note = db.session.query(Notification).filter_by(shop_id=shop_a.id).one()
        assert note.message == "Widget is now OUT OF STOCK!"

    def test_multi_line_totals(self, shop_a, staff_a, make_product, alerts):
        a = make_product(shop_a, name="A", stock=50, price_cents=250)
        b = make_product(shop_a, name="B", stock=50, price_cents=1005)

        receipt = sales_service.checkout(
            shop_a.id, staff_a.id,
            [CartLine(product_id=a.id, quantity=3), CartLine(product_id=b.id, quantity=2)],
        )

        assert receipt.subtotal_cents == 3 * 250 + 2 * 1005
        # 2760 * 10% = 276
        assert receipt.tax_cents == 276
        assert receipt.grand_total_cents == 3036
        assert [item.line_total_cents for item in receipt.items] == [750, 2010]
        assert _stock(a.id) == 47
        assert _stock(b.id) == 48
        assert alerts.total == 0

    def test_tax_rounds_to_nearest_cent(self, shop_a, staff_a, make_product, alerts):
        assert TAX_RATE_BPS == 1000
        item = make_product(shop_a, stock=50, price_cents=15)

        receipt = sales_service.checkout(shop_a.id, staff_a.id, [{"product_id": item.id, "quantity": 1}])

        # 1.5 cents rounds half-up to 2
        assert receipt.tax_cents == 2

    def test_same_product_on_two_lines(self, shop_a, staff_a, make_product, alerts):
        item = make_product(shop_a, stock=10)

        sales_service.checkout(
            shop_a.id, staff_a.id,
            [{"product_id": item.id, "quantity": 3}, {"product_id": item.id, "quantity": 4}],
        )

        assert _stock(item.id) == 3
        assert _movement_count(shop_a) == 2


class TestCheckoutAtomicity:

    def test_failing_third_line_rolls_back_everything(self, shop_a, staff_a, make_product, alerts):
        products = [make_product(shop_a, name=f"P{i}", stock=10) for i in range(1, 6)]
        cart = [{"product_id": p.id, "quantity": 1} for p in products]
        cart[2]["quantity"] = 11

        with pytest.raises(InsufficientStockError) as exc_info:
            sales_service.checkout(shop_a.id, staff_a.id, cart)

        assert str(exc_info.value) == "Insufficient stock for P3. Available: 10"
        assert exc_info.value.details["product_id"] == products[2].id
        assert [_stock(p.id) for p in products] == [10] * 5
        assert _movement_count(shop_a) == 0

    def test_rolled_back_sale_sends_no_alerts(self, shop_a, owner_a, staff_a, make_product, alerts):
        last_one = make_product(shop_a, name="Last One", stock=1)
        scarce = make_product(shop_a, name="Scarce", stock=2)

        with pytest.raises(InsufficientStockError):
            sales_service.checkout(
                shop_a.id, staff_a.id,
                [{"product_id": last_one.id, "quantity": 1}, {"product_id": scarce.id, "quantity": 3}],
            )

        assert alerts.total == 0
        assert db.session.query(Notification).count() == 0
        assert _stock(last_one.id) == 1
        assert db.session.get(Product, last_one.id).low_stock_alert_sent is False

    def test_failed_audit_insert_rolls_back_sale(self, shop_a, staff_a, make_product, alerts, monkeypatch):
        last_one = make_product(shop_a, name="Last One", stock=1)
        widget = make_product(shop_a, name="Widget", stock=6)
        real_insert = stock_service.record_stock_movement
        calls = []

        def fail_second_insert(**kwargs):
            calls.append(kwargs["product_id"])
            if len(calls) == 2:
                raise PersistenceError("Failed to record stock movement")
            return real_insert(**kwargs)

        monkeypatch.setattr(stock_service, "record_stock_movement", fail_second_insert)

        with pytest.raises(PersistenceError):
            sales_service.checkout(
                shop_a.id, staff_a.id,
                [{"product_id": last_one.id, "quantity": 1}, {"product_id": widget.id, "quantity": 2}],
            )

        assert calls == [last_one.id, widget.id]
        assert _stock(last_one.id) == 1
        assert _stock(widget.id) == 6
        assert db.session.get(Product, last_one.id).low_stock_alert_sent is False
        assert db.session.get(Product, widget.id).low_stock_alert_sent is False
        assert _movement_count(shop_a) == 0
        assert alerts.total == 0
        assert db.session.query(Notification).count() == 0

    def test_duplicate_lines_exceeding_stock_roll_back(self, shop_a, staff_a, make_product, alerts):
        item = make_product(shop_a, name="Widget", stock=5)

        with pytest.raises(InsufficientStockError) as exc_info:
            sales_service.checkout(
                shop_a.id, staff_a.id,
                [{"product_id": item.id, "quantity": 3}, {"product_id": item.id, "quantity": 3}],
            )

        assert exc_info.value.available == 2
        assert _stock(item.id) == 5

    def test_unknown_product_rolls_back_earlier_lines(self, shop_a, staff_a, make_product, alerts):
        item = make_product(shop_a, stock=5)

        with pytest.raises(NotFoundError):
            sales_service.checkout(
                shop_a.id, staff_a.id,
                [{"product_id": item.id, "quantity": 1}, {"product_id": 99999, "quantity": 1}],
            )

        assert _stock(item.id) == 5

    def test_other_shop_product_is_not_found(self, shop_a, shop_b, staff_a, make_product, alerts):
        foreign = make_product(shop_b, stock=5)

        with pytest.raises(NotFoundError):
            sales_service.checkout(shop_a.id, staff_a.id, [{"product_id": foreign.id, "quantity": 1}])

        assert _stock(foreign.id) == 5


class TestCheckoutValidation:

    @pytest.mark.parametrize("cart", [None, [], (), "cart", {"product_id": 1}])
    def test_empty_or_malformed_cart(self, shop_a, staff_a, cart):
        with pytest.raises(EmptyCartError):
            sales_service.checkout(shop_a.id, staff_a.id, cart)

    @pytest.mark.parametrize(
        "line",
        [
            {"product_id": 1, "quantity": 0},
            {"product_id": 1, "quantity": -2},
            {"product_id": 1, "quantity": 1.5},
            {"product_id": 1, "quantity": "2"},
            {"product_id": None, "quantity": 1},
            {"quantity": 1},
            "not-a-line",
        ],
    )
    def test_invalid_line(self, shop_a, staff_a, make_product, line):
        item = make_product(shop_a, stock=5)

        with pytest.raises(InvalidCartLineError):
            sales_service.checkout(
                shop_a.id, staff_a.id, [{"product_id": item.id, "quantity": 1}, line]
            )

        assert _stock(item.id) == 5
