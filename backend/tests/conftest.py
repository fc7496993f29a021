"""
Pytest fixtures for smart_inventory backend tests.

Provides a fresh in-memory database per test, two tenant shops with users,
a product factory, an alert recorder and a logged-in test client.
"""

import pytest

from smart_inventory import create_app
from smart_inventory.extensions import db
from smart_inventory.models import Shop, User, Product
from smart_inventory.models.auth import ROLE_OWNER, ROLE_MANAGER, ROLE_STAFF
from smart_inventory.services import email_service


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'SECRET_KEY': 'test-secret',
    'SMTP_USER': None,
    'SMTP_PASS': None,
}


@pytest.fixture(scope='function')
def app():
    """Create application with an empty schema for each test."""
    app = create_app(dict(TEST_CONFIG))

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    yield db.session
    db.session.rollback()


def _make_user(session, shop, email, role):
    # Pre-hashed placeholder; bcrypt cost 12 is too slow for every fixture
    user = User(shop_id=shop.id, email=email, password_hash="not-a-real-hash", role=role)
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def shop_a(db_session):
    """Shop A (first tenant)."""
    shop = Shop(name="Shop A - Corner Store")
    db_session.add(shop)
    db_session.commit()
    return shop


@pytest.fixture(scope='function')
def shop_b(db_session):
    """Shop B (second tenant)."""
    shop = Shop(name="Shop B - Beta Market")
    db_session.add(shop)
    db_session.commit()
    return shop


@pytest.fixture(scope='function')
def owner_a(db_session, shop_a):
    return _make_user(db_session, shop_a, "owner@shop-a.test", ROLE_OWNER)


@pytest.fixture(scope='function')
def manager_a(db_session, shop_a):
    return _make_user(db_session, shop_a, "manager@shop-a.test", ROLE_MANAGER)


@pytest.fixture(scope='function')
def staff_a(db_session, shop_a):
    return _make_user(db_session, shop_a, "staff@shop-a.test", ROLE_STAFF)


@pytest.fixture(scope='function')
def owner_b(db_session, shop_b):
    return _make_user(db_session, shop_b, "owner@shop-b.test", ROLE_OWNER)


@pytest.fixture(scope='function')
def make_product(db_session):
    """
    Factory for products inserted directly (no Initial Stock movement).

    make_product(shop, name="Widget", stock=10, price_cents=999, alert_sent=False)
    """
    counter = {"n": 0}

    def _make(shop, name="Widget", stock=10, price_cents=999, alert_sent=False, sku=None):
        counter["n"] += 1
        product = Product(
            shop_id=shop.id,
            sku=sku or f"TST-{counter['n']:06d}",
            name=name,
            price_cents=price_cents,
            stock_quantity=stock,
            low_stock_alert_sent=alert_sent,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


class AlertRecorder:
    """Captures alert emails instead of sending them."""

    def __init__(self):
        self.low_stock = []
        self.out_of_stock = []

    @property
    def total(self):
        return len(self.low_stock) + len(self.out_of_stock)

    def send_low_stock_alert(self, recipient, product_name, current_stock):
        self.low_stock.append((recipient, product_name, current_stock))
        return True

    def send_out_of_stock_alert(self, recipient, product_name):
        self.out_of_stock.append((recipient, product_name))
        return True


@pytest.fixture(scope='function')
def alerts(monkeypatch):
    recorder = AlertRecorder()
    monkeypatch.setattr(email_service, "send_low_stock_alert", recorder.send_low_stock_alert)
    monkeypatch.setattr(email_service, "send_out_of_stock_alert", recorder.send_out_of_stock_alert)
    return recorder


def login(client, user):
    """Helper to establish a session for a user (login itself lives elsewhere)."""
    with client.session_transaction() as sess:
        sess["user_id"] = user.id
    return client


@pytest.fixture(scope='function')
def login_as(client):
    def _login(user):
        return login(client, user)
    return _login
