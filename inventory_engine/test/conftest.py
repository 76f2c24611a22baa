"""
Pytest configuration and fixtures for the engine tests.

Each test gets a fresh app on TestConfig (in-memory SQLite, strict allocation
checks) with the schema created, plus factory helpers for catalog and orders.
"""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from inventory_engine import create_app
from inventory_engine.extensions import db as _db
from inventory_engine.models import Product, PurchaseLineItem, PurchaseOrder, Supplier
from inventory_engine.repository import SqlAlchemyInventoryRepository


@pytest.fixture
def app():
    """Create Flask application for testing"""
    app = create_app("config.TestConfig")

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session(app):
    return _db.session


@pytest.fixture
def repository(session):
    return SqlAlchemyInventoryRepository(session)


@pytest.fixture
def make_supplier(session):
    def _make(name="Acme Wholesale", is_active=True):
        supplier = Supplier(name=name, is_active=is_active)
        session.add(supplier)
        session.commit()
        return supplier

    return _make


@pytest.fixture
def make_product(session):
    counter = {"n": 0}

    def _make(stock=0, threshold=5, base_cost="10.00", sku=None, name=None):
        counter["n"] += 1
        product = Product(
            sku=sku or f"SKU-{counter['n']:03d}",
            name=name or f"Product {counter['n']}",
            base_cost=Decimal(base_cost),
            stock_quantity=stock,
            alert_threshold=threshold,
        )
        session.add(product)
        session.commit()
        return product

    return _make


@pytest.fixture
def make_order(session):
    """
    Build a purchase order.

    lines: list of (product, quantity, unit_cost). sub_total defaults to the sum
    of line amounts; days_ago sets order_date relative to now.
    """
    counter = {"n": 0}

    def _make(supplier, lines, freight="0.00", status="pending", days_ago=0, sub_total=None):
        counter["n"] += 1
        order = PurchaseOrder(
            order_number=f"PO-TEST-{counter['n']:04d}",
            supplier=supplier,
            freight=Decimal(freight),
            status=status,
            order_date=datetime.utcnow() - timedelta(days=days_ago),
        )
        for product, quantity, unit_cost in lines:
            line = PurchaseLineItem(product=product, quantity=quantity, unit_cost=Decimal(unit_cost))
            line.recalc_amount()
            order.lines.append(line)
        order.recalc_sub_total()
        if sub_total is not None:
            order.sub_total = Decimal(sub_total)
        session.add(order)
        session.commit()
        return order

    return _make
