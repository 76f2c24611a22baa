"""
inventory_engine/seed.py

Seed a small demo catalog: suppliers, products and purchase orders.

Rules:
- Safe to run multiple times (idempotent): rows are matched by supplier name,
  product SKU and order number.
- Orders are created as "pending" so the receipt transition can be exercised.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from .extensions import db
from .models import Product, PurchaseLineItem, PurchaseOrder, Supplier


DEFAULT_SUPPLIERS = [
    # name, email, is_active
    ("Acme Wholesale", "orders@acme.example", True),
    ("Blue River Traders", "sales@blueriver.example", True),
    ("Coastal Imports", "desk@coastal.example", False),
]


DEFAULT_PRODUCTS = [
    # sku, name, base_cost, stock_quantity, alert_threshold
    ("TEA-500", "Assam Tea 500g", Decimal("4.20"), 3, 10),
    ("RICE-5K", "Basmati Rice 5kg", Decimal("9.80"), 12, 10),
    ("OIL-1L", "Sunflower Oil 1L", Decimal("2.15"), 0, 0),
    ("SALT-1K", "Sea Salt 1kg", Decimal("0.90"), 40, 15),
]


DEFAULT_ORDERS = [
    # order_number, supplier name, freight, days ago, [(sku, quantity, unit_cost)]
    (
        "PO-DEMO-0001",
        "Acme Wholesale",
        Decimal("23.00"),
        20,
        [("TEA-500", 50, Decimal("5.00")), ("OIL-1L", 30, Decimal("2.50")), ("SALT-1K", 150, Decimal("0.90"))],
    ),
    (
        "PO-DEMO-0002",
        "Blue River Traders",
        Decimal("10.00"),
        5,
        [("RICE-5K", 20, Decimal("9.50")), ("TEA-500", 10, Decimal("4.10"))],
    ),
]


def _seed_suppliers() -> dict:
    by_name = {}
    for name, email, is_active in DEFAULT_SUPPLIERS:
        supplier = Supplier.query.filter_by(name=name).first()
        if not supplier:
            supplier = Supplier(name=name, email=email, is_active=is_active)
            db.session.add(supplier)
        by_name[name] = supplier
    return by_name


def _seed_products() -> dict:
    by_sku = {}
    for sku, name, base_cost, stock, threshold in DEFAULT_PRODUCTS:
        product = Product.query.filter_by(sku=sku).first()
        if not product:
            product = Product(
                sku=sku,
                name=name,
                base_cost=base_cost,
                stock_quantity=stock,
                alert_threshold=threshold,
            )
            db.session.add(product)
        by_sku[sku] = product
    return by_sku


def seed_demo_data() -> None:
    suppliers = _seed_suppliers()
    products = _seed_products()
    db.session.flush()

    now = datetime.utcnow()
    for order_number, supplier_name, freight, days_ago, items in DEFAULT_ORDERS:
        if PurchaseOrder.query.filter_by(order_number=order_number).first():
            continue

        order = PurchaseOrder(
            order_number=order_number,
            supplier=suppliers[supplier_name],
            freight=freight,
            order_date=now - timedelta(days=days_ago),
        )
        for sku, quantity, unit_cost in items:
            line = PurchaseLineItem(product=products[sku], quantity=quantity, unit_cost=unit_cost)
            line.recalc_amount()
            order.lines.append(line)
        order.recalc_sub_total()
        db.session.add(order)

    db.session.commit()
