"""
In-memory InventoryRepository doubles.

Objects are SimpleNamespace records shaped like the ORM models, so engine
components can be exercised without a database.
"""
from contextlib import contextmanager
from decimal import Decimal
from types import SimpleNamespace

from inventory_engine.errors import AggregationFailed, NotFound
from inventory_engine.repository import InventoryRepository


def product(id, stock, threshold, base_cost="0.00"):
    return SimpleNamespace(
        id=id,
        sku=f"SKU-{id}",
        name=f"Product {id}",
        stock_quantity=stock,
        alert_threshold=threshold,
        base_cost=Decimal(base_cost),
    )


def supplier(id, name, is_active=True):
    return SimpleNamespace(id=id, name=name, is_active=is_active)


def order(id, supplier, lines, freight="0.00", status="pending"):
    """lines: list of (line_id, product_id, quantity, amount)."""
    record = SimpleNamespace(
        id=id,
        supplier=supplier,
        supplier_id=supplier.id,
        freight=Decimal(freight),
        status=status,
        received_at=None,
        lines=[],
    )
    for line_id, product_id, quantity, amount in lines:
        record.lines.append(
            SimpleNamespace(
                id=line_id,
                product_id=product_id,
                quantity=quantity,
                amount=Decimal(amount),
                purchase_order=record,
            )
        )
    record.sub_total = sum((line.amount for line in record.lines), Decimal("0.00"))
    return record


class InMemoryRepository(InventoryRepository):
    def __init__(self, products=(), suppliers=(), orders=()):
        self.products = {p.id: p for p in products}
        self.suppliers = list(suppliers)
        self.orders = {o.id: o for o in orders}
        self.transitions = []

    def find_products_below_threshold(self, limit=None):
        low = sorted(
            (p for p in self.products.values() if p.stock_quantity <= p.alert_threshold),
            key=lambda p: (p.stock_quantity, p.id),
        )
        return low if limit is None else low[:limit]

    def get_product(self, product_id):
        return self.products.get(product_id)

    def _lines_for(self, product_id):
        for o in sorted(self.orders.values(), key=lambda o: o.id):
            if o.status == "cancelled":
                continue
            for line in o.lines:
                if line.product_id == product_id:
                    yield line

    def find_recent_purchase_lines(self, product_id, limit):
        # higher order id means more recent
        lines = sorted(self._lines_for(product_id), key=lambda l: (l.purchase_order.id, l.id), reverse=True)
        return lines[:limit]

    def find_purchase_lines_for_product(self, product_id):
        return list(self._lines_for(product_id))

    def find_active_suppliers(self, limit):
        return sorted((s for s in self.suppliers if s.is_active), key=lambda s: s.name)[:limit]

    def get_order(self, order_id):
        return self.orders.get(order_id)

    def total_freight(self):
        return sum((o.freight for o in self.orders.values() if o.status != "cancelled"), Decimal("0.00"))

    def increment_stock(self, product_id, delta):
        if product_id not in self.products:
            raise NotFound("product", product_id)
        self.products[product_id].stock_quantity += delta
        return self.products[product_id]

    def set_order_status(self, order_id, status, guard_status, received_at=None):
        record = self.orders.get(order_id)
        if record is None or record.status != guard_status:
            return False
        record.status = status
        if received_at is not None:
            record.received_at = received_at
        return True

    def record_transition(self, order, action, before, after):
        self.transitions.append((order.id, action, before, after))

    @contextmanager
    def atomic(self):
        yield


class UnavailableRepository(InMemoryRepository):
    """Every store call fails, as when the database is unreachable."""

    def _down(self, *args, **kwargs):
        raise AggregationFailed("store unreachable")

    find_products_below_threshold = _down
    get_product = _down
    find_recent_purchase_lines = _down
    find_purchase_lines_for_product = _down
    find_active_suppliers = _down
    get_order = _down
    total_freight = _down
