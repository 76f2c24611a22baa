"""
Inventory Replenishment Engine – Domain Models

Entities the engine reads and mutates:
- Product (stock level, alert threshold, base cost)
- Supplier (active flag drives fallback recommendations)
- PurchaseOrder + PurchaseLineItem (freight, sub total, receipt status)
- AuditLog (state transition trail)

IMPORTANT:
- Allocated freight is derived at query time and never stored.
- PurchaseOrder.status leaves "pending" exactly once (see engine/receipt.py).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from .extensions import db


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
MINOR_UNIT = Decimal("0.01")


def _to_decimal(value) -> Decimal:
    """Convert Numeric/None to Decimal safely."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value))


def _money(x: Decimal) -> Decimal:
    return x.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------
# Order status
# ---------------------------------------------------------------------
STATUS_PENDING = "pending"
STATUS_RECEIVED = "received"
STATUS_CANCELLED = "cancelled"

ORDER_STATUSES = (STATUS_PENDING, STATUS_RECEIVED, STATUS_CANCELLED)

# ---------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------
class Product(db.Model):
    """Catalog item with its stock level and reorder threshold."""

    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(80), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)

    base_cost = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    stock_quantity = db.Column(db.Integer, nullable=False, default=0, index=True)
    alert_threshold = db.Column(db.Integer, nullable=False, default=5)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    purchase_lines = db.relationship("PurchaseLineItem", back_populates="product", lazy=True)

    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_product_stock_non_negative"),
        db.CheckConstraint("alert_threshold >= 0", name="ck_product_threshold_non_negative"),
    )

    def __repr__(self):
        return f"<Product {self.sku} stock={self.stock_quantity}>"


class Supplier(db.Model):
    __tablename__ = "suppliers"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False, index=True)
    email = db.Column(db.String(255))
    phone = db.Column(db.String(50))

    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    purchase_orders = db.relationship("PurchaseOrder", back_populates="supplier", lazy=True)

    def __repr__(self):
        return f"<Supplier {self.id} - {self.name}>"


# ---------------------------------------------------------------------
# Purchasing
# ---------------------------------------------------------------------
class PurchaseOrder(db.Model):
    __tablename__ = "purchase_orders"

    id = db.Column(db.Integer, primary_key=True)

    order_number = db.Column(db.String(50), nullable=False, unique=True, index=True)

    supplier_id = db.Column(
        db.Integer,
        db.ForeignKey("suppliers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Sum of line amounts before freight/tax
    sub_total = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    freight = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING, index=True)

    order_date = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    received_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    supplier = db.relationship("Supplier", back_populates="purchase_orders")

    lines = db.relationship(
        "PurchaseLineItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseLineItem.id",
    )

    __table_args__ = (
        db.CheckConstraint("freight >= 0", name="ck_order_freight_non_negative"),
        db.CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in ORDER_STATUSES) + ")", name="ck_order_status"
        ),
    )

    def recalc_sub_total(self):
        """Set sub_total from the current line amounts."""
        total = Decimal("0.00")
        for line in self.lines:
            total += _to_decimal(line.amount)
        self.sub_total = _money(total)

    def __repr__(self):
        return f"<PurchaseOrder {self.order_number} {self.status}>"


class PurchaseLineItem(db.Model):
    __tablename__ = "purchase_line_items"

    id = db.Column(db.Integer, primary_key=True)

    purchase_order_id = db.Column(
        db.Integer,
        db.ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Cost/history queries walk lines per product
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    quantity = db.Column(db.Integer, nullable=False, default=0)
    unit_cost = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    # quantity x unit_cost
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    purchase_order = db.relationship("PurchaseOrder", back_populates="lines")
    product = db.relationship("Product", back_populates="purchase_lines")

    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_line_quantity_non_negative"),
        db.CheckConstraint("amount >= 0", name="ck_line_amount_non_negative"),
    )

    def recalc_amount(self):
        if not self.quantity or not self.unit_cost:
            self.amount = Decimal("0.00")
            return
        self.amount = _money(Decimal(self.quantity) * _to_decimal(self.unit_cost))


# ---------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------
class AuditLog(db.Model):
    """Trail of applied state transitions."""

    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    entity_type = db.Column(db.String(50), nullable=False, index=True)
    entity_id = db.Column(db.Integer, nullable=False, index=True)

    action = db.Column(db.String(20), nullable=False, index=True)

    before_data = db.Column(db.Text, nullable=True)
    after_data = db.Column(db.Text, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
