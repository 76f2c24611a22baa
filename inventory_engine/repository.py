"""
inventory_engine/repository.py

The one persistence seam of the engine.

Every engine component receives an InventoryRepository instead of touching the
global db.session. SqlAlchemyInventoryRepository is the production implementation;
tests substitute in-memory subclasses.

IMPORTANT:
- Store failures (sqlalchemy.exc.SQLAlchemyError) never leak past this module.
  They are re-raised as AggregationFailed so callers can tell "store down"
  apart from "nothing found".
- The repository never retries.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from functools import wraps
from typing import Any, Callable, Iterator, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import contains_eager, selectinload

from .audit import log_action
from .errors import AggregationFailed, NotFound
from .models import (
    STATUS_CANCELLED,
    Product,
    PurchaseLineItem,
    PurchaseOrder,
    Supplier,
    _money,
    _to_decimal,
)

logger = logging.getLogger(__name__)


def _store_errors(method: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator: translate driver/ORM failures into AggregationFailed."""
    @wraps(method)
    def wrapper(self, *args: Any, **kwargs: Any):
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error("store call %s failed: %s", method.__name__, exc)
            raise AggregationFailed(f"store call {method.__name__} failed") from exc

    return wrapper


class InventoryRepository:
    """
    Read/write contract the engine depends on.

    Subclasses implement every method; the base class only documents the contract.
    """

    def find_products_below_threshold(self, limit: Optional[int] = None) -> List[Product]:
        """Products with stock_quantity <= alert_threshold, lowest stock first."""
        raise NotImplementedError

    def get_product(self, product_id: int) -> Optional[Product]:
        raise NotImplementedError

    def find_recent_purchase_lines(self, product_id: int, limit: int) -> List[PurchaseLineItem]:
        """Most recent lines for a product; each line's order and supplier resolvable."""
        raise NotImplementedError

    def find_purchase_lines_for_product(self, product_id: int) -> List[PurchaseLineItem]:
        """Every non-cancelled line for a product, with the owning order's lines loaded."""
        raise NotImplementedError

    def find_active_suppliers(self, limit: int) -> List[Supplier]:
        """Active suppliers ordered by name."""
        raise NotImplementedError

    def get_order(self, order_id: int) -> Optional[PurchaseOrder]:
        raise NotImplementedError

    def total_freight(self) -> Decimal:
        """Freight summed over every non-cancelled order."""
        raise NotImplementedError

    def increment_stock(self, product_id: int, delta: int) -> Product:
        raise NotImplementedError

    def set_order_status(
        self,
        order_id: int,
        status: str,
        guard_status: str,
        received_at: Optional[datetime] = None,
    ) -> bool:
        """Conditional update; True only when the row was in guard_status and changed."""
        raise NotImplementedError

    def record_transition(self, order: PurchaseOrder, action: str, before: dict, after: dict) -> None:
        raise NotImplementedError

    def atomic(self):
        """Context manager running the enclosed block as one transaction."""
        raise NotImplementedError


class SqlAlchemyInventoryRepository(InventoryRepository):
    """InventoryRepository over a SQLAlchemy session (db.session in the app)."""

    def __init__(self, session):
        self.session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    @_store_errors
    def find_products_below_threshold(self, limit: Optional[int] = None) -> List[Product]:
        q = (
            self.session.query(Product)
            .filter(Product.stock_quantity <= Product.alert_threshold)
            .order_by(Product.stock_quantity.asc(), Product.id.asc())
        )
        if limit is not None:
            q = q.limit(limit)
        return q.all()

    @_store_errors
    def get_product(self, product_id: int) -> Optional[Product]:
        return self.session.get(Product, product_id)

    @_store_errors
    def find_recent_purchase_lines(self, product_id: int, limit: int) -> List[PurchaseLineItem]:
        return (
            self.session.query(PurchaseLineItem)
            .join(PurchaseLineItem.purchase_order)
            .options(contains_eager(PurchaseLineItem.purchase_order).joinedload(PurchaseOrder.supplier))
            .filter(
                PurchaseLineItem.product_id == product_id,
                PurchaseOrder.status != STATUS_CANCELLED,
            )
            .order_by(PurchaseOrder.order_date.desc(), PurchaseLineItem.id.desc())
            .limit(limit)
            .all()
        )

    @_store_errors
    def find_purchase_lines_for_product(self, product_id: int) -> List[PurchaseLineItem]:
        return (
            self.session.query(PurchaseLineItem)
            .join(PurchaseLineItem.purchase_order)
            .options(contains_eager(PurchaseLineItem.purchase_order).selectinload(PurchaseOrder.lines))
            .filter(
                PurchaseLineItem.product_id == product_id,
                PurchaseOrder.status != STATUS_CANCELLED,
            )
            .order_by(PurchaseOrder.id.asc(), PurchaseLineItem.id.asc())
            .all()
        )

    @_store_errors
    def find_active_suppliers(self, limit: int) -> List[Supplier]:
        return (
            self.session.query(Supplier)
            .filter(Supplier.is_active.is_(True))
            .order_by(Supplier.name.asc(), Supplier.id.asc())
            .limit(limit)
            .all()
        )

    @_store_errors
    def get_order(self, order_id: int) -> Optional[PurchaseOrder]:
        return (
            self.session.query(PurchaseOrder)
            .options(selectinload(PurchaseOrder.lines))
            .filter(PurchaseOrder.id == order_id)
            .one_or_none()
        )

    @_store_errors
    def total_freight(self) -> Decimal:
        total = (
            self.session.query(func.coalesce(func.sum(PurchaseOrder.freight), 0))
            .filter(PurchaseOrder.status != STATUS_CANCELLED)
            .scalar()
        )
        return _money(_to_decimal(total))

    # ------------------------------------------------------------------
    # Writes (call inside atomic())
    # ------------------------------------------------------------------
    @_store_errors
    def increment_stock(self, product_id: int, delta: int) -> Product:
        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock_quantity=Product.stock_quantity + delta)
        )
        if result.rowcount != 1:
            raise NotFound("product", product_id)
        return self.session.get(Product, product_id, populate_existing=True)

    @_store_errors
    def set_order_status(
        self,
        order_id: int,
        status: str,
        guard_status: str,
        received_at: Optional[datetime] = None,
    ) -> bool:
        values: dict = {"status": status}
        if received_at is not None:
            values["received_at"] = received_at

        result = self.session.execute(
            update(PurchaseOrder)
            .where(PurchaseOrder.id == order_id, PurchaseOrder.status == guard_status)
            .values(**values)
        )
        return result.rowcount == 1

    @_store_errors
    def record_transition(self, order: PurchaseOrder, action: str, before: dict, after: dict) -> None:
        log_action(self.session, order, action, before=before, after=after)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        try:
            yield
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise AggregationFailed("transaction failed") from exc
        except Exception:
            self.session.rollback()
            raise
