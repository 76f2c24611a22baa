"""
Replenishment planning.

Combines the low-stock scan with supplier ranking into one recommendation batch:
a reorder quantity per low-stock product and a single supplier shortlist for the
whole batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import List, Optional

from ..errors import EngineError, ValidationError
from ..models import Product
from .results import RESULT_EMPTY, RESULT_FAILED, RESULT_OK
from .stock_monitor import StockMonitor
from .supplier_ranker import SupplierCandidate, SupplierRanker

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_FACTOR = Decimal("1.2")

PLAN_OK = RESULT_OK
PLAN_EMPTY = RESULT_EMPTY
PLAN_FAILED = RESULT_FAILED


@dataclass
class ReplenishmentPlan:
    """
    products and recommended_quantities are positionally aligned.

    status tells a legitimately empty plan ("empty") apart from one that could
    not be computed ("failed", with `error` set); both carry empty collections.
    """

    products: List[Product] = field(default_factory=list)
    recommended_quantities: List[int] = field(default_factory=list)
    recommended_suppliers: List[SupplierCandidate] = field(default_factory=list)
    status: str = PLAN_EMPTY
    error: Optional[str] = None
    used_fallback_suppliers: bool = False

    @classmethod
    def failed(cls, error: str) -> "ReplenishmentPlan":
        return cls(status=PLAN_FAILED, error=error)


def _as_buffer_factor(value) -> Decimal:
    try:
        factor = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("buffer_factor must be a number") from None
    if not factor.is_finite() or factor <= 0:
        raise ValidationError("buffer_factor must be greater than zero")
    return factor


def reorder_quantity(product: Product, buffer_factor: Decimal) -> int:
    """ceil(alert_threshold x buffer_factor) - stock_quantity, never below 1."""
    target = (Decimal(product.alert_threshold or 0) * buffer_factor).to_integral_value(
        rounding=ROUND_CEILING
    )
    return max(int(target) - (product.stock_quantity or 0), 1)


class ReplenishmentPlanner:
    def __init__(
        self,
        stock_monitor: StockMonitor,
        supplier_ranker: SupplierRanker,
        buffer_factor=DEFAULT_BUFFER_FACTOR,
    ):
        self.stock_monitor = stock_monitor
        self.supplier_ranker = supplier_ranker
        self.buffer_factor = _as_buffer_factor(buffer_factor)

    def plan_replenishment(self, buffer_factor=None, history_limit: Optional[int] = None) -> ReplenishmentPlan:
        """
        Build the recommendation batch.

        Invalid arguments raise ValidationError. Store or lookup failures are
        logged and reported as a failed (empty) plan instead of raising.
        """
        factor = self.buffer_factor if buffer_factor is None else _as_buffer_factor(buffer_factor)
        if history_limit is not None and history_limit < 1:
            raise ValidationError("history_limit must be at least 1")

        try:
            products = self.stock_monitor.scan_low_stock()
            if not products:
                return ReplenishmentPlan(status=PLAN_EMPTY)

            quantities = [reorder_quantity(product, factor) for product in products]
            ranking = self.supplier_ranker.rank_batch([p.id for p in products], history_limit)
        except EngineError as exc:
            logger.exception("replenishment planning failed", extra={"status": PLAN_FAILED})
            return ReplenishmentPlan.failed(f"{exc.code}: {exc}")

        return ReplenishmentPlan(
            products=products,
            recommended_quantities=quantities,
            recommended_suppliers=ranking.recommended,
            status=PLAN_OK,
            used_fallback_suppliers=ranking.used_fallback,
        )
