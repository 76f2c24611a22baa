"""
True (landed) cost per product.

true_cost = base_cost + the freight allocated to every historical purchase line
of the product. Each owning order's allocation is re-derived on demand; nothing
is cached between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional

from ..errors import EngineError, InvariantViolation, NotFound, require_positive_id
from ..models import _money, _to_decimal
from ..repository import InventoryRepository
from .freight import allocate_freight
from .results import RESULT_FAILED, RESULT_NOT_FOUND, RESULT_OK

logger = logging.getLogger(__name__)

COST_OK = RESULT_OK
COST_NOT_FOUND = RESULT_NOT_FOUND
COST_FAILED = RESULT_FAILED


@dataclass
class TrueCost:
    """
    Cumulative landed cost record.

    allocated_freight is summed over the product's whole purchase history and is
    not divided by purchased_quantity; callers wanting a per-unit figure derive
    it from the two fields.
    """

    product_id: int
    base_cost: Decimal = Decimal("0.00")
    allocated_freight: Decimal = Decimal("0.00")
    true_cost: Decimal = Decimal("0.00")
    purchased_quantity: int = 0
    status: str = COST_OK
    error: Optional[str] = None

    @classmethod
    def zero(cls, product_id: int, status: str, error: Optional[str] = None) -> "TrueCost":
        return cls(product_id=product_id, status=status, error=error)


class CostResolver:
    def __init__(self, repository: InventoryRepository, strict: bool = False):
        self.repository = repository
        self.strict = strict

    def allocation_for_order(self, order_id: int) -> Dict[int, Decimal]:
        """Freight allocation map (line id -> amount) of one order."""
        order_id = require_positive_id(order_id, "order_id")
        order = self.repository.get_order(order_id)
        if order is None:
            raise NotFound("purchase order", order_id)
        return allocate_freight(order, order.lines, strict=self.strict)

    def true_cost(self, product_id: int) -> TrueCost:
        """
        Landed cost record for a product.

        Unknown products and store failures come back as zeroed records with
        status "not_found" / "failed". Allocation invariant violations propagate.
        """
        product_id = require_positive_id(product_id, "product_id")

        try:
            product = self.repository.get_product(product_id)
            if product is None:
                return TrueCost.zero(product_id, COST_NOT_FOUND)

            allocations: Dict[int, Dict[int, Decimal]] = {}
            freight_total = Decimal("0.00")
            quantity_total = 0

            for line in self.repository.find_purchase_lines_for_product(product_id):
                order = line.purchase_order
                if order.id not in allocations:
                    allocations[order.id] = allocate_freight(order, order.lines, strict=self.strict)
                freight_total += allocations[order.id].get(line.id, Decimal("0.00"))
                quantity_total += line.quantity or 0
        except InvariantViolation:
            raise
        except EngineError as exc:
            logger.exception(
                "true cost lookup failed for product %s",
                product_id,
                extra={"product_id": product_id, "status": COST_FAILED},
            )
            return TrueCost.zero(product_id, COST_FAILED, f"{exc.code}: {exc}")

        base_cost = _money(_to_decimal(product.base_cost))
        allocated = _money(freight_total)

        return TrueCost(
            product_id=product_id,
            base_cost=base_cost,
            allocated_freight=allocated,
            true_cost=base_cost + allocated,
            purchased_quantity=quantity_total,
        )

    def total_freight_distributed(self) -> Decimal:
        """Freight carried by every non-cancelled order."""
        return self.repository.total_freight()
