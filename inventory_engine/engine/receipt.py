"""
Purchase order receipt transition.

    pending --receive--> received   (stock += line quantities)
    pending --cancel---> cancelled  (no stock movement)

Both targets are terminal. The status change is a compare-and-swap on
status == "pending" executed in the same transaction as the stock increments,
so concurrent or repeated calls apply the increments at most once. A call on an
order that already left "pending" is a no-op result, never an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from ..errors import NotFound, ValidationError, require_positive_id
from ..models import STATUS_CANCELLED, STATUS_PENDING, STATUS_RECEIVED
from ..repository import InventoryRepository

logger = logging.getLogger(__name__)


@dataclass
class StockChange:
    product_id: int
    delta: int
    stock_quantity: int


@dataclass
class ReceiptResult:
    order_id: int
    applied: bool
    status: str
    received_at: Optional[datetime] = None
    stock_changes: List[StockChange] = field(default_factory=list)


class ReceiptTransition:
    def __init__(self, repository: InventoryRepository, clock: Callable[[], datetime] = datetime.utcnow):
        self.repository = repository
        self.clock = clock

    def _load_order(self, order_id):
        order_id = require_positive_id(order_id, "order_id")
        order = self.repository.get_order(order_id)
        if order is None:
            raise NotFound("purchase order", order_id)
        return order_id, order

    def _noop(self, order_id: int, reason_status: str) -> ReceiptResult:
        current = self.repository.get_order(order_id)
        status = current.status if current is not None else reason_status
        received_at = current.received_at if current is not None else None
        logger.info(
            "order %s is %s, transition skipped",
            order_id,
            status,
            extra={"order_id": order_id, "status": status},
        )
        return ReceiptResult(order_id=order_id, applied=False, status=status, received_at=received_at)

    def receive(self, order_id: int) -> ReceiptResult:
        """Mark a pending order received and add every line's quantity to stock."""
        order_id, order = self._load_order(order_id)

        movements = [(line.product_id, line.quantity or 0) for line in order.lines]
        for product_id, quantity in movements:
            if quantity < 0:
                raise ValidationError(f"order {order_id} has a negative quantity for product {product_id}")

        if order.status != STATUS_PENDING:
            return self._noop(order_id, order.status)

        received_at = self.clock()
        changes: List[StockChange] = []

        with self.repository.atomic():
            swapped = self.repository.set_order_status(
                order_id, STATUS_RECEIVED, STATUS_PENDING, received_at=received_at
            )
            if swapped:
                for product_id, quantity in movements:
                    if quantity == 0:
                        continue
                    product = self.repository.increment_stock(product_id, quantity)
                    changes.append(
                        StockChange(product_id=product_id, delta=quantity, stock_quantity=product.stock_quantity)
                    )
                self.repository.record_transition(
                    order,
                    "RECEIVE",
                    before={"status": STATUS_PENDING},
                    after={"status": STATUS_RECEIVED, "received_at": received_at.isoformat()},
                )

        if not swapped:
            return self._noop(order_id, STATUS_RECEIVED)

        logger.info(
            "order %s received, %d stock movements",
            order_id,
            len(changes),
            extra={"order_id": order_id, "status": STATUS_RECEIVED},
        )
        return ReceiptResult(
            order_id=order_id,
            applied=True,
            status=STATUS_RECEIVED,
            received_at=received_at,
            stock_changes=changes,
        )

    def cancel(self, order_id: int) -> ReceiptResult:
        """Mark a pending order cancelled; stock is untouched."""
        order_id, order = self._load_order(order_id)

        if order.status != STATUS_PENDING:
            return self._noop(order_id, order.status)

        with self.repository.atomic():
            swapped = self.repository.set_order_status(order_id, STATUS_CANCELLED, STATUS_PENDING)
            if swapped:
                self.repository.record_transition(
                    order,
                    "CANCEL",
                    before={"status": STATUS_PENDING},
                    after={"status": STATUS_CANCELLED},
                )

        if not swapped:
            return self._noop(order_id, STATUS_CANCELLED)

        logger.info("order %s cancelled", order_id, extra={"order_id": order_id, "status": STATUS_CANCELLED})
        return ReceiptResult(order_id=order_id, applied=True, status=STATUS_CANCELLED)
