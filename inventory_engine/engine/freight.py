"""
Freight allocation.

Spreads an order's freight over its lines in proportion to each line's share of
the order sub total, so every product can carry its part of the shipping charge.

Rounding policy: every share is computed at full precision and rounded down to
the minor unit; the last line (in the order given, which the repository keeps as
line id ascending) absorbs the residual. The allocations add up to order.freight
exactly and none of them is negative.
"""

from __future__ import annotations

import logging
from decimal import ROUND_DOWN, Decimal
from typing import Dict, Sequence

from ..errors import InvariantViolation, ValidationError
from ..models import MINOR_UNIT, _to_decimal

logger = logging.getLogger(__name__)


def _money_down(x: Decimal) -> Decimal:
    return x.quantize(MINOR_UNIT, rounding=ROUND_DOWN)


def _raw_shares(freight: Decimal, sub_total: Decimal, lines: Sequence) -> list[Decimal]:
    if sub_total == 0:
        equal = freight / Decimal(len(lines))
        return [equal for _ in lines]
    return [_to_decimal(line.amount) / sub_total * freight for line in lines]


def _validate(freight: Decimal, sub_total: Decimal, lines: Sequence) -> None:
    if freight < 0:
        raise ValidationError("order freight must not be negative")
    if sub_total < 0:
        raise ValidationError("order sub total must not be negative")
    for line in lines:
        if _to_decimal(line.amount) < 0:
            raise ValidationError(f"line {line.id} amount must not be negative")


def allocate_freight(order, lines: Sequence, strict: bool = False) -> Dict[int, Decimal]:
    """
    Map each line id to its allocated freight.

    Lines are weighted by amount / order.sub_total; an order whose sub total is
    zero (all free samples) splits its freight equally. Pure function: nothing is
    read from or written to the store.

    When the allocation cannot be made consistent within rounding tolerance
    (order.sub_total disagrees with its line amounts), strict mode raises
    InvariantViolation; otherwise the error is logged and the unrounded shares
    are returned.
    """
    lines = list(lines)
    freight = _to_decimal(order.freight)
    sub_total = _to_decimal(order.sub_total)

    _validate(freight, sub_total, lines)

    if not lines:
        return {}

    raw = _raw_shares(freight, sub_total, lines)
    rounded = [_money_down(share) for share in raw]

    # Rounding down moves each line by less than one minor unit.
    drift = freight - sum(rounded, Decimal("0.00"))
    tolerance = MINOR_UNIT * len(lines)
    residual = freight - sum(rounded[:-1], Decimal("0.00"))

    if abs(drift) > tolerance or residual < 0:
        message = (
            f"freight allocation for order {getattr(order, 'id', None)} drifts by {drift} "
            f"(tolerance {tolerance})"
        )
        if strict:
            raise InvariantViolation(message)
        logger.error(message, extra={"order_id": getattr(order, "id", None)})
        return {line.id: share for line, share in zip(lines, raw)}

    # Residual goes to the last line so the total is exact.
    rounded[-1] = residual

    return {line.id: amount for line, amount in zip(lines, rounded)}
