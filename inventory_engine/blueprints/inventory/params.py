"""
Query-string parsing for the inventory API.

Blank values mean "use the default" (None). Anything else that does not parse
is rejected with ValidationError so the blueprint can answer 400.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from flask import request

from ...errors import ValidationError


def _parse_decimal(value: str | None, name: str) -> Decimal | None:
    """Parse decimal from user input (accepts comma or dot)."""
    if value is None:
        return None
    raw = str(value).strip().replace(",", ".")
    if raw == "":
        return None
    try:
        return Decimal(raw)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{name}: not a valid decimal value") from None


def _parse_optional_int(value: str | None, name: str, minimum: int = 1) -> int | None:
    """Parse optional int from query, enforcing a lower bound."""
    if value is None:
        return None
    raw = str(value).strip()
    if raw == "":
        return None
    try:
        parsed = int(raw)
    except ValueError:
        raise ValidationError(f"{name}: not a valid integer value") from None
    if parsed < minimum:
        raise ValidationError(f"{name}: must be at least {minimum}")
    return parsed


def low_stock_args() -> dict:
    return {"limit": _parse_optional_int(request.args.get("limit"), "limit")}


def replenishment_args() -> dict:
    # positivity of buffer_factor is enforced by the planner
    return {
        "buffer_factor": _parse_decimal(request.args.get("buffer_factor"), "buffer_factor"),
        "history_limit": _parse_optional_int(request.args.get("history_limit"), "history_limit"),
    }
