"""
Error taxonomy of the engine.

- NotFound: a referenced product/order/supplier does not exist.
- ValidationError: input rejected before any computation runs.
- AggregationFailed: the store could not be read or written; callers own retry policy.
- InvariantViolation: an allocation does not add up to the order's freight.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for every error raised by the engine."""

    code = "engine_error"


class NotFound(EngineError):
    code = "not_found"

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ValidationError(EngineError):
    code = "validation_error"


class AggregationFailed(EngineError):
    code = "aggregation_failed"


class InvariantViolation(EngineError):
    code = "invariant_violation"


def require_positive_id(value, name: str = "id") -> int:
    """Return value as int, or raise ValidationError for malformed identifiers."""
    if isinstance(value, int) and not isinstance(value, bool):
        ident = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdecimal():
        ident = int(value.strip())
    else:
        raise ValidationError(f"{name} must be a positive integer")

    if ident <= 0:
        raise ValidationError(f"{name} must be a positive integer")
    return ident
