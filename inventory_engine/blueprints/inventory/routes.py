"""
inventory_engine/blueprints/inventory/routes.py

JSON API over the replenishment and landed-cost engine.

Endpoints:
- GET  /api/products/low-stock
- GET  /api/replenishment
- GET  /api/products/<id>/true-cost
- POST /api/purchase-orders/<id>/receive
- POST /api/purchase-orders/<id>/cancel
- GET  /api/purchase-orders/<id>/freight-allocation
- GET  /api/freight/total-distributed

IMPORTANT:
- Aggregate reads degrade to empty/zeroed payloads (HTTP 503, status "failed")
  when the store is unavailable; the failure is logged with its traceback.
- Identifiers arrive as strings so malformed ones are reported as validation
  errors (400) rather than unmatched routes.
- Decimals are serialized as strings.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from flask import Blueprint, current_app, jsonify

from ...engine import build_engine
from ...engine.cost_resolver import COST_FAILED, COST_NOT_FOUND, TrueCost
from ...engine.receipt import ReceiptResult
from ...engine.replenishment import PLAN_FAILED, ReplenishmentPlan
from ...engine.results import RESULT_EMPTY, RESULT_FAILED, RESULT_OK
from ...errors import AggregationFailed, InvariantViolation, NotFound, ValidationError
from ...extensions import db
from ...models import Product
from ...repository import SqlAlchemyInventoryRepository
from .params import low_stock_args, replenishment_args

logger = logging.getLogger(__name__)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api")


# ---------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------
def _engine():
    return build_engine(SqlAlchemyInventoryRepository(db.session), current_app.config)


# ---------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------
def _money_str(value: Decimal | None) -> str:
    if value is None:
        return "0.00"
    return str(value)


def _product_to_dict(product: Product) -> dict:
    return {
        "id": product.id,
        "sku": product.sku,
        "name": product.name,
        "stock_quantity": product.stock_quantity,
        "alert_threshold": product.alert_threshold,
        "base_cost": _money_str(product.base_cost),
    }


def _plan_to_dict(plan: ReplenishmentPlan) -> dict:
    return {
        "status": plan.status,
        "error": plan.error,
        "products": [_product_to_dict(p) for p in plan.products],
        "recommended_quantities": list(plan.recommended_quantities),
        "recommended_suppliers": [s.to_dict() for s in plan.recommended_suppliers],
        "used_fallback_suppliers": plan.used_fallback_suppliers,
    }


def _true_cost_to_dict(record: TrueCost) -> dict:
    return {
        "product_id": record.product_id,
        "status": record.status,
        "error": record.error,
        "base_cost": _money_str(record.base_cost),
        "allocated_freight": _money_str(record.allocated_freight),
        "true_cost": _money_str(record.true_cost),
        "purchased_quantity": record.purchased_quantity,
    }


def _receipt_to_dict(result: ReceiptResult) -> dict:
    return {
        "order_id": result.order_id,
        "applied": result.applied,
        "status": result.status,
        "received_at": result.received_at.isoformat() if result.received_at else None,
        "stock_changes": [
            {
                "product_id": change.product_id,
                "delta": change.delta,
                "stock_quantity": change.stock_quantity,
            }
            for change in result.stock_changes
        ],
    }


# ---------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------
@inventory_bp.errorhandler(ValidationError)
def _validation_error(exc: ValidationError):
    return jsonify({"error": exc.code, "message": str(exc)}), 400


@inventory_bp.errorhandler(NotFound)
def _not_found(exc: NotFound):
    return jsonify({"error": exc.code, "message": str(exc)}), 404


@inventory_bp.errorhandler(AggregationFailed)
def _aggregation_failed(exc: AggregationFailed):
    logger.error("store unavailable: %s", exc)
    return jsonify({"error": exc.code, "message": str(exc)}), 503


@inventory_bp.errorhandler(InvariantViolation)
def _invariant_violation(exc: InvariantViolation):
    logger.error("allocation invariant violated: %s", exc)
    return jsonify({"error": exc.code, "message": str(exc)}), 500


# ---------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------
@inventory_bp.get("/products/low-stock")
def low_stock_report():
    """Products at or below their alert threshold, lowest stock first."""
    args = low_stock_args()

    try:
        products = _engine().stock_monitor.scan_low_stock(args["limit"])
    except AggregationFailed as exc:
        logger.exception("low stock scan failed")
        return jsonify({"status": RESULT_FAILED, "error": f"{exc.code}: {exc}", "products": []}), 503

    return jsonify(
        {
            "status": RESULT_OK if products else RESULT_EMPTY,
            "error": None,
            "products": [_product_to_dict(p) for p in products],
        }
    )


@inventory_bp.get("/replenishment")
def replenishment_recommendations():
    plan = _engine().planner.plan_replenishment(**replenishment_args())
    status_code = 503 if plan.status == PLAN_FAILED else 200
    return jsonify(_plan_to_dict(plan)), status_code


@inventory_bp.get("/products/<product_id>/true-cost")
def product_true_cost(product_id: str):
    record = _engine().cost_resolver.true_cost(product_id)

    status_code = 200
    if record.status == COST_NOT_FOUND:
        status_code = 404
    elif record.status == COST_FAILED:
        status_code = 503
    return jsonify(_true_cost_to_dict(record)), status_code


@inventory_bp.get("/purchase-orders/<order_id>/freight-allocation")
def order_freight_allocation(order_id: str):
    allocation = _engine().cost_resolver.allocation_for_order(order_id)

    total = sum(allocation.values(), Decimal("0.00"))
    return jsonify(
        {
            "order_id": int(order_id),
            "allocations": [
                {"line_id": line_id, "allocated_freight": _money_str(amount)}
                for line_id, amount in allocation.items()
            ],
            "total": _money_str(total),
        }
    )


@inventory_bp.get("/freight/total-distributed")
def total_freight_distributed():
    try:
        total = _engine().cost_resolver.total_freight_distributed()
    except AggregationFailed as exc:
        logger.exception("freight total failed")
        return jsonify({"status": RESULT_FAILED, "error": f"{exc.code}: {exc}", "total_freight_distributed": "0.00"}), 503

    return jsonify({"status": RESULT_OK, "error": None, "total_freight_distributed": _money_str(total)})


# ---------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------
@inventory_bp.post("/purchase-orders/<order_id>/receive")
def receive_purchase_order(order_id: str):
    """Mark an order received; repeated calls are no-ops (applied=false)."""
    result = _engine().receipts.receive(order_id)
    return jsonify(_receipt_to_dict(result))


@inventory_bp.post("/purchase-orders/<order_id>/cancel")
def cancel_purchase_order(order_id: str):
    result = _engine().receipts.cancel(order_id)
    return jsonify(_receipt_to_dict(result))
