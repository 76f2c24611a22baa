"""
Replenishment and landed-cost engine.

Components are plain classes wired around an injected InventoryRepository.
build_engine() assembles them from application config.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from ..repository import InventoryRepository
from .cost_resolver import CostResolver, TrueCost
from .freight import allocate_freight
from .receipt import ReceiptResult, ReceiptTransition
from .replenishment import ReplenishmentPlan, ReplenishmentPlanner, reorder_quantity
from .stock_monitor import StockMonitor
from .supplier_ranker import SupplierCandidate, SupplierRanker, SupplierRanking

__all__ = [
    "CostResolver",
    "Engine",
    "ReceiptResult",
    "ReceiptTransition",
    "ReplenishmentPlan",
    "ReplenishmentPlanner",
    "StockMonitor",
    "SupplierCandidate",
    "SupplierRanker",
    "SupplierRanking",
    "TrueCost",
    "allocate_freight",
    "build_engine",
    "reorder_quantity",
]


@dataclass
class Engine:
    stock_monitor: StockMonitor
    supplier_ranker: SupplierRanker
    planner: ReplenishmentPlanner
    cost_resolver: CostResolver
    receipts: ReceiptTransition


def build_engine(repository: InventoryRepository, config: Mapping) -> Engine:
    """Wire every component around one repository."""
    stock_monitor = StockMonitor(repository)
    supplier_ranker = SupplierRanker(
        repository,
        history_limit=config.get("SUPPLIER_HISTORY_LIMIT", 3),
        fallback_limit=config.get("FALLBACK_SUPPLIER_LIMIT", 3),
    )
    planner = ReplenishmentPlanner(
        stock_monitor,
        supplier_ranker,
        buffer_factor=config.get("DEFAULT_BUFFER_FACTOR", "1.2"),
    )
    return Engine(
        stock_monitor=stock_monitor,
        supplier_ranker=supplier_ranker,
        planner=planner,
        cost_resolver=CostResolver(repository, strict=config.get("ALLOCATION_STRICT", False)),
        receipts=ReceiptTransition(repository),
    )
