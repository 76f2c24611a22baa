"""
Supplier recommendations from purchase history.

A product's candidates are the suppliers of its most recent purchase lines,
most recent first. When a whole reorder batch has no purchase history at all,
the batch falls back to the first active suppliers by name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..errors import EngineError, ValidationError, require_positive_id
from ..repository import InventoryRepository

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 3
DEFAULT_FALLBACK_LIMIT = 3


@dataclass(frozen=True)
class SupplierCandidate:
    supplier_id: int
    name: str

    def to_dict(self) -> dict:
        return {"supplier_id": self.supplier_id, "name": self.name}


@dataclass
class SupplierRanking:
    """Outcome of ranking a batch of products."""

    per_product: Dict[int, List[SupplierCandidate]] = field(default_factory=dict)
    recommended: List[SupplierCandidate] = field(default_factory=list)
    used_fallback: bool = False
    failed_products: List[int] = field(default_factory=list)


def _dedupe(candidates: Iterable[SupplierCandidate]) -> List[SupplierCandidate]:
    seen = set()
    out = []
    for candidate in candidates:
        if candidate.supplier_id in seen:
            continue
        seen.add(candidate.supplier_id)
        out.append(candidate)
    return out


class SupplierRanker:
    def __init__(
        self,
        repository: InventoryRepository,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        fallback_limit: int = DEFAULT_FALLBACK_LIMIT,
    ):
        self.repository = repository
        self.history_limit = history_limit
        self.fallback_limit = fallback_limit

    def _history_limit(self, history_limit: Optional[int]) -> int:
        limit = self.history_limit if history_limit is None else history_limit
        if limit < 1:
            raise ValidationError("history_limit must be at least 1")
        return limit

    def rank_suppliers(self, product_id: int, history_limit: Optional[int] = None) -> List[SupplierCandidate]:
        """Suppliers of the product's last `history_limit` purchase lines, deduplicated, newest first."""
        product_id = require_positive_id(product_id, "product_id")
        limit = self._history_limit(history_limit)

        lines = self.repository.find_recent_purchase_lines(product_id, limit)

        candidates = []
        for line in lines:
            order = line.purchase_order
            supplier = order.supplier if order is not None else None
            if supplier is None:
                continue
            candidates.append(SupplierCandidate(supplier_id=supplier.id, name=supplier.name))
        return _dedupe(candidates)

    def fallback_suppliers(self) -> List[SupplierCandidate]:
        suppliers = self.repository.find_active_suppliers(self.fallback_limit)
        return [SupplierCandidate(supplier_id=s.id, name=s.name) for s in suppliers]

    def rank_batch(self, product_ids: Iterable[int], history_limit: Optional[int] = None) -> SupplierRanking:
        """
        Rank every product of a reorder batch.

        A failed lookup for one product leaves that product with no candidates and
        the batch carries on. If no product yields a historical supplier, the
        recommendation falls back to active suppliers; a failure there propagates.
        """
        limit = self._history_limit(history_limit)
        ranking = SupplierRanking()

        for product_id in product_ids:
            try:
                candidates = self.rank_suppliers(product_id, limit)
            except EngineError as exc:
                logger.warning(
                    "supplier lookup failed for product %s: %s",
                    product_id,
                    exc,
                    extra={"product_id": product_id},
                )
                ranking.failed_products.append(product_id)
                candidates = []
            ranking.per_product[product_id] = candidates

        ranking.recommended = _dedupe(
            candidate for candidates in ranking.per_product.values() for candidate in candidates
        )

        if not ranking.recommended and ranking.per_product:
            ranking.recommended = self.fallback_suppliers()
            ranking.used_fallback = True

        return ranking
