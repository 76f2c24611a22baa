"""Low-stock scan over the product catalog."""

from __future__ import annotations

from typing import List, Optional

from ..errors import ValidationError
from ..models import Product
from ..repository import InventoryRepository


class StockMonitor:
    def __init__(self, repository: InventoryRepository):
        self.repository = repository

    def scan_low_stock(self, limit: Optional[int] = None) -> List[Product]:
        """
        Products at or below their alert threshold, most urgent (lowest stock) first.

        `limit` caps the report; None returns every low-stock product. An empty
        list simply means nothing needs attention.
        """
        if limit is not None and limit <= 0:
            raise ValidationError("limit must be a positive integer")
        return list(self.repository.find_products_below_threshold(limit))
