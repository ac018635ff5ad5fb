"""
Report scopes.

A scope narrows a report to one seller, category or product. The fetcher
turns it into SQL filters; the aggregator applies it again as an in-memory
predicate so global and seller-scoped reports share one code path.
"""

from dataclasses import dataclass
from typing import Any, Optional
import uuid


@dataclass(frozen=True)
class ReportScope:
    seller_id: Optional[uuid.UUID] = None
    category_id: Optional[uuid.UUID] = None
    product_id: Optional[uuid.UUID] = None

    def admits_item(self, item: Any) -> bool:
        """Whether an order item belongs to the scope; sellers own the items of their orders."""
        if self.seller_id is not None and item.order.seller_id != self.seller_id:
            return False
        return self._admits_line(item)

    def _admits_line(self, item: Any) -> bool:
        if self.product_id is not None and item.product_id != self.product_id:
            return False
        if self.category_id is not None:
            product = getattr(item, "product", None)
            if product is None or product.category_id != self.category_id:
                return False
        return True

    def admits_order(self, order: Any) -> bool:
        """Whether an order belongs to the scope."""
        if self.seller_id is not None and order.seller_id != self.seller_id:
            return False
        if self.category_id is None and self.product_id is None:
            return True
        # Category and product scopes match orders through their items
        return any(self._admits_line(item) for item in (order.items or []))


GLOBAL_SCOPE = ReportScope()
