"""
Low-stock notifications for the merchandise dashboard.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .calculations import SEVERITIES, stock_percentage, stock_severity, to_number
from .utils.logging import get_logger

log = get_logger(__name__)

SORTS = ("stock", "name", "reorder")


@dataclass
class Notification:
    id: Any
    product: Dict[str, Any]
    severity: str
    percentage: int
    message: str

    @property
    def current_stock(self) -> int:
        return int(to_number(self.product.get("quantityInStock")) or 0)

    @property
    def reorder_level(self) -> int:
        return int(to_number(self.product.get("reorderLevel")) or 0)


def build_notification(item: Dict[str, Any], default_reorder: int) -> Notification:
    """Accepts a bare product or an inventory row wrapping one under ``product``."""
    product = dict(item.get("product") or item)
    current = to_number(item.get("totalQuantityPurchasing"), None)
    if current is None:
        current = to_number(product.get("quantityInStock")) or 0.0
    current = int(current)
    reorder = item.get("reorderLevel", product.get("reorderLevel"))
    if to_number(reorder, None) is None:
        reorder = default_reorder
    product.update(quantityInStock=current, reorderLevel=reorder)
    return Notification(
        id=product.get("id", item.get("id")),
        product=product,
        severity=stock_severity(current, reorder),
        percentage=stock_percentage(current, reorder),
        message=f"{product.get('name')} is running low on stock ({current} remaining)",
    )


def filter_notifications(notifications: List[Notification], severity: Optional[str]) -> List[Notification]:
    if severity not in SEVERITIES:
        return list(notifications)
    return [n for n in notifications if n.severity == severity]


def sort_notifications(notifications: List[Notification], sort: Optional[str]) -> List[Notification]:
    if sort == "name":
        return sorted(notifications, key=lambda n: str(n.product.get("name") or "").casefold())
    if sort == "reorder":
        return sorted(notifications, key=lambda n: n.reorder_level)
    return sorted(notifications, key=lambda n: n.current_stock)


class LowStockNotifier:
    def __init__(self, products_client, threshold: int = 10) -> None:
        self.products = products_client
        self.threshold = threshold

    def fetch(self) -> List[Notification]:
        products = self.products.low_stock(self.threshold)
        return [build_notification(p, self.threshold) for p in products]

    def notifications(self, severity: Optional[str] = None, sort: Optional[str] = None) -> List[Notification]:
        return sort_notifications(filter_notifications(self.fetch(), severity), sort)

    def counts(self, notifications: List[Notification]) -> Dict[str, int]:
        counts = {severity: 0 for severity in SEVERITIES}
        for n in notifications:
            if n.severity in counts:
                counts[n.severity] += 1
        counts["all"] = len(notifications)
        return counts

    def mark_reordered(self, product_id: Any) -> Any:
        return self.products.mark_reordered(product_id)
