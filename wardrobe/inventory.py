"""
Stock records for the merchandise manager.

Rows come from ``/merchandise-manager/inventory`` as
``{id, product{name, productNo}, totalQuantityPurchasing, reorderLevel}``.
The screen filters them by stock status and searches product name or number;
edits go back as query-string updates, one call per value.
"""
from typing import Any, Dict, List, Mapping, Optional

from . import validation as v
from .calculations import OK, SEVERITIES, stock_severity, to_number
from .listing import get_path
from .utils.exceptions import ValidationError

STATUSES = ("all",) + SEVERITIES + (OK,)
SEARCHABLE = ("product.name", "product.productNo")

ADJUST_RULES: List[v.Rule] = [
    v.non_negative_int("reorderLevel", "Valid reorder level is required"),
    v.non_negative_int("quantity", "Valid quantity is required"),
]

ADD_STOCK_RULES: List[v.Rule] = [
    v.required("productId", "Please select a product"),
    v.reference_id("productId", "Please select a valid product"),
    v.positive("quantity", "Quantity to add must be greater than zero"),
    v.non_negative_int("quantity", "Quantity to add must be a whole number"),
]


def item_status(item: Mapping[str, Any]) -> str:
    return stock_severity(item.get("totalQuantityPurchasing"), item.get("reorderLevel"))


def filter_inventory(items: List[Dict[str, Any]], term: Optional[str] = "",
                     status: Optional[str] = "all") -> List[Dict[str, Any]]:
    term = (term or "").strip().casefold()
    result = []
    for item in items:
        if term and not any(term in str(get_path(item, path) or "").casefold() for path in SEARCHABLE):
            continue
        if status in STATUSES and status != "all" and item_status(item) != status:
            continue
        result.append(item)
    return result


def inventory_counts(items: List[Dict[str, Any]]) -> Dict[str, int]:
    counts = {status: 0 for status in STATUSES[1:]}
    for item in items:
        counts[item_status(item)] += 1
    counts["all"] = len(items)
    counts["low_stock"] = len(items) - counts[OK]
    return counts


def _whole(value: Any) -> int:
    return int(to_number(value))


class InventoryManager:
    """Checked writes against the inventory endpoints."""

    def __init__(self, client):
        self.client = client

    def adjust(self, item_id: Any, reorder_level: Any, quantity: Any) -> None:
        errors = v.validate({"reorderLevel": reorder_level, "quantity": quantity}, ADJUST_RULES)
        if errors:
            raise ValidationError(errors)
        self.client.set_reorder_level(item_id, _whole(reorder_level))
        self.client.set_quantity(item_id, _whole(quantity))

    def add_stock(self, product_id: Any, quantity: Any) -> int:
        errors = v.validate({"productId": product_id, "quantity": quantity}, ADD_STOCK_RULES)
        if errors:
            raise ValidationError(errors)
        added = _whole(quantity)
        self.client.add_stock(int(str(product_id).strip()), added)
        return added
