"""
Small derived-value helpers shared by forms, the cart and the dashboards.
All of them are pure and never raise on bad input.
"""
import math
import random
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional


CRITICAL = "critical"
LOW = "low"
WARNING = "warning"
OK = "ok"
SEVERITIES = (CRITICAL, LOW, WARNING)


def to_number(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Lenient float parse for form strings; ``None``, blank, garbage and non-finite values give ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value) if isinstance(value, (int, float)) else float(str(value).strip())
    except (ValueError, OverflowError):
        return default
    # inf and nan parse but are never usable amounts
    return number if math.isfinite(number) else default


def round2(value: float) -> float:
    if not math.isfinite(value):
        return value
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_money(value: Any) -> str:
    """Two-decimal display string. The underlying value is never rounded."""
    number = to_number(value) or 0.0
    return f"{round2(number):.2f}"


def profit_percentage(cost_price: Any, selling_price: Any) -> Optional[float]:
    cost = to_number(cost_price, None)
    selling = to_number(selling_price, None)
    if cost is None or selling is None or cost <= 0 or selling <= 0:
        return None
    percent = (selling - cost) / cost * 100
    return round2(percent) if math.isfinite(percent) else None


def line_total(quantity: Any, unit_price: Any) -> float:
    return (to_number(quantity) or 0.0) * (to_number(unit_price) or 0.0)


def cart_total(items: Iterable[Any]) -> float:
    """
    Sum of quantity * unit price.
    Items may be mappings with ``quantity`` and ``sellingPrice``/``unitPrice``/``price``
    or plain ``(unit_price, quantity)`` pairs.
    """
    total = 0.0
    for item in items:
        if isinstance(item, dict):
            price = item.get("sellingPrice", item.get("unitPrice", item.get("price")))
            total += line_total(item.get("quantity", item.get("qty")), price)
        else:
            price, quantity = item
            total += line_total(quantity, price)
    return total


def order_summary(subtotal: float, tax_rate: float = 0.10,
                  free_shipping_threshold: float = 5000, shipping_fee: float = 500) -> Dict[str, float]:
    subtotal = subtotal or 0.0
    tax = subtotal * tax_rate
    shipping = 0.0 if subtotal >= free_shipping_threshold or subtotal == 0 else shipping_fee
    return {
        "subtotal": subtotal,
        "tax": tax,
        "shipping": shipping,
        "total": subtotal + tax + shipping,
        "free_shipping_gap": max(free_shipping_threshold - subtotal, 0.0),
    }


def stock_severity(current_stock: Any, reorder_level: Any) -> str:
    current = to_number(current_stock) or 0.0
    reorder = to_number(reorder_level) or 0.0
    if reorder <= 0:
        return OK
    ratio = current / reorder
    if ratio <= 0.25:
        return CRITICAL
    if ratio <= 0.50:
        return LOW
    if ratio <= 1.00:
        return WARNING
    return OK


def stock_percentage(current_stock: Any, reorder_level: Any) -> int:
    """Percent of the reorder level that is on hand, capped at 100 for progress bars."""
    reorder = to_number(reorder_level) or 0.0
    if reorder <= 0:
        return 100
    percent = int(Decimal(str((to_number(current_stock) or 0.0) / reorder * 100))
                  .quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(0, min(percent, 100))


def summarize_orders(orders: List[Dict[str, Any]]) -> Dict[str, Any]:
    status_counts: Dict[str, int] = {}
    for order in orders:
        status = (order.get("orderStatus") or {}).get("value") or "Unknown"
        status_counts[status] = status_counts.get(status, 0) + 1
    return {
        "total": len(orders),
        "total_value": sum(to_number(order.get("totalPrice")) or 0.0 for order in orders),
        "status_counts": status_counts,
    }


def generate_number(prefix: str, now_ms: Optional[int] = None, rand: Optional[int] = None) -> str:
    """Human-readable record number, e.g. ``EMP482913077``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    if rand is None:
        rand = random.randint(0, 999)
    return f"{prefix}{str(now_ms)[-6:]}{rand:03d}"
