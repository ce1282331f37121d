"""Where a customer's order is on its way from placement to delivery."""
from typing import Any, List, Tuple

STEPS = ("PENDING", "PROCESSING", "SHIPPED", "DELIVERED")
CANCELLED = "CANCELLED"

DESCRIPTIONS = {
    "PENDING": "Your order has been received and is being processed.",
    "PROCESSING": "Your order is currently being prepared for shipment.",
    "SHIPPED": "Your order has been shipped and is on its way to you.",
    "DELIVERED": "Your order has been successfully delivered.",
    CANCELLED: "This order has been cancelled.",
}


def status_name(status: Any) -> str:
    """Statuses arrive as a bare string or as a ``{"value": ...}`` reference."""
    if isinstance(status, dict):
        status = status.get("value")
    return str(status or "").strip().upper()


def order_progress(status: Any) -> int:
    """Number of steps reached, 0 for cancelled or unknown orders."""
    name = status_name(status)
    return STEPS.index(name) + 1 if name in STEPS else 0


def describe(status: Any) -> str:
    return DESCRIPTIONS.get(status_name(status), "Order status information")


def timeline(status: Any) -> List[Tuple[str, bool]]:
    reached = order_progress(status)
    return [(step.title(), i < reached) for i, step in enumerate(STEPS)]
