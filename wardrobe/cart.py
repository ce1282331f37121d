"""
Session cart and checkout.
The cart never reaches the backend until checkout, which places one order per line.
"""
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from .calculations import cart_total, generate_number, order_summary, round2, to_number
from .utils.exceptions import ValidationError
from .utils.logging import get_logger

log = get_logger(__name__)

PENDING_STATUS_ID = 1


def _item_from_product(product: Mapping[str, Any], quantity: int) -> Dict[str, Any]:
    return {
        "productId": product["id"],
        "productNo": product.get("productNo"),
        "name": product.get("name"),
        "productImage": product.get("productImage"),
        "sellingPrice": to_number(product.get("sellingPrice")) or 0.0,
        "quantityInStock": int(to_number(product.get("quantityInStock")) or 0),
        "quantity": quantity,
    }


def _check_quantity(quantity: Any, stock: int) -> int:
    number = to_number(quantity, None)
    if number is None or number != int(number) or number < 1:
        raise ValidationError("Quantity must be at least 1")
    if number > stock:
        raise ValidationError(f"Only {stock} items available in stock")
    return int(number)


class Cart:
    def __init__(self, session) -> None:
        self.session = session

    @property
    def items(self) -> List[Dict[str, Any]]:
        return self.session.cart_items

    def _find(self, items: List[Dict[str, Any]], product_id: Any) -> Optional[Dict[str, Any]]:
        for item in items:
            if str(item["productId"]) == str(product_id):
                return item
        return None

    def add(self, product: Mapping[str, Any], quantity: Any = 1) -> Dict[str, Any]:
        items = self.items
        stock = int(to_number(product.get("quantityInStock")) or 0)
        existing = self._find(items, product["id"])
        added = _check_quantity(quantity, stock)
        if existing:
            existing["quantity"] = _check_quantity(existing["quantity"] + added, stock)
            existing["quantityInStock"] = stock
            item = existing
        else:
            item = _item_from_product(product, added)
            items.append(item)
        self.session.save_cart(items)
        return item

    def update(self, product_id: Any, quantity: Any) -> Dict[str, Any]:
        items = self.items
        item = self._find(items, product_id)
        if item is None:
            raise ValidationError("Item is not in the cart")
        item["quantity"] = _check_quantity(quantity, item["quantityInStock"])
        self.session.save_cart(items)
        return item

    def remove(self, product_id: Any) -> None:
        self.session.save_cart([i for i in self.items if str(i["productId"]) != str(product_id)])

    def clear(self) -> None:
        self.session.save_cart([])

    @property
    def count(self) -> int:
        return sum(item["quantity"] for item in self.items)

    @property
    def total(self) -> float:
        return cart_total(self.items)

    def summary(self, tax_rate: float = 0.10, free_shipping_threshold: float = 5000,
                shipping_fee: float = 500) -> Dict[str, float]:
        return order_summary(self.total, tax_rate, free_shipping_threshold, shipping_fee)


def validate_checkout(cart: Cart, shipping_address: Optional[str], payment_method: Optional[str]) -> List[str]:
    errors = []
    if not (shipping_address or "").strip():
        errors.append("Shipping address is required")
    if not payment_method:
        errors.append("Please select a payment method")

    items = cart.items
    if not items:
        errors.append("Your cart is empty")
        return errors

    short = [item for item in items if item["quantity"] > item.get("quantityInStock", 0)]
    if short:
        details = ", ".join(
            f"{item['name']} (requested: {item['quantity']}, available: {item.get('quantityInStock', 0)})"
            for item in short
        )
        errors.append(f"Insufficient stock for: {details}")
    return errors


def place_orders(cart: Cart, orders_client, customer_id: Any, shipping_address: str,
                 payment_method: str, now: Optional[datetime] = None) -> List[Any]:
    """
    Post one order per cart line. The cart is cleared only once every order went
    through; a failure propagates and leaves the cart as it was.
    """
    errors = validate_checkout(cart, shipping_address, payment_method)
    if errors:
        raise ValidationError(errors)
    if customer_id is None:
        raise ValidationError("Customer profile not found")

    order_date = (now or datetime.now()).isoformat()
    placed = []
    for item in cart.items:
        unit_price = item["sellingPrice"]
        order = {
            "orderNo": generate_number("ORD"),
            "quantity": item["quantity"],
            "unitPrice": unit_price,
            "totalPrice": round2(unit_price * item["quantity"]),
            "shippingAddress": shipping_address.strip(),
            "orderDate": order_date,
            "customer": {"id": customer_id},
            "orderStatus": {"id": PENDING_STATUS_ID},
            "productId": item["productId"],
            "paymentMethod": payment_method,
        }
        result = orders_client.create(order)
        placed.append(result if isinstance(result, dict) and result else order)
        log.info("Order %s placed for product %s (%d units)", order["orderNo"], item["productId"], item["quantity"])

    cart.clear()
    return placed
