"""
One thin wrapper per REST collection.
Collections come back as bare arrays, mutations may be wrapped in a
``{success, message, data}`` envelope; both shapes are unwrapped here.
"""
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

from ..utils.logging import get_logger
from .session import ApiSession

log = get_logger(__name__)


def unwrap(data: Any) -> Any:
    if isinstance(data, dict) and "data" in data:
        return data["data"]
    return data


def as_list(data: Any) -> List[Dict[str, Any]]:
    data = unwrap(data)
    if data is None:
        return []
    if isinstance(data, list):
        return data
    return [data]


class ResourceClient:
    def __init__(self, api: ApiSession, resource: str, search_param: str = "name") -> None:
        self.api = api
        self.resource = "/" + resource.strip("/")
        self.search_param = search_param

    def __repr__(self) -> str:
        return f"<ResourceClient {self.resource}>"

    def list(self) -> List[Dict[str, Any]]:
        return as_list(self.api.call("GET", self.resource))

    def get(self, record_id: Any) -> Dict[str, Any]:
        return unwrap(self.api.call("GET", f"{self.resource}/{record_id}"))

    def search(self, term: str, field: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {field or self.search_param: term}
        return as_list(self.api.call("GET", f"{self.resource}/search", params=params))

    def create(self, payload: Dict[str, Any]) -> Any:
        result = unwrap(self.api.call("POST", self.resource, json=payload))
        log.info("Created %s record", self.resource)
        return result

    def update(self, record_id: Any, payload: Dict[str, Any]) -> Any:
        result = unwrap(self.api.call("PUT", f"{self.resource}/{record_id}", json=payload))
        log.info("Updated %s/%s", self.resource, record_id)
        return result

    def delete(self, record_id: Any) -> None:
        self.api.call("DELETE", f"{self.resource}/{record_id}")
        log.info("Deleted %s/%s", self.resource, record_id)


class ProductClient(ResourceClient):
    def __init__(self, api: ApiSession) -> None:
        super().__init__(api, "/products")

    def low_stock(self, threshold: int = 10) -> List[Dict[str, Any]]:
        return as_list(self.api.call("GET", f"{self.resource}/low-stock", params={"threshold": threshold}))

    def mark_reordered(self, product_id: Any) -> Any:
        result = self.api.call("POST", f"/merchandise-manager/notifications/mark-reordered/{product_id}")
        log.info("Product %s marked as reordered", product_id)
        return result


class InventoryClient:
    """Merchandise manager stock records: ``{id, product, totalQuantityPurchasing, reorderLevel}``."""

    resource = "/merchandise-manager/inventory"

    def __init__(self, api: ApiSession) -> None:
        self.api = api

    def list(self) -> List[Dict[str, Any]]:
        return as_list(self.api.call("GET", self.resource))

    def set_quantity(self, item_id: Any, quantity: int) -> Any:
        result = self.api.call("PUT", f"{self.resource}/{item_id}/quantity", params={"quantity": quantity})
        log.info("Inventory %s quantity set to %s", item_id, quantity)
        return unwrap(result)

    def set_reorder_level(self, item_id: Any, reorder_level: int) -> Any:
        result = self.api.call("PUT", f"{self.resource}/{item_id}/reorder-level",
                               params={"reorderLevel": reorder_level})
        log.info("Inventory %s reorder level set to %s", item_id, reorder_level)
        return unwrap(result)

    def add_stock(self, product_id: Any, quantity: int) -> Any:
        result = self.api.call("PATCH", f"{self.resource}/add-stock/{product_id}", params={"quantity": quantity})
        log.info("Added %s units of product %s", quantity, product_id)
        return unwrap(result)


class CustomerAccountClient:
    """The signed-in customer's own profile and orders."""

    def __init__(self, api: ApiSession) -> None:
        self.api = api

    def profile(self) -> Dict[str, Any]:
        return unwrap(self.api.call("GET", "/customer/profile")) or {}

    def update_profile(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        result = unwrap(self.api.call("PUT", "/customer/profile", json=payload))
        log.info("Customer profile %s updated", payload.get("id"))
        return result if isinstance(result, dict) else {}

    def orders(self) -> List[Dict[str, Any]]:
        return as_list(self.api.call("GET", "/customer/orders"))

    def order_status(self, order_no: str) -> Dict[str, Any]:
        data = self.api.call("GET", f"/customer/orders/status/{quote(order_no, safe='')}")
        if isinstance(data, dict) and "statusInfo" in data:
            return data["statusInfo"] or {}
        return unwrap(data) or {}


class ReportClient:
    def __init__(self, api: ApiSession) -> None:
        self.api = api

    def fetch(self, report_id: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return unwrap(self.api.call("GET", f"/reports/{report_id}", params=params or None))


def reference_choices(api: ApiSession, path: str, label_field: str) -> List[Tuple[str, str]]:
    """``(id, label)`` pairs for a select, ids as strings so they round-trip through forms."""
    choices = []
    for record in as_list(api.call("GET", path)):
        if not isinstance(record, dict) or record.get("id") is None:
            continue
        choices.append((str(record["id"]), str(record.get(label_field) or record["id"])))
    return choices
