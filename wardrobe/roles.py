"""
Which role may see or change which entity.
"""
from typing import Dict, List, Optional

CEO = "CEO"
PRODUCT_MANAGER = "PRODUCT_MANAGER"
MERCHANDISE_MANAGER = "MERCHANDISE_MANAGER"
DISPATCH_OFFICER = "DISPATCH_OFFICER"
CUSTOMER = "CUSTOMER"

VIEW = "view"
MANAGE = "manage"

ACCESS: Dict[str, Dict[str, str]] = {
    CEO: {
        "employees": MANAGE,
        "products": MANAGE,
        "suppliers": MANAGE,
        "supplier-payments": MANAGE,
        "delivery-providers": MANAGE,
        "customers": VIEW,
        "orders": VIEW,
    },
    PRODUCT_MANAGER: {
        "products": MANAGE,
        "categories": MANAGE,
    },
    MERCHANDISE_MANAGER: {
        "suppliers": MANAGE,
        "supplier-payments": MANAGE,
        "products": VIEW,
    },
    DISPATCH_OFFICER: {
        "orders": MANAGE,
        "deliveries": MANAGE,
        "customers": VIEW,
        "delivery-providers": VIEW,
    },
    CUSTOMER: {},
}

# url slug <-> role
SLUGS: Dict[str, str] = {role.lower().replace("_", "-"): role for role in ACCESS}


def slug_for(role: Optional[str]) -> Optional[str]:
    if role not in ACCESS:
        return None
    return role.lower().replace("_", "-")


def access_level(role: Optional[str], entity: str) -> Optional[str]:
    return ACCESS.get(role or "", {}).get(entity)


def can_view(role: Optional[str], entity: str) -> bool:
    return access_level(role, entity) in (VIEW, MANAGE)


def can_manage(role: Optional[str], entity: str) -> bool:
    return access_level(role, entity) == MANAGE


def entities_for(role: Optional[str]) -> List[str]:
    return list(ACCESS.get(role or "", {}))
