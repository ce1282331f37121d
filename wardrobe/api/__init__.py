"""
REST backend clients.
Every client shares one ``ApiSession`` built per request from the user's session.
"""
from flask import current_app

from .auth import AuthService
from .resources import (
    CustomerAccountClient,
    InventoryClient,
    ProductClient,
    ReportClient,
    ResourceClient,
    as_list,
    reference_choices,
    unwrap,
)
from .session import ApiSession


def api_for(user_session) -> ApiSession:
    return ApiSession(
        current_app.config["API_BASE_URL"],
        timeout=current_app.config.get("API_TIMEOUT", 10),
        user_session=user_session,
    )


def client_for(api: ApiSession, schema) -> ResourceClient:
    if schema.resource == "/products":
        return ProductClient(api)
    return ResourceClient(api, schema.resource, schema.search_param)


__all__ = [
    "ApiSession",
    "AuthService",
    "CustomerAccountClient",
    "InventoryClient",
    "ProductClient",
    "ReportClient",
    "ResourceClient",
    "api_for",
    "as_list",
    "client_for",
    "reference_choices",
    "unwrap",
]
