from typing import Any, Dict, Mapping

from ..utils.exceptions import AuthenticationError, BusinessRuleError, WardrobeError
from ..utils.logging import get_logger
from .resources import unwrap
from .session import ApiSession

log = get_logger(__name__)

CUSTOMER = "CUSTOMER"


class AuthService:
    """Login, logout, customer registration and password change against ``/auth``."""

    def __init__(self, api: ApiSession, user_session) -> None:
        self.api = api
        self.session = user_session

    def login(self, username: str, password: str) -> Dict[str, Any]:
        self.session.clear()
        try:
            data = self.api.call("POST", "/auth/login", json={"username": username, "password": password})
        except (AuthenticationError, BusinessRuleError) as e:
            raise AuthenticationError("Invalid username or password") from e
        if not isinstance(data, dict) or not data.get("token"):
            raise AuthenticationError("Invalid username or password")

        self.session.token = data["token"]
        user = {
            "username": data.get("username") or username,
            "role": (data.get("role") or CUSTOMER).upper(),
            "customerId": None,
        }
        self.session.user = user
        if user["role"] == CUSTOMER:
            profile = self.current_customer()
            user["customerId"] = profile.get("id")
            self.session.user = user
        log.info("User %s logged in as %s", user["username"], user["role"])
        return user

    def current_customer(self) -> Dict[str, Any]:
        return unwrap(self.api.call("GET", "/customer/current")) or {}

    def logout(self) -> None:
        username = (self.session.user or {}).get("username")
        try:
            if self.session.token:
                self.api.call("POST", "/auth/logout")
        except WardrobeError as e:
            log.warning("Logout request failed: %s", e)
        finally:
            self.session.clear()
        log.info("User %s logged out", username)

    def register(self, payload: Mapping[str, Any]) -> Any:
        result = unwrap(self.api.call("POST", "/customer/register", json=dict(payload)))
        log.info("Customer %s registered", payload.get("username"))
        return result

    def change_password(self, current_password: str, new_password: str) -> Any:
        result = self.api.call("POST", "/auth/change-password", json={
            "currentPassword": current_password,
            "newPassword": new_password,
        })
        log.info("Password changed for %s", (self.session.user or {}).get("username"))
        return result
