from typing import Any, Optional

import requests

from ..utils.exceptions import (
    ApiError,
    AuthenticationError,
    BusinessRuleError,
    NotFoundError,
)
from ..utils.logging import get_logger

log = get_logger(__name__)

# statuses whose body message is the backend's own rejection text
BUSINESS_STATUSES = (400, 409, 422)


class ApiSession(requests.Session):
    def __init__(self, base_url: str, timeout: float = 10.0, user_session=None):
        """
        :param base_url: Backend root, e.g. ``http://localhost:8083/api``.
        :param timeout: Seconds before a request is abandoned.
        :param user_session: Source of the bearer token, read on every request.
        """
        if not base_url:
            raise ValueError("base_url must be set")
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_session = user_session
        self.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    def _url(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    def _auth_headers(self) -> dict:
        token = self.user_session.token if self.user_session is not None else None
        return {"Authorization": f"Bearer {token}"} if token else {}

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Override the core request method to attach the bearer token and turn every
        failure into one of the application's exceptions.
        """
        url = self._url(url)
        headers = {**self._auth_headers(), **(kwargs.pop("headers", None) or {})}
        kwargs.setdefault("timeout", self.timeout)

        try:
            response = super().request(method, url, headers=headers, **kwargs)
        except requests.RequestException as e:
            log.warning("Request failed (%s %s): %s", method, url, e)
            raise ApiError() from e

        if response.status_code == 401:
            log.info("Backend refused credentials (%s %s)", method, url)
            if self.user_session is not None:
                self.user_session.clear()
            raise AuthenticationError()

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            message = _error_message(response)
            if response.status_code == 404:
                raise NotFoundError(message) from e
            if response.status_code in BUSINESS_STATUSES and message:
                raise BusinessRuleError(message, status=response.status_code) from e
            log.warning("Request failed (%s %s): %s", method, url, e)
            raise ApiError(status=response.status_code) from e
        return response

    def call(self, method: str, url: str, **kwargs) -> Any:
        """Send a request and return the decoded body, rejecting ``success: false`` envelopes."""
        response = self.request(method, url, **kwargs)
        data = _decode(response)
        if isinstance(data, dict) and data.get("success") is False:
            raise BusinessRuleError(data.get("message") or None)
        return data


def _decode(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(response: requests.Response) -> Optional[str]:
    data = _decode(response)
    if isinstance(data, dict):
        return data.get("message") or data.get("error") or None
    return None
