import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import pytest
import requests

from wardrobe import create_app
from wardrobe.utils.snapshots import _memory_store

BASE_URL = "http://backend.test/api"


@dataclass
class Call:
    method: str
    path: str
    params: Optional[Dict[str, Any]]
    json: Any
    headers: Dict[str, str]
    timeout: Any = None


def make_response(url: str, status: int = 200, body: Any = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.url = url
    response.reason = "OK" if status < 400 else "Error"
    if body is not None:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    else:
        response._content = b""
    return response


class FakeBackend:
    """Stands in for ``requests.Session.request`` and records every call."""

    def __init__(self) -> None:
        self.routes: Dict[tuple, tuple] = {}
        self.calls: list[Call] = []

    def on(self, method: str, path: str, body: Any = None, status: int = 200) -> None:
        self.routes[(method.upper(), path)] = (status, body)

    def __call__(self, method: str, url: str, **kwargs) -> requests.Response:
        path = url[len(BASE_URL):] if url.startswith(BASE_URL) else url
        self.calls.append(Call(method.upper(), path, kwargs.get("params"), kwargs.get("json"),
                               dict(kwargs.get("headers") or {}), kwargs.get("timeout")))
        status, body = self.routes.get((method.upper(), path), (404, {"message": "Not found"}))
        if isinstance(body, Exception):
            raise body
        if callable(body):
            body = body(self.calls[-1])
        return make_response(url, status, body)

    def sent(self, method: str, path: Optional[str] = None) -> list[Call]:
        return [c for c in self.calls if c.method == method.upper() and (path is None or c.path == path)]


@pytest.fixture
def app():
    app = create_app("testing")
    yield app
    _memory_store.invalidate()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()
    monkeypatch.setattr(requests.Session, "request", fake)
    return fake


@pytest.fixture
def login(client, backend):
    def _login(role: str = "CEO", username: str = "boss"):
        backend.on("POST", "/auth/login", {"success": True, "token": "tok-123", "role": role, "username": username})
        if role == "CUSTOMER":
            backend.on("GET", "/customer/current", {
                "id": 7,
                "fullName": "Nimal Perera",
                "address": "12 Galle Road",
                "country": "Sri Lanka",
                "zipCode": "10300",
                "mobileNumber": "0771234567",
                "province": {"id": 1, "value": "Western"},
            })
        return client.post("/user/login", data={"username": username, "password": "secret1"})
    return _login


class FakeCipher:
    """Reversible stand-in for Fernet so session tests need no app context."""

    @staticmethod
    def encrypt_data(plain_text: str) -> str:
        return "enc:" + plain_text[::-1]

    @staticmethod
    def decrypt_data(cipher_text: str) -> str:
        if not cipher_text.startswith("enc:"):
            raise ValueError("Invalid or corrupted Cipher Text")
        return cipher_text[4:][::-1]


@pytest.fixture
def cipher():
    return FakeCipher()
