"""
Explicit per-user session state.

Views wrap ``flask.session`` in a ``UserSession`` and hand it to whatever needs the
bearer token, the signed-in user or the cart. Nothing else touches the cookie.
"""
from typing import Any, Dict, List, MutableMapping, Optional

from .utils import encryption
from .utils.logging import get_logger

log = get_logger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"
CART_KEY = "cart"


class UserSession:
    def __init__(self, store: MutableMapping[str, Any], cipher=encryption) -> None:
        """
        :param store: Backing mapping, ``flask.session`` in the app and a dict in tests.
        :param cipher: Anything with ``encrypt_data``/``decrypt_data``; the token is
                       only ever stored encrypted.
        """
        self._store = store
        self._cipher = cipher

    def _touch(self) -> None:
        if hasattr(self._store, "modified"):
            self._store.modified = True

    @property
    def token(self) -> Optional[str]:
        cipher_text = self._store.get(TOKEN_KEY)
        if not cipher_text:
            return None
        try:
            return self._cipher.decrypt_data(cipher_text)
        except ValueError:
            log.warning("Discarding unreadable session token")
            self._store.pop(TOKEN_KEY, None)
            return None

    @token.setter
    def token(self, value: Optional[str]) -> None:
        if value:
            self._store[TOKEN_KEY] = self._cipher.encrypt_data(value)
        else:
            self._store.pop(TOKEN_KEY, None)
        self._touch()

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        user = self._store.get(USER_KEY)
        return dict(user) if user else None

    @user.setter
    def user(self, value: Optional[Dict[str, Any]]) -> None:
        if value:
            self._store[USER_KEY] = dict(value)
        else:
            self._store.pop(USER_KEY, None)
        self._touch()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user) and bool(self._store.get(TOKEN_KEY))

    @property
    def role(self) -> Optional[str]:
        return (self.user or {}).get("role")

    @property
    def username(self) -> Optional[str]:
        return (self.user or {}).get("username")

    @property
    def customer_id(self) -> Optional[Any]:
        return (self.user or {}).get("customerId")

    @property
    def cart_items(self) -> List[Dict[str, Any]]:
        return [dict(item) for item in self._store.get(CART_KEY) or []]

    def save_cart(self, items: List[Dict[str, Any]]) -> None:
        self._store[CART_KEY] = [dict(item) for item in items]
        self._touch()

    def clear(self) -> None:
        for key in (TOKEN_KEY, USER_KEY, CART_KEY):
            self._store.pop(key, None)
        self._touch()
