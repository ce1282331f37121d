"""
Request-scoped glue between Flask and the service layer.
"""
from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Tuple

from flask import current_app, g, session
from flask_login import UserMixin, current_user, login_required

from ..api import ApiSession, api_for, reference_choices
from ..calculations import format_money
from ..listing import get_path
from ..schemas import LOOKUPS
from ..session import UserSession
from .snapshots import ScopedSnapshots, get_snapshot_store
from .exceptions import AuthenticationError, AuthorizationError, WardrobeError
from .logging import get_logger

log = get_logger(__name__)


class SessionUser(UserMixin):
    """flask-login user rebuilt from the session on every request."""

    def __init__(self, username: str, role: str, customer_id: Any = None) -> None:
        self.id = username
        self.username = username
        self.role = role
        self.customer_id = customer_id

    @classmethod
    def from_session(cls, user_session: UserSession) -> Optional["SessionUser"]:
        if not user_session.is_authenticated:
            return None
        user = user_session.user
        return cls(user["username"], user["role"], user.get("customerId"))


def user_session() -> UserSession:
    return UserSession(session)


def backend() -> ApiSession:
    """The request's single backend session, created on first use."""
    if "api" not in g:
        g.api = api_for(user_session())
    return g.api


def close_backend(exc: Optional[BaseException] = None) -> None:
    api = g.pop("api", None)
    if api is not None:
        api.close()


def snapshots_for(key: str) -> ScopedSnapshots:
    """Last-good list store for one resource, scoped to the signed-in user."""
    owner = user_session().username or "public"
    store = get_snapshot_store(current_app.config.get("SNAPSHOT_TTL", 900))
    return ScopedSnapshots(store, f"{owner}:{key}")


def drop_snapshots(username: Optional[str]) -> None:
    """Forget every list snapshot taken for a user, e.g. on logout."""
    if username:
        get_snapshot_store(current_app.config.get("SNAPSHOT_TTL", 900)).invalidate(f"{username}:")


def load_session_user(user_id: str) -> Optional[SessionUser]:
    user = SessionUser.from_session(user_session())
    if user is None or user.id != user_id:
        return None
    return user


def role_required(*roles: str) -> Callable[..., Any]:
    def decorator(f: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(f)
        @login_required
        def decorated_view(*args: Any, **kwargs: Any) -> Any:
            if roles and current_user.role not in roles:
                allowed = ", ".join(r.replace("_", " ").title() for r in roles)
                raise AuthorizationError(f"This page is only available to {allowed}")
            return f(*args, **kwargs)
        return decorated_view
    return decorator


def reference_options(api: ApiSession, name: str) -> List[Tuple[str, str]]:
    """Select choices for a reference list; an unreachable list yields no choices."""
    path, label = LOOKUPS[name]
    try:
        return reference_choices(api, path, label)
    except AuthenticationError:
        raise
    except WardrobeError as e:
        log.warning("Reference list %s unavailable: %s", name, e)
        return []


def template_globals() -> Dict[str, Any]:
    return {
        "currency": current_app.config.get("CURRENCY", "Rs."),
        "money": format_money,
        "value_at": get_path,
        "cart_count": sum(item.get("quantity", 0) for item in session.get("cart") or []),
    }
