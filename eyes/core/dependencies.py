# eyes/core/dependencies.py
# FastAPI dependency functions for authentication and authorization
#
# Key rules:
#   1. The session token proves who the caller is (provider user id)
#   2. The role is resolved live from the database on every request -- never cached
#   3. A signed-in user with no record yet (mid sign-up) passes require_login
#      but fails every role-specific dependency

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from eyes.core.errors import Forbidden, Unauthorized
from eyes.core.security import decode_session_token
from eyes.db.session import get_store
from eyes.db.store import Store
from eyes.services.roles import PARENT, TEACHER, resolve_role

# Bearer token extractor -- auto_error=False so we can handle 401 ourselves
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    id: str
    role: Optional[str]  # teacher | parent | None (no record yet)

    @property
    def is_teacher(self) -> bool:
        return self.role == TEACHER

    @property
    def is_parent(self) -> bool:
        return self.role == PARENT


# ── Auth Dependencies ─────────────────────────────────────────────────────────

def require_login(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    store: Store = Depends(get_store),
) -> CurrentUser:
    """
    Requires a valid session token. Raises 401 if not authenticated.
    Use for: endpoints open to any signed-in user.
    """
    if not credentials:
        raise Unauthorized("Authentication required. Please log in.")
    payload = decode_session_token(credentials.credentials)
    if not payload:
        raise Unauthorized("Session expired or invalid. Please log in again.", title="Session Expired")
    user_id = payload["sub"]
    return CurrentUser(id=user_id, role=resolve_role(store, user_id))


def require_member(user: CurrentUser = Depends(require_login)) -> CurrentUser:
    """
    Requires a teacher or parent record.
    Use for: chat, alerts, settings.
    """
    if user.role is None:
        raise Forbidden("No teacher or parent profile found for this account.", title="No Profile")
    return user


def require_teacher(user: CurrentUser = Depends(require_login)) -> CurrentUser:
    """
    Requires role='teacher'. Raises 403 for other roles.
    Use for: class dashboard, scan interval.
    """
    if user.role != TEACHER:
        raise Forbidden("Teacher access required.")
    return user


def require_parent(user: CurrentUser = Depends(require_login)) -> CurrentUser:
    """
    Requires role='parent'. Raises 403 for other roles.
    Use for: assigned teacher selection.
    """
    if user.role != PARENT:
        raise Forbidden("Parent access required.")
    return user
