"""FastAPI dependencies for authentication and authorization.

Dependencies:
  get_viewer       → Viewer(session | None, is_admin), resolved once per request
  require_session  → the signed-in Session (401 otherwise)
  require_admin    → Viewer of an admin (401 signed out, 403 not admin)

A missing, expired or revoked token on a public route just means an
anonymous viewer; only the `require_*` dependencies reject.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from aibotclip.auth.jwt import decode_token
from aibotclip.auth.revocation import TokenRevocation
from aibotclip.middleware.exceptions import RemoteCallError
from aibotclip.models.user import ADMIN_ROLE
from aibotclip.store.rows import RowStore, get_store

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

ACCESS_DENIED = "Access denied. Admin privileges required."


@dataclass(frozen=True)
class Session:
    user_id: str
    email: str
    full_name: str
    token: str
    expires_at: float


@dataclass(frozen=True)
class Viewer:
    session: Session | None = None
    is_admin: bool = False


ANONYMOUS = Viewer()


async def check_is_admin(store: RowStore, user_id: str) -> bool:
    """True when the user holds the admin role. A failed lookup reads as False."""
    try:
        grant = await store.select_one("user_roles", {"user_id": user_id, "role": ADMIN_ROLE})
    except RemoteCallError as exc:
        logger.warning("Admin check for %s failed: %s", user_id, exc.reason)
        return False
    return grant is not None


async def get_viewer(
    token: str | None = Depends(oauth2_scheme),
    store: RowStore = Depends(get_store),
) -> Viewer:
    if not token:
        return ANONYMOUS

    payload = decode_token(token)
    user_id: str | None = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        return ANONYMOUS
    if await TokenRevocation.is_revoked(token):
        return ANONYMOUS

    user = await store.select_one("users", {"id": user_id})
    if not user or not user["is_active"]:
        return ANONYMOUS

    session = Session(
        user_id=user["id"],
        email=user["email"],
        full_name=user["full_name"],
        token=token,
        expires_at=float(payload.get("exp", 0)),
    )
    return Viewer(session=session, is_admin=await check_is_admin(store, user_id))


async def require_session(viewer: Viewer = Depends(get_viewer)) -> Session:
    if viewer.session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return viewer.session


async def require_admin(viewer: Viewer = Depends(get_viewer)) -> Viewer:
    if viewer.session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not viewer.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ACCESS_DENIED)
    return viewer
