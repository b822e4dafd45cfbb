"""Auth routes: login, logout, session.

Route overview:
  POST /login    : email + password login
  POST /logout   : revoke the current token
  GET  /session  : current session (nullable) + admin flag
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from aibotclip.auth.deps import Session, Viewer, check_is_admin, get_viewer, require_session
from aibotclip.auth.jwt import create_access_token
from aibotclip.auth.password import verify_password
from aibotclip.auth.revocation import TokenRevocation
from aibotclip.schemas.auth import LoginRequest, SessionOut, TokenResponse, UserOut
from aibotclip.store.rows import RowStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter()


# ── POST /login ──────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, store: RowStore = Depends(get_store)):
    """Email + password login. Returns a bearer token and the admin flag."""
    user = await store.select_one("users", {"email": body.email.lower()})
    if not user or not verify_password(body.password, user["hashed_password"]):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user["is_active"]:
        raise HTTPException(status_code=403, detail="Account deactivated")

    logger.info("User %s signed in", user["id"])
    return TokenResponse(
        access_token=create_access_token(user["id"]),
        user=UserOut.model_validate(user),
        is_admin=await check_is_admin(store, user["id"]),
    )


# ── POST /logout ─────────────────────────────────────────────

@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(session: Session = Depends(require_session)):
    """Sign out: the token stays blacklisted until it would have expired."""
    if not await TokenRevocation.revoke_token(session.token, session.expires_at):
        raise HTTPException(status_code=503, detail="Sign-out failed, please retry")
    logger.info("User %s signed out", session.user_id)


# ── GET /session ─────────────────────────────────────────────

@router.get("/session", response_model=SessionOut)
async def current_session(viewer: Viewer = Depends(get_viewer)):
    if viewer.session is None:
        return SessionOut()
    s = viewer.session
    return SessionOut(
        user=UserOut(id=s.user_id, email=s.email, full_name=s.full_name, is_active=True),
        is_admin=viewer.is_admin,
    )
