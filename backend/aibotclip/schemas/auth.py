from pydantic import BaseModel, EmailStr


class UserOut(BaseModel):
    id: str
    email: str
    full_name: str
    is_active: bool

    model_config = {"from_attributes": True}


# ── Login ────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
    is_admin: bool = False


# ── Session ──────────────────────────────────────────────────

class SessionOut(BaseModel):
    """Current session, or `user: null` when signed out."""
    user: UserOut | None = None
    is_admin: bool = False
