from pydantic import BaseModel, EmailStr, Field

from app.models.profile import UserRole


# ── Self-registration ────────────────────────────────────────

class RegisterRequest(BaseModel):
    """Suppliers and transporters sign up themselves; role is fixed here."""
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str | None = None
    role: UserRole


class ProfileOut(BaseModel):
    id: str
    email: str
    full_name: str | None
    role: UserRole
    company_id: str | None
    is_active: bool

    model_config = {"from_attributes": True}


# ── Login ────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    profile: ProfileOut


# ── Token refresh ────────────────────────────────────────────

class RefreshRequest(BaseModel):
    refresh_token: str
