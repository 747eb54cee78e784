"""Auth routes: register, login, refresh, logout, me.

Route overview:
  POST /register  — self-registration as supplier or transporter
  POST /login     — email + password login
  POST /refresh   — exchange a refresh token for new access + refresh tokens
  POST /logout    — revoke the presented access token
  GET  /me        — return the current profile
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_profile, oauth2_scheme
from app.auth.jwt import create_access_token, create_refresh_token, decode_token
from app.auth.revocation import TokenRevocation
from app.database import get_db
from app.models.profile import Profile
from app.schemas.auth import (
    LoginRequest,
    ProfileOut,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from app.services import profiles

router = APIRouter()


# ── Helpers ──────────────────────────────────────────────────

def _build_token_response(profile: Profile) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(
            profile_id=profile.id,
            role=profile.role.value,
            company_id=profile.company_id,
        ),
        refresh_token=create_refresh_token(
            profile_id=profile.id,
            role=profile.role.value,
        ),
        profile=ProfileOut.model_validate(profile),
    )


# ── POST /register ──────────────────────────────────────────

@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Self-registration for suppliers and transporters.

    The new profile has no company yet; it creates one via
    POST /api/companies/ (or an admin links one).
    """
    profile = await profiles.register(
        db, email=body.email, password=body.password,
        role=body.role, full_name=body.full_name,
    )
    return _build_token_response(profile)


# ── POST /login ──────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Email + password login."""
    profile = await profiles.authenticate(db, body.email, body.password)
    if not profile:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _build_token_response(profile)


# ── POST /refresh ────────────────────────────────────────────

@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Exchange a refresh token for a new access + refresh token pair."""
    payload = decode_token(body.refresh_token)
    if payload.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    profile_id = payload.get("sub")
    if await TokenRevocation.is_revoked(body.refresh_token) or await TokenRevocation.is_profile_revoked(profile_id):
        raise HTTPException(status_code=401, detail="Session expired. Please log in again.")

    profile = await db.get(Profile, profile_id)
    if not profile or not profile.is_active:
        raise HTTPException(status_code=401, detail="Profile not found or disabled")

    return _build_token_response(profile)


# ── POST /logout ─────────────────────────────────────────────

@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: str = Depends(oauth2_scheme),
    profile: Profile = Depends(get_current_profile),
):
    """Revoke the current access token until it would have expired."""
    payload = getattr(profile, "_token_payload", {}) or decode_token(token)
    await TokenRevocation.revoke_token(token, float(payload.get("exp", 0)))


# ── GET /me ──────────────────────────────────────────────────

@router.get("/me", response_model=ProfileOut)
async def me(profile: Profile = Depends(get_current_profile)):
    """Return the current authenticated profile."""
    return ProfileOut.model_validate(profile)
