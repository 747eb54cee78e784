"""FastAPI dependencies for authentication.

Dependencies:
  get_current_profile   → decode JWT, load the profile from DB, return Profile
  require_role(...)     → restrict a route to specific roles

Fine-grained decisions (ownership, admin-only transitions) are made by the
Role Gate inside the services, not here.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import decode_token
from app.auth.revocation import TokenRevocation
from app.database import get_db
from app.models.profile import Profile, UserRole

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


async def get_current_profile(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """Decode the JWT, load the profile, and reject disabled accounts."""
    payload = decode_token(token)
    profile_id: str | None = payload.get("sub")
    if not profile_id or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if await TokenRevocation.is_revoked(token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if await TokenRevocation.is_profile_revoked(profile_id):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired. Please log in again.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(Profile).where(Profile.id == profile_id))
    profile = result.scalar_one_or_none()
    if not profile or not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Profile not found or disabled",
        )

    profile._token_payload = payload  # type: ignore[attr-defined]
    return profile


def require_role(*roles: UserRole):
    """Dependency factory — restrict to one or more roles.

    Usage:
        @router.get("/admin/stats")
        async def stats(admin: Profile = Depends(require_role(UserRole.ADMIN))):
            ...
    """
    async def _check(profile: Profile = Depends(get_current_profile)) -> Profile:
        if profile.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(r.value for r in roles)}",
            )
        return profile

    return _check
