"""Profiles: registration, credentials and two-phase deletion.

Deleting a profile happens in two steps:
  1. ``disable_profile`` cuts access immediately: the row is flagged
     inactive and every token the profile holds is revoked in Redis.
  2. ``purge_profile`` removes the identity record, and only for a
     profile that was disabled first.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.gate import Action, Target, ensure
from app.auth.password import hash_password, verify_password
from app.auth.revocation import TokenRevocation
from app.middleware.exceptions import (
    InvalidStateError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from app.models.profile import Profile, UserRole
from app.utils.activity import log_activity

logger = logging.getLogger("freightlink.profiles")


async def register(
    db: AsyncSession,
    email: str,
    password: str,
    role: UserRole,
    full_name: str | None = None,
) -> Profile:
    """Create a supplier or transporter profile (admins are provisioned)."""
    if role == UserRole.ADMIN:
        raise PermissionDeniedError("Admin accounts cannot be self-registered")

    email = email.strip().lower()
    existing = await db.execute(select(Profile.id).where(func.lower(Profile.email) == email))
    if existing.scalar_one_or_none() is not None:
        raise InvalidStateError("Email already registered", error_code="EMAIL_TAKEN")

    profile = Profile(
        email=email,
        hashed_password=hash_password(password),
        full_name=(full_name or "").strip() or None,
        role=role,
    )
    db.add(profile)
    await db.flush()
    logger.info("Registered %s profile %s", role.value, profile.id)
    return profile


async def authenticate(db: AsyncSession, email: str, password: str) -> Profile | None:
    """Return the active profile for these credentials, or None."""
    result = await db.execute(
        select(Profile).where(func.lower(Profile.email) == email.strip().lower())
    )
    profile = result.scalar_one_or_none()
    if not profile or not profile.hashed_password:
        return None
    if not verify_password(password, profile.hashed_password):
        return None
    if not profile.is_active:
        return None
    return profile


async def _get_profile(db: AsyncSession, profile_id: str) -> Profile:
    profile = await db.get(Profile, profile_id)
    if profile is None:
        raise ResourceNotFoundError("Profile", profile_id)
    return profile


async def disable_profile(db: AsyncSession, actor: Profile, profile_id: str) -> Profile:
    """Phase one of deletion: deactivate and revoke every token."""
    profile = await _get_profile(db, profile_id)
    ensure(actor, Action.PROFILE_DISABLE, Target(company_id=profile.company_id))
    if profile.id == actor.id:
        raise InvalidStateError("You cannot disable your own profile", error_code="SELF_DISABLE")

    if profile.is_active:
        profile.is_active = False
        profile.disabled_at = datetime.utcnow()
        await db.flush()

    if not await TokenRevocation.revoke_profile_tokens(profile.id):
        logger.warning("Profile %s disabled but token revocation failed", profile.id)

    await log_activity(
        db, actor, action="disabled", entity_type="profile", entity_id=profile.id,
        summary=f"Disabled profile {profile.email}",
    )
    logger.info("Profile %s disabled by %s", profile.id, actor.id)
    return profile


async def purge_profile(db: AsyncSession, actor: Profile, profile_id: str) -> None:
    """Phase two of deletion: remove a previously disabled profile."""
    profile = await _get_profile(db, profile_id)
    ensure(actor, Action.PROFILE_PURGE, Target(company_id=profile.company_id))
    if profile.id == actor.id:
        raise InvalidStateError("You cannot delete your own profile", error_code="SELF_DISABLE")
    if profile.is_active:
        raise InvalidStateError(
            "Disable the profile before deleting it", error_code="PROFILE_ACTIVE"
        )

    email = profile.email
    await db.delete(profile)
    await db.flush()

    await log_activity(
        db, actor, action="purged", entity_type="profile", entity_id=profile_id,
        summary=f"Deleted profile {email}",
    )
    logger.info("Profile %s purged by %s", profile_id, actor.id)


async def list_profiles(
    db: AsyncSession,
    actor: Profile,
    role: UserRole | None = None,
    unlinked_only: bool = False,
) -> list[Profile]:
    """Admin listing; ``unlinked_only`` gives the company-setup queue."""
    ensure(actor, Action.PROFILE_DISABLE)
    query = select(Profile)
    if role is not None:
        query = query.where(Profile.role == role)
    if unlinked_only:
        query = query.where(Profile.company_id.is_(None), Profile.role != UserRole.ADMIN)
    result = await db.execute(query.order_by(Profile.created_at.desc()))
    return list(result.scalars().all())
