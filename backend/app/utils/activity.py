"""Lightweight helper for recording activity log entries.

Usage:
    await log_activity(
        db, admin, action="reviewed", entity_type="document",
        entity_id=document.id, summary="Approved CIPC document",
    )

The row is added to the current session and committed with the
enclosing transaction — no extra flush is performed.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity_log import ActivityLog
from app.models.profile import Profile


async def log_activity(
    db: AsyncSession,
    profile: Profile,
    *,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    summary: str | None = None,
    details: dict | None = None,
) -> None:
    """Append an activity log entry to the current DB session."""
    entry = ActivityLog(
        profile_id=profile.id,
        profile_name=profile.full_name or profile.email,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        summary=summary,
        details=details,
    )
    db.add(entry)
