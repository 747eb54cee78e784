"""JWT token revocation using a Redis blacklist.

Used on logout and when an admin disables a profile (phase one of
profile deletion): every token the profile holds stops working at once,
before the identity record itself is purged.
"""

import logging
import time
from typing import Optional

import redis.asyncio as redis

from app.config import settings

logger = logging.getLogger("freightlink.revocation")

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Get or create the shared Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection (call on app shutdown)."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


class TokenRevocation:
    """Manage JWT token revocation with Redis."""

    @staticmethod
    async def revoke_token(token: str, expires_at: float) -> bool:
        """Blacklist a single token until its natural expiry."""
        ttl = int(expires_at - time.time())
        if ttl <= 0:
            return True

        redis_client = await get_redis()
        try:
            await redis_client.setex(f"revoked:{token}", ttl, str(int(time.time())))
            return True
        except Exception as e:
            logger.error("Failed to revoke token: %s", e)
            return False

    @staticmethod
    async def is_revoked(token: str) -> bool:
        redis_client = await get_redis()
        try:
            return await redis_client.exists(f"revoked:{token}") > 0
        except Exception as e:
            logger.error("Failed to check token revocation: %s", e)
            # Fail closed
            return True

    @staticmethod
    async def revoke_profile_tokens(profile_id: str, duration: int | None = None) -> bool:
        """Revoke every token issued to a profile.

        The flag outlives the longest refresh token by default, so nothing
        issued before the call can be replayed.
        """
        if duration is None:
            duration = settings.refresh_token_expire_days * 86400

        redis_client = await get_redis()
        try:
            await redis_client.setex(
                f"revoked:profile:{profile_id}", duration, str(int(time.time()))
            )
            return True
        except Exception as e:
            logger.error("Failed to revoke tokens for profile %s: %s", profile_id, e)
            return False

    @staticmethod
    async def is_profile_revoked(profile_id: str) -> bool:
        redis_client = await get_redis()
        try:
            return await redis_client.exists(f"revoked:profile:{profile_id}") > 0
        except Exception as e:
            logger.error("Failed to check profile revocation: %s", e)
            return True
