"""JWT token creation and decoding.

Token claims:
  - sub:         profile ID
  - role:        supplier | transporter | admin
  - company_id:  linked company (omitted until company setup is complete)
  - type:        "access" | "refresh"
  - exp:         expiry timestamp

``company_id`` in the token is informational; authorization always reads
the profile row so a freshly linked company takes effect immediately.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from app.config import settings

ALGORITHM = settings.jwt_algorithm


def create_access_token(
    profile_id: str,
    role: str,
    company_id: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": profile_id,
        "role": role,
        "type": "access",
        "exp": expire,
    }
    if company_id:
        payload["company_id"] = company_id
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def create_refresh_token(profile_id: str, role: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_expire_days)
    payload = {
        "sub": profile_id,
        "role": role,
        "type": "refresh",
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Returns empty dict on failure."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return {}
