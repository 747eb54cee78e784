"""Management CLI for platform operators.

Admins cannot self-register; they are provisioned here.

Usage:
    python -m app.cli create-admin EMAIL [FULL_NAME]   # Prompts for a password
    python -m app.cli list-admins                      # Show all admin profiles
"""

import getpass
import sys

from sqlalchemy import Engine, create_engine, func, select
from sqlalchemy.orm import Session

from app.auth.password import hash_password
from app.config import settings
from app.models.profile import Profile, UserRole

MIN_PASSWORD_LENGTH = 8


def get_engine() -> Engine:
    return create_engine(settings.database_url_sync)


def create_admin(
    email: str,
    password: str,
    full_name: str | None = None,
    engine: Engine | None = None,
) -> Profile:
    """Insert an admin profile. Raises ValueError on bad input or a taken email."""
    email = email.strip().lower()
    if "@" not in email:
        raise ValueError(f"Not an email address: {email}")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    with Session(engine or get_engine(), expire_on_commit=False) as session:
        taken = session.execute(
            select(Profile.id).where(func.lower(Profile.email) == email)
        ).scalar_one_or_none()
        if taken is not None:
            raise ValueError(f"Email already registered: {email}")

        profile = Profile(
            email=email,
            hashed_password=hash_password(password),
            full_name=full_name,
            role=UserRole.ADMIN,
            is_active=True,
        )
        session.add(profile)
        session.commit()
        return profile


def list_admins(engine: Engine | None = None) -> list[Profile]:
    with Session(engine or get_engine()) as session:
        result = session.execute(
            select(Profile).where(Profile.role == UserRole.ADMIN).order_by(Profile.email)
        )
        return list(result.scalars().all())


def main(argv: list[str]) -> int:
    cmd = argv[0] if argv else ""
    if cmd == "create-admin" and len(argv) >= 2:
        password = getpass.getpass("Password: ")
        if password != getpass.getpass("Repeat password: "):
            print("Passwords do not match.")
            return 1
        try:
            profile = create_admin(argv[1], password, " ".join(argv[2:]) or None)
        except ValueError as e:
            print(f"  FAILED: {e}")
            return 1
        print(f"  Created admin {profile.email} ({profile.id})")
        return 0
    if cmd == "list-admins":
        admins = list_admins()
        for p in admins:
            status = "active" if p.is_active else "disabled"
            print(f"  {p.email:<40} {status}")
        print(f"\n{len(admins)} admin(s)")
        return 0

    print("Usage: python -m app.cli [create-admin EMAIL [FULL_NAME]|list-admins]")
    return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
