"""Database engine, session factory, and declarative base.

All marketplace tables (profiles, companies, fleet, documents, loads)
share one schema; row scoping by company is enforced in the Role Gate,
not by the database.

Object storage is not transactional, so services that touch it register
deferred work on the session: ``on_commit`` callbacks run once the
transaction has committed, ``on_rollback`` callbacks once it has been
rolled back.  ``transaction()`` awaits whichever set was released.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase, Session

from app.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=20,
    max_overflow=10,
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    pass


# ── Deferred side effects ────────────────────────────────────

Callback = Callable[[], Awaitable[None]]

_ON_COMMIT = "freightlink.on_commit"
_ON_ROLLBACK = "freightlink.on_rollback"
_RELEASED = "freightlink.released"


def on_commit(session: AsyncSession, callback: Callback) -> None:
    session.info.setdefault(_ON_COMMIT, []).append(callback)


def on_rollback(session: AsyncSession, callback: Callback) -> None:
    session.info.setdefault(_ON_ROLLBACK, []).append(callback)


@event.listens_for(Session, "after_commit")
def _release_commit_callbacks(session: Session) -> None:
    session.info.pop(_ON_ROLLBACK, None)
    session.info.setdefault(_RELEASED, []).extend(session.info.pop(_ON_COMMIT, []))


@event.listens_for(Session, "after_rollback")
def _release_rollback_callbacks(session: Session) -> None:
    session.info.pop(_ON_COMMIT, None)
    session.info.setdefault(_RELEASED, []).extend(session.info.pop(_ON_ROLLBACK, []))


async def run_released(session: AsyncSession) -> None:
    """Await callbacks released by the last commit or rollback.

    Callbacks must handle their own failures.
    """
    for callback in session.info.pop(_RELEASED, []):
        await callback()


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit on success, roll back on any error or cancellation."""
    try:
        yield session
        await session.commit()
    except (Exception, asyncio.CancelledError):
        await session.rollback()
        raise
    finally:
        await run_released(session)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        async with transaction(session):
            yield session
