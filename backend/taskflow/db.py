from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from taskflow.config import settings
from taskflow.errors import ConflictError


engine = create_async_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session


async def commit_or_conflict(db: AsyncSession, message: str) -> None:
    """Commit, turning a unique-constraint race into a ConflictError.

    Application checks run before every insert, but only the database
    constraint is atomic; a concurrent writer that slipped in between is
    reported to the caller the same way the pre-check would have.
    """
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(message) from exc
