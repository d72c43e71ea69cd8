"""Async SQLAlchemy engine, session factory and startup initialisation."""

import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from config import DATABASE_URL, ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_NAME

logger = logging.getLogger(__name__)

# SQLite connections are cheap and must not outlive the event loop that opened them.
_engine_kwargs = {"poolclass": NullPool} if DATABASE_URL.startswith("sqlite") else {"pool_pre_ping": True}

engine = create_async_engine(DATABASE_URL, **_engine_kwargs)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    """FastAPI dependency yielding a database session."""
    async with async_session() as session:
        yield session


async def init_db():
    """Create tables and make sure at least one admin account exists."""
    import models  # noqa: F401  (registers mappers on Base)
    from services.auth import hash_password

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        result = await db.execute(select(models.Admin).limit(1))
        if result.scalars().first() is None:
            db.add(models.Admin(
                email=ADMIN_EMAIL.strip().lower(),
                name=ADMIN_NAME,
                password_hash=hash_password(ADMIN_PASSWORD),
            ))
            await db.commit()
            logger.info(f"Seeded admin account {ADMIN_EMAIL}")
