"""
Database base configuration and models

Provides the SQLAlchemy async engine, session factory and the base model
mixin shared by every table.
"""

import uuid
from datetime import datetime

from deployer.config.settings import DatabaseConfig
from sqlalchemy import Column, DateTime, String
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

ASYNC_DATABASE_URL = DatabaseConfig.get_async_database_url()


def _engine_options() -> dict:
    if DatabaseConfig.is_sqlite():
        # aiosqlite connections are not shared across event loops
        return {"echo": False, "poolclass": NullPool}
    return {
        "pool_size": DatabaseConfig.POOL_SIZE,
        "max_overflow": DatabaseConfig.MAX_OVERFLOW,
        "pool_pre_ping": True,
        "pool_recycle": DatabaseConfig.POOL_RECYCLE,
        "echo": False,
    }


async_engine = create_async_engine(ASYNC_DATABASE_URL, **_engine_options())

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

Base = declarative_base()


def new_uuid() -> str:
    return str(uuid.uuid4())


class BaseModel:
    """
    Base model - provides common fields and methods
    """

    id = Column(String(36), primary_key=True, default=new_uuid, comment="Primary Key ID")
    create_time = Column(DateTime, default=datetime.now, comment="Creation Time")
    update_time = Column(DateTime, default=datetime.now, onupdate=datetime.now, comment="Update Time")
    create_by = Column(String(64), default=None, comment="Created By")
    update_by = Column(String(64), default=None, comment="Updated By")


async def init_db():
    """Create tables and seed the reserved project names."""
    # Models must be registered on Base.metadata before create_all
    from deployer.db import models  # noqa: F401
    from deployer.db.models.reserved_name import DEFAULT_RESERVED_NAMES, ReservedName
    from sqlalchemy import select

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(ReservedName.name))
        existing = set(result.scalars().all())
        for name in DEFAULT_RESERVED_NAMES:
            if name not in existing:
                session.add(ReservedName(name=name))
        await session.commit()


async def dispose_db():
    """Dispose database engine."""
    await async_engine.dispose()
