"""
Database session management

Provides the session scope context manager and the ``async_with_session``
decorator used by repositories.
"""

import logging
from contextlib import asynccontextmanager
from functools import wraps
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession
from .base import AsyncSessionLocal

logger = logging.getLogger(__name__)


@asynccontextmanager
async def async_session_scope() -> AsyncGenerator[AsyncSession, None]:
    """
    Asynchronous context manager: commit on success, roll back on error

    Usage:
        async with async_session_scope() as session:
            result = await session.execute(stmt)
    """
    session = AsyncSessionLocal()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


def async_with_session(f):
    """
    Asynchronous decorator: run the wrapped coroutine in its own session

    The session is injected as the argument after ``self`` for instance
    methods, or as the first argument for plain functions. One decorated call
    is one transaction.

    Usage:
        @async_with_session
        async def some_db_function(self, session, param1):
            result = await session.execute(stmt)
            return result.scalars().all()
    """
    @wraps(f)
    async def wrapper(*args, **kwargs):
        async with async_session_scope() as session:
            if args and hasattr(args[0].__class__, f.__name__):
                new_args = (args[0], session) + args[1:]
            else:
                new_args = (session,) + args

            try:
                return await f(*new_args, **kwargs)
            except Exception as e:
                logger.error(f"Database operation failed in {f.__name__}: {e}")
                raise

    return wrapper

