import logging
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from swish.core.config import settings

logger = logging.getLogger(__name__)

engine: AsyncEngine | None = None
async_session: async_sessionmaker[AsyncSession] | None = None


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


async def connect_db_pool():
    global engine, async_session
    if engine is None:
        try:
            engine = create_async_engine(
                settings.database_url,
                echo=settings.DB_ECHO,
                pool_size=5,
                max_overflow=15,
                pool_timeout=30,
                pool_pre_ping=True,
            )
            async_session = make_session_factory(engine)
            logger.info("Database engine created successfully.")
        except Exception as e:
            logger.error(f"Error connecting to database: {e}")
            raise


async def close_db_pool():
    global engine, async_session
    if engine is not None:
        await engine.dispose()
        engine = None
        async_session = None
        logger.info("Database engine disposed.")


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if async_session is None:
        raise RuntimeError("Database engine is not initialized.")
    return async_session


async def get_db_session(
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise
