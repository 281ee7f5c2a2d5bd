from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import event, Engine, Result, CursorResult
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import Session

import config
from models.base import Base
# Imports of the models are needed to register all tables on Base.metadata
import models  # noqa: F401

engine = create_async_engine(config.DB_URL, echo=config.SQL_ECHO)
session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

if config.DB_URL.startswith("sqlite") and ":memory:" not in config.DB_URL:
    data_folder = Path(config.DB_URL.split(":///", 1)[-1]).parent
    if data_folder.exists() is False:
        data_folder.mkdir(parents=True)


@asynccontextmanager
async def get_db_session() -> AsyncSession:
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def session_execute(stmt, session: AsyncSession | Session) -> Result[Any] | CursorResult[Any]:
    if isinstance(session, AsyncSession):
        query_result = await session.execute(stmt)
        return query_result
    else:
        query_result = session.execute(stmt)
        return query_result


async def session_flush(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.flush()
    else:
        session.flush()


async def session_commit(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.commit()
    else:
        session.commit()


async def session_rollback(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.rollback()
    else:
        session.rollback()


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    if "sqlite" in type(dbapi_connection).__module__:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def create_db_and_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
