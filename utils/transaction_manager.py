import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncGenerator, Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from db import session_commit, session_rollback

logger = logging.getLogger(__name__)


class TransactionManager:
    """
    Scoped transactional units on top of a request session.

    Order creation (cash on delivery and verified gateway payments alike) and
    status transitions run inside atomic_unit: either the order row, its items
    and every stock counter change are committed together, or none of them is.
    """

    @staticmethod
    @asynccontextmanager
    async def atomic_unit(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
        """
        Commit on success, roll back on any exception and re-raise it.

        Usage:
            async with TransactionManager.atomic_unit(session):
                order_id = await OrderRepository.create(order, items, session)
                await StockService.commit_items(items, session)
        """
        transaction_start = datetime.now()
        try:
            yield session
            await session_commit(session)
            duration = (datetime.now() - transaction_start).total_seconds()
            logger.debug(f"Transaction committed successfully in {duration:.2f}s")
        except Exception as e:
            try:
                await session_rollback(session)
                logger.info(f"Transaction rolled back due to error: {e!r}")
            except Exception as rollback_error:
                logger.critical(f"Failed to rollback transaction: {rollback_error}")
            raise

    @staticmethod
    async def execute_with_savepoint(session: AsyncSession,
                                     operation: Callable[[AsyncSession], Awaitable[Any]],
                                     savepoint_name: str = "sp1") -> Any:
        """
        Run one operation inside a SAVEPOINT.

        On failure only the operation's own changes are undone, the enclosing
        transaction stays usable, and the exception is re-raised.
        """
        try:
            async with session.begin_nested():
                logger.debug(f"Savepoint {savepoint_name} created")
                result = await operation(session)
            logger.debug(f"Savepoint {savepoint_name} released")
            return result
        except Exception as e:
            logger.info(f"Rolled back to savepoint {savepoint_name}: {e!r}")
            raise
