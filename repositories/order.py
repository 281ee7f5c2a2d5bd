import datetime
import logging

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from enums.order_status import OrderStatus
from models.order import Order, OrderDTO
from models.orderItem import OrderItem, OrderItemDTO

logger = logging.getLogger(__name__)


class OrderRepository:
    @staticmethod
    async def create(order_dto: OrderDTO, items: list[OrderItemDTO], session: AsyncSession | Session) -> int:
        order_data = order_dto.model_dump(exclude={"id", "items", "created_at", "updated_at"}, exclude_none=True)
        order_data["shipping_address"] = order_dto.shipping_address.model_dump()
        order = Order(**order_data)
        order.items = [OrderItem(**item.model_dump(exclude={"id", "order_id"})) for item in items]
        session.add(order)
        await session_flush(session)
        return order.id

    @staticmethod
    async def get_by_id(order_id: int, session: AsyncSession | Session) -> OrderDTO | None:
        stmt = (select(Order)
                .where(Order.id == order_id)
                .execution_options(populate_existing=True))
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_by_payment_id(payment_id: str, session: AsyncSession | Session) -> OrderDTO | None:
        stmt = (select(Order)
                .where(Order.payment_id == payment_id)
                .execution_options(populate_existing=True))
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_by_user_id(user_id: int, session: AsyncSession | Session) -> list[OrderDTO]:
        stmt = (select(Order)
                .where(Order.user_id == user_id)
                .order_by(Order.created_at.desc(), Order.id.desc())
                .execution_options(populate_existing=True))
        orders = await session_execute(stmt, session)
        return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]

    @staticmethod
    async def get_paginated(status: OrderStatus | None, page: int, limit: int,
                            session: AsyncSession | Session) -> list[OrderDTO]:
        stmt = select(Order)
        if status is not None:
            stmt = stmt.where(Order.status == status)
        stmt = (stmt.order_by(Order.created_at.desc(), Order.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
                .execution_options(populate_existing=True))
        orders = await session_execute(stmt, session)
        return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]

    @staticmethod
    async def count(status: OrderStatus | None, session: AsyncSession | Session) -> int:
        stmt = select(func.count(Order.id))
        if status is not None:
            stmt = stmt.where(Order.status == status)
        orders_count = await session_execute(stmt, session)
        return orders_count.scalar()

    @staticmethod
    async def update(order_id: int, session: AsyncSession | Session, **values) -> None:
        stmt = (update(Order)
                .where(Order.id == order_id)
                .values(**values)
                .execution_options(synchronize_session=False))
        await session_execute(stmt, session)

    @staticmethod
    async def claim_transition(order_id: int, from_status: OrderStatus, expected_stock_committed: bool,
                               session: AsyncSession | Session, **values) -> bool:
        """
        Apply values only if the order is still in from_status with the given stock marker.

        Returns False when a concurrent transaction moved the order first.
        """
        stmt = (update(Order)
                .where(Order.id == order_id,
                       Order.status == from_status,
                       Order.stock_committed == expected_stock_committed)
                .values(**values)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def delete(order_id: int, session: AsyncSession | Session) -> None:
        await session_execute(delete(OrderItem).where(OrderItem.order_id == order_id), session)
        await session_execute(delete(Order).where(Order.id == order_id), session)
        logger.info(f"🗑️ Order {order_id} deleted")

    # Analytics queries

    @staticmethod
    async def get_revenue_stats(since: datetime.datetime, session: AsyncSession | Session) -> tuple[int, float]:
        stmt = (select(func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0.0))
                .where(Order.created_at >= since))
        result = await session_execute(stmt, session)
        orders_count, revenue = result.one()
        return orders_count or 0, round(revenue or 0.0, 2)

    @staticmethod
    async def get_daily_sales(start: datetime.datetime, end: datetime.datetime, statuses: list[OrderStatus],
                              session: AsyncSession | Session) -> list[tuple[str, int, float]]:
        day = func.date(Order.created_at).label("day")
        stmt = (select(day, func.count(Order.id), func.sum(Order.total_amount))
                .where(Order.created_at >= start,
                       Order.created_at <= end,
                       Order.status.in_(statuses))
                .group_by(day)
                .order_by(day))
        result = await session_execute(stmt, session)
        return [(str(row[0]), row[1], round(row[2] or 0.0, 2)) for row in result.all()]
