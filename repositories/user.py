import datetime

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.user import UserDTO, User


class UserRepository:
    @staticmethod
    async def create(user_dto: UserDTO, session: Session | AsyncSession) -> int:
        user = User(**user_dto.model_dump(exclude_none=True))
        session.add(user)
        await session_flush(session)
        return user.id

    @staticmethod
    async def count_created_since(since: datetime.datetime, session: Session | AsyncSession) -> int:
        stmt = select(func.count(User.id)).where(User.created_at >= since)
        users_count = await session_execute(stmt, session)
        return users_count.scalar()
