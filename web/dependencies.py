"""
Request-scoped dependencies shared by the routers.

Authentication happens upstream: the API gateway in front of this service
validates the session and forwards the user id and role as headers.
"""

from typing import AsyncGenerator

from fastapi import Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db_session
from enums.user_role import UserRole
from services.payment_gateway import PaymentGatewayClient


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with get_db_session() as session:
        yield session


async def get_current_user_id(x_user_id: int | None = Header(None)) -> int:
    if x_user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized to access this route")
    return x_user_id


async def get_is_admin(x_user_role: str | None = Header(None)) -> bool:
    return x_user_role == UserRole.ADMIN.value


async def require_admin(x_user_id: int | None = Header(None), x_user_role: str | None = Header(None)) -> int:
    if x_user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized to access this route")
    if x_user_role != UserRole.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return x_user_id


def get_gateway_client(request: Request) -> PaymentGatewayClient:
    return request.app.state.gateway_client
