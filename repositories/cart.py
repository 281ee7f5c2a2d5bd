from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.cart import Cart, CartDTO
from models.cartItem import CartItem


class CartRepository:
    @staticmethod
    async def get_by_user_id(user_id: int, session: AsyncSession | Session) -> CartDTO | None:
        stmt = (select(Cart)
                .where(Cart.user_id == user_id)
                .execution_options(populate_existing=True))
        cart = await session_execute(stmt, session)
        cart = cart.scalar()
        if cart is not None:
            return CartDTO.model_validate(cart, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_or_create(user_id: int, session: AsyncSession | Session) -> CartDTO:
        cart = await CartRepository.get_by_user_id(user_id, session)
        if cart is None:
            cart = Cart(user_id=user_id, total_items=0, total_amount=0.0)
            session.add(cart)
            await session_flush(session)
            return CartDTO.model_validate(cart, from_attributes=True)
        else:
            return cart

    @staticmethod
    async def update_totals(cart_id: int, total_items: int, total_amount: float,
                            session: AsyncSession | Session) -> None:
        stmt = (update(Cart)
                .where(Cart.id == cart_id)
                .values(total_items=total_items, total_amount=total_amount)
                .execution_options(synchronize_session=False))
        await session_execute(stmt, session)

    @staticmethod
    async def delete(cart_id: int, session: AsyncSession | Session) -> None:
        await session_execute(delete(CartItem).where(CartItem.cart_id == cart_id), session)
        await session_execute(delete(Cart).where(Cart.id == cart_id), session)
