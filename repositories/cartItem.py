from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.cartItem import CartItem, CartItemDTO


class CartItemRepository:

    @staticmethod
    async def create(cart_item: CartItemDTO, session: AsyncSession | Session) -> int:
        cart_item = CartItem(**cart_item.model_dump(exclude={"id"}))
        session.add(cart_item)
        await session_flush(session)
        return cart_item.id

    @staticmethod
    async def get_by_cart_id(cart_id: int, session: AsyncSession | Session) -> list[CartItemDTO]:
        stmt = (select(CartItem)
                .where(CartItem.cart_id == cart_id)
                .order_by(CartItem.id)
                .execution_options(populate_existing=True))
        cart_items = await session_execute(stmt, session)
        return [CartItemDTO.model_validate(cart_item, from_attributes=True)
                for cart_item in cart_items.scalars().all()]

    @staticmethod
    async def update_quantity(cart_item_id: int, quantity: int, session: AsyncSession | Session) -> None:
        stmt = (update(CartItem)
                .where(CartItem.id == cart_item_id)
                .values(quantity=quantity)
                .execution_options(synchronize_session=False))
        await session_execute(stmt, session)

    @staticmethod
    async def delete_by_ids(cart_item_ids: list[int], session: AsyncSession | Session) -> None:
        if not cart_item_ids:
            return
        stmt = delete(CartItem).where(CartItem.id.in_(cart_item_ids))
        await session_execute(stmt, session)
