from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from models.cart import AddToCartRequest, UpdateCartItemRequest
from services.cart import CartService
from web.dependencies import get_session, get_current_user_id

cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("")
async def get_cart(user_id: int = Depends(get_current_user_id),
                   session: AsyncSession = Depends(get_session)):
    cart = await CartService.get_cart(user_id, session)
    return {"success": True, "data": cart}


@cart_router.get("/validate")
async def validate_cart(user_id: int = Depends(get_current_user_id),
                        session: AsyncSession = Depends(get_session)):
    shortages = await CartService.validate_user_cart(user_id, session)
    return {"success": True, "data": {"valid": len(shortages) == 0, "shortages": shortages}}


@cart_router.post("")
async def add_to_cart(payload: AddToCartRequest,
                      user_id: int = Depends(get_current_user_id),
                      session: AsyncSession = Depends(get_session)):
    cart = await CartService.add_item(user_id, payload, session)
    return {"success": True, "data": cart}


@cart_router.patch("/{product_id}")
async def update_cart_item(product_id: int,
                           payload: UpdateCartItemRequest,
                           user_id: int = Depends(get_current_user_id),
                           session: AsyncSession = Depends(get_session)):
    cart = await CartService.set_item_quantity(user_id, product_id, payload.quantity, session)
    return {"success": True, "data": cart}


@cart_router.delete("/{product_id}")
async def remove_from_cart(product_id: int,
                           user_id: int = Depends(get_current_user_id),
                           session: AsyncSession = Depends(get_session)):
    cart = await CartService.remove_item(user_id, product_id, session)
    return {"success": True, "data": cart}


@cart_router.delete("")
async def clear_cart(user_id: int = Depends(get_current_user_id),
                     session: AsyncSession = Depends(get_session)):
    cart = await CartService.clear(user_id, session)
    return {"success": True, "data": cart}
