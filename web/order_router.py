import logging

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

import config
from enums.order_status import OrderStatus
from models.order import CreateOrderRequest, VerifyPaymentRequest, UpdateOrderStatusRequest, PaymentIntentDTO
from services.order import OrderService
from services.order_lifecycle import OrderLifecycleService
from services.payment import PaymentService
from services.payment_gateway import PaymentGatewayClient
from web.dependencies import get_session, get_current_user_id, get_is_admin, require_admin, get_gateway_client

order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("")
async def create_order(payload: CreateOrderRequest,
                       user_id: int = Depends(get_current_user_id),
                       gateway_client: PaymentGatewayClient = Depends(get_gateway_client),
                       session: AsyncSession = Depends(get_session)):
    """
    Create an order.

    Cash on delivery persists the order right away (201). Gateway methods
    return the payment intent and the signed order draft (200); the client
    pays and then calls /orders/verify with the draft echoed back.
    """
    result = await OrderService.create_order(user_id, payload, gateway_client, session)
    if isinstance(result, PaymentIntentDTO):
        return {"success": True, "data": result}
    return JSONResponse(status_code=status.HTTP_201_CREATED,
                        content=jsonable_encoder({"success": True, "data": result}))


@order_router.post("/verify")
async def verify_payment(payload: VerifyPaymentRequest,
                         user_id: int = Depends(get_current_user_id),
                         session: AsyncSession = Depends(get_session)):
    order = await PaymentService.verify_payment(user_id, payload, session)
    return {"success": True, "data": order}


@order_router.get("/my-orders")
async def get_my_orders(user_id: int = Depends(get_current_user_id),
                        session: AsyncSession = Depends(get_session)):
    orders = await OrderService.get_user_orders(user_id, session)
    return {"success": True, "count": len(orders), "data": orders}


@order_router.get("")
async def list_orders(order_status: OrderStatus | None = Query(None, alias="status"),
                      page: int = Query(1, ge=1),
                      limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=100),
                      admin_id: int = Depends(require_admin),
                      session: AsyncSession = Depends(get_session)):
    orders_page = await OrderService.list_orders(order_status, page, limit, session)
    return {"success": True, "data": orders_page}


@order_router.get("/{order_id}")
async def get_order(order_id: int,
                    user_id: int = Depends(get_current_user_id),
                    is_admin: bool = Depends(get_is_admin),
                    session: AsyncSession = Depends(get_session)):
    order = await OrderService.get_order(order_id, user_id, is_admin, session)
    return {"success": True, "data": order}


@order_router.put("/{order_id}/status")
async def update_order_status(order_id: int,
                              payload: UpdateOrderStatusRequest,
                              admin_id: int = Depends(require_admin),
                              session: AsyncSession = Depends(get_session)):
    order = await OrderLifecycleService.update_status(order_id, payload.status, payload.tracking_number, session)
    logging.info(f"🔧 Admin {admin_id} set order {order_id} to {payload.status.value}")
    return {"success": True, "data": order}


@order_router.patch("/{order_id}/deliver")
async def mark_order_delivered(order_id: int,
                               admin_id: int = Depends(require_admin),
                               session: AsyncSession = Depends(get_session)):
    order = await OrderLifecycleService.mark_delivered(order_id, session)
    return {"success": True, "data": order}


@order_router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(order_id: int,
                       admin_id: int = Depends(require_admin),
                       session: AsyncSession = Depends(get_session)):
    await OrderService.delete_order(order_id, session)
    logging.info(f"🔧 Admin {admin_id} deleted order {order_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
