import logging
import time

from sqlalchemy.ext.asyncio import AsyncSession

import config
from enums.order_source import OrderSource
from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from exceptions.order import OrderNotFoundException, OrderValidationException, OrderOwnershipException
from models.order import OrderDTO, OrderDraftDTO, CreateOrderRequest, OrderItemRequest, PaymentIntentDTO, \
    OrderPageDTO
from models.orderItem import OrderItemDTO
from repositories.order import OrderRepository
from services.cart import CartService
from services.payment import PaymentService
from services.payment_gateway import PaymentGatewayClient
from services.pricing import PricingService
from services.stock import StockService
from utils.transaction_manager import TransactionManager


class OrderService:

    @staticmethod
    def _normalize_items(request: CreateOrderRequest) -> tuple[list[OrderItemRequest], OrderSource]:
        """Exactly one of (product_id + quantity) or items[] must be present."""
        has_single_product = request.product_id is not None or request.quantity is not None
        has_items = request.items is not None

        if has_single_product and has_items:
            raise OrderValidationException("provide either product_id and quantity or items, not both")
        if not has_single_product and not has_items:
            raise OrderValidationException("provide either product_id and quantity or items")
        if has_single_product:
            if request.product_id is None or request.quantity is None:
                raise OrderValidationException("product_id and quantity are both required")
            return [OrderItemRequest(product_id=request.product_id, quantity=request.quantity)], \
                OrderSource.SINGLE_PRODUCT
        if len(request.items) == 0:
            raise OrderValidationException("items must not be empty")
        return request.items, OrderSource.CART

    @staticmethod
    async def build_items(item_requests: list[OrderItemRequest], session: AsyncSession) -> list[OrderItemDTO]:
        """
        Validate every requested item against stock and snapshot its name and unit price.

        Raises:
            ProductNotFoundException / VariantNotFoundException / ColorNotFoundException
            InsufficientStockException: quantity exceeds the selection's pool
        """
        items = []
        for item_request in item_requests:
            product = await StockService.ensure_available(item_request.product_id, item_request.quantity,
                                                          item_request.variant, item_request.color, session=session)
            items.append(OrderItemDTO(
                product_id=product.id,
                name=product.name,
                price=PricingService.effective_price(product, item_request.variant),
                quantity=item_request.quantity,
                variant_label=item_request.variant,
                color_name=item_request.color
            ))
        return items

    @staticmethod
    async def commit_order(order: OrderDTO, items: list[OrderItemDTO], session: AsyncSession) -> int:
        """
        Persist an order and take its stock as one transactional unit.

        Shared by cash on delivery and verified gateway payments. Any failure
        rolls back the order row together with every stock change made so far.
        Purchased cart lines are removed inside a savepoint: a failure there is
        logged and does not affect the order.
        """
        order.stock_committed = True
        async with TransactionManager.atomic_unit(session):
            order_id = await OrderRepository.create(order, items, session)
            await StockService.commit_items(items, session)
            if order.source == OrderSource.CART:
                try:
                    await TransactionManager.execute_with_savepoint(
                        session,
                        lambda s: CartService.remove_purchased_items(order.user_id, items, s),
                        savepoint_name="cart_cleanup"
                    )
                except Exception as e:
                    logging.warning(f"⚠️ Cart cleanup failed for order {order_id} of user {order.user_id}: {e}")
        logging.info(f"✅ Order {order_id} created for user {order.user_id} "
                     f"({len(items)} items, total {order.total_amount}, method {order.payment_method.value})")
        return order_id

    @staticmethod
    async def create_order(user_id: int,
                           request: CreateOrderRequest,
                           gateway_client: PaymentGatewayClient,
                           session: AsyncSession) -> OrderDTO | PaymentIntentDTO:
        """
        Turn a purchase intent into an order (cash on delivery) or a payment intent.

        Flow:
        1. Validate the request shape and every item against current stock
        2. Price items with effective prices, add tax and shipping
        3. Cash on delivery: persist order (status=processing, payment pending)
           and commit stock in one unit, return the order
        4. Gateway methods: create a gateway order for the total in minor units,
           return the signed, unpersisted draft with the gateway order

        Raises:
            OrderValidationException: Malformed request
            InsufficientStockException: Not enough stock for an item
            GatewayException: Payment intent could not be created
        """
        item_requests, source = OrderService._normalize_items(request)
        items = await OrderService.build_items(item_requests, session)
        totals = PricingService.calculate_totals(PricingService.calculate_items_price(items))
        payment_method = request.payment_info.method

        if not payment_method.is_gateway_routed:
            order = OrderDTO(
                user_id=user_id,
                status=OrderStatus.PROCESSING,
                items_price=totals.items_price,
                tax_price=totals.tax_price,
                shipping_price=totals.shipping_price,
                total_amount=totals.total_amount,
                payment_method=payment_method,
                payment_status=PaymentStatus.PENDING,
                shipping_address=request.shipping_address,
                source=source,
                notes=request.notes,
            )
            order_id = await OrderService.commit_order(order, items, session)
            return await OrderRepository.get_by_id(order_id, session)

        receipt = f"temp_{user_id}_{int(time.time() * 1000)}"
        gateway_order = await gateway_client.create_order(
            amount=PricingService.to_minor_units(totals.total_amount),
            currency=config.CURRENCY,
            receipt=receipt
        )
        draft = OrderDraftDTO(
            user_id=user_id,
            items=items,
            shipping_address=request.shipping_address,
            payment_method=payment_method,
            source=source,
            items_price=totals.items_price,
            tax_price=totals.tax_price,
            shipping_price=totals.shipping_price,
            total_amount=totals.total_amount,
            currency=config.CURRENCY,
            notes=request.notes,
            gateway_order_id=gateway_order.id,
        )
        draft.checksum = PaymentService.sign_draft(draft)
        logging.info(f"💳 Payment intent {gateway_order.id} created for user {user_id} "
                     f"({totals.total_amount} {config.CURRENCY})")
        return PaymentIntentDTO(order_draft=draft, gateway_order=gateway_order)

    @staticmethod
    async def get_order(order_id: int, user_id: int, is_admin: bool, session: AsyncSession) -> OrderDTO:
        order = await OrderRepository.get_by_id(order_id, session)
        if order is None:
            raise OrderNotFoundException(order_id)
        if not is_admin and order.user_id != user_id:
            raise OrderOwnershipException(order_id, user_id)
        return order

    @staticmethod
    async def get_user_orders(user_id: int, session: AsyncSession) -> list[OrderDTO]:
        return await OrderRepository.get_by_user_id(user_id, session)

    @staticmethod
    async def list_orders(status: OrderStatus | None, page: int, limit: int, session: AsyncSession) -> OrderPageDTO:
        orders = await OrderRepository.get_paginated(status, page, limit, session)
        total = await OrderRepository.count(status, session)
        return OrderPageDTO(orders=orders, total=total, page=page, limit=limit)

    @staticmethod
    async def delete_order(order_id: int, session: AsyncSession) -> None:
        # Hard delete, stock is not restored (cancel the order first for that)
        order = await OrderRepository.get_by_id(order_id, session)
        if order is None:
            raise OrderNotFoundException(order_id)
        async with TransactionManager.atomic_unit(session):
            await OrderRepository.delete(order_id, session)
