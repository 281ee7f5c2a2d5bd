"""
Unit Tests: OrderService.create_order and order queries

Covers:
- Cash on delivery: order + stock committed together, uniform rollback
- Gateway methods: signed draft, nothing persisted
- Request shape validation (single product xor items)
- Ownership checks and listings
"""

import pytest
from unittest.mock import AsyncMock, patch

from enums.order_source import OrderSource
from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from exceptions.order import OrderValidationException, OrderNotFoundException, OrderOwnershipException
from exceptions.payment import GatewayException
from exceptions.product import InsufficientStockException, ProductNotFoundException, SelectionRequiredException
from models.cart import AddToCartRequest
from models.order import CreateOrderRequest, OrderDTO, PaymentIntentDTO
from repositories.cart import CartRepository
from repositories.order import OrderRepository
from repositories.product import ProductRepository
from services.cart import CartService
from services.order import OrderService
from services.payment import PaymentService


def cod_request(shipping_address: dict, **kwargs) -> CreateOrderRequest:
    return CreateOrderRequest(shipping_address=shipping_address,
                              payment_info={"method": PaymentMethod.CASH_ON_DELIVERY.value},
                              **kwargs)


class TestCashOnDelivery:

    @pytest.mark.asyncio
    async def test_single_product_order(self, test_session, user_id, create_product, shipping_address,
                                        gateway_client):
        product_id = await create_product(price=500.0, stock=10)

        order = await OrderService.create_order(
            user_id, cod_request(shipping_address, product_id=product_id, quantity=2), gateway_client, test_session)

        assert isinstance(order, OrderDTO)
        assert order.status == OrderStatus.PROCESSING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.stock_committed is True
        assert order.source == OrderSource.SINGLE_PRODUCT
        assert order.items_price == 1000.0
        assert order.tax_price == 180.0
        assert order.shipping_price == 100.0
        assert order.total_amount == 1280.0
        assert order.items[0].name == "Test Product"
        assert order.items[0].price == 500.0
        assert order.shipping_address.city == "Bengaluru"
        assert await ProductRepository.get_stock(product_id, test_session) == 8
        assert await ProductRepository.get_sold_count(product_id, test_session) == 2
        gateway_client.create_order.assert_not_called()

    @pytest.mark.asyncio
    async def test_insufficient_stock_persists_nothing(self, test_session, user_id, create_product,
                                                       shipping_address, gateway_client):
        product_id = await create_product(stock=1)

        with pytest.raises(InsufficientStockException):
            await OrderService.create_order(
                user_id, cod_request(shipping_address, product_id=product_id, quantity=2), gateway_client,
                test_session)

        assert await ProductRepository.get_stock(product_id, test_session) == 1
        assert await OrderRepository.count(None, test_session) == 0

    @pytest.mark.asyncio
    async def test_stock_failure_mid_commit_rolls_back_order(self, test_session, user_id, create_product,
                                                             shipping_address, gateway_client):
        """Each line passes validation alone, together they exceed the stock."""
        product_id = await create_product(stock=3)
        items = [{"product_id": product_id, "quantity": 2}, {"product_id": product_id, "quantity": 2}]

        with pytest.raises(InsufficientStockException):
            await OrderService.create_order(user_id, cod_request(shipping_address, items=items), gateway_client,
                                            test_session)

        assert await ProductRepository.get_stock(product_id, test_session) == 3
        assert await ProductRepository.get_sold_count(product_id, test_session) == 0
        assert await OrderRepository.count(None, test_session) == 0

    @pytest.mark.asyncio
    async def test_variant_price_snapshot(self, test_session, user_id, create_product, shipping_address,
                                          gateway_client):
        product_id = await create_product(price=500.0, stock=5, variants=[("XL", 650.0, 5)])
        items = [{"product_id": product_id, "quantity": 2, "variant": "XL"}]

        order = await OrderService.create_order(user_id, cod_request(shipping_address, items=items),
                                                gateway_client, test_session)

        assert order.items[0].price == 650.0
        assert order.items[0].variant_label == "XL"
        assert order.items_price == 1300.0
        assert order.shipping_price == 0.0

    @pytest.mark.asyncio
    async def test_missing_color_selection_rejected(self, test_session, user_id, create_product,
                                                    shipping_address, gateway_client):
        product_id = await create_product(stock=10, variants=[("M", None, 5), ("L", None, 5)],
                                          colors=[("Red", 5), ("Blue", 5)])
        items = [{"product_id": product_id, "quantity": 2, "variant": "M"}]

        with pytest.raises(SelectionRequiredException):
            await OrderService.create_order(user_id, cod_request(shipping_address, items=items),
                                            gateway_client, test_session)

        product = await ProductRepository.get_by_id(product_id, test_session)
        assert product.stock == 10
        assert product.get_variant("M").stock == 5
        assert await OrderRepository.count(None, test_session) == 0

    @pytest.mark.asyncio
    async def test_variant_and_color_limited_by_smaller_pool(self, test_session, user_id, create_product,
                                                             shipping_address, gateway_client):
        product_id = await create_product(stock=11, variants=[("M", None, 10), ("L", None, 1)],
                                          colors=[("Red", 1), ("Blue", 10)])
        items = [{"product_id": product_id, "quantity": 2, "variant": "M", "color": "Red"}]

        with pytest.raises(InsufficientStockException) as exc_info:
            await OrderService.create_order(user_id, cod_request(shipping_address, items=items),
                                            gateway_client, test_session)

        assert exc_info.value.details["available"] == 1
        assert await ProductRepository.get_stock(product_id, test_session) == 11
        assert await OrderRepository.count(None, test_session) == 0

    @pytest.mark.asyncio
    async def test_cart_order_removes_purchased_lines(self, test_session, user_id, create_product,
                                                      shipping_address, gateway_client):
        bought = await create_product(name="Bought", price=100.0)
        kept = await create_product(name="Kept", price=50.0)
        await CartService.add_item(user_id, AddToCartRequest(product_id=bought, quantity=1), test_session)
        await CartService.add_item(user_id, AddToCartRequest(product_id=kept, quantity=2), test_session)

        await OrderService.create_order(user_id, cod_request(shipping_address,
                                                             items=[{"product_id": bought, "quantity": 1}]),
                                        gateway_client, test_session)

        cart = await CartService.get_cart(user_id, test_session)
        assert [line.product_id for line in cart.items] == [kept]
        assert cart.total_amount == 100.0

    @pytest.mark.asyncio
    async def test_single_product_order_keeps_cart(self, test_session, user_id, create_product,
                                                   shipping_address, gateway_client):
        product_id = await create_product()
        await CartService.add_item(user_id, AddToCartRequest(product_id=product_id, quantity=1), test_session)

        await OrderService.create_order(user_id, cod_request(shipping_address, product_id=product_id, quantity=1),
                                        gateway_client, test_session)

        assert await CartRepository.get_by_user_id(user_id, test_session) is not None

    @pytest.mark.asyncio
    async def test_cart_cleanup_failure_does_not_fail_order(self, test_session, user_id, create_product,
                                                            shipping_address, gateway_client):
        product_id = await create_product(stock=5)

        with patch.object(CartService, "remove_purchased_items", AsyncMock(side_effect=RuntimeError("boom"))):
            order = await OrderService.create_order(
                user_id, cod_request(shipping_address, items=[{"product_id": product_id, "quantity": 1}]),
                gateway_client, test_session)

        assert order.id is not None
        assert await ProductRepository.get_stock(product_id, test_session) == 4


class TestGatewayPayment:

    @pytest.mark.asyncio
    async def test_returns_signed_draft_without_persisting(self, test_session, user_id, create_product,
                                                           shipping_address, gateway_client):
        product_id = await create_product(price=600.0, stock=5)
        request = CreateOrderRequest(product_id=product_id, quantity=2, shipping_address=shipping_address,
                                     payment_info={"method": "razorpay"})

        result = await OrderService.create_order(user_id, request, gateway_client, test_session)

        assert isinstance(result, PaymentIntentDTO)
        assert result.gateway_order.id == "order_TEST123"
        assert result.gateway_order.amount == 141600
        assert result.order_draft.total_amount == 1416.0
        assert result.order_draft.gateway_order_id == "order_TEST123"
        assert result.order_draft.user_id == user_id
        assert PaymentService.is_draft_authentic(result.order_draft)
        call_kwargs = gateway_client.create_order.call_args.kwargs
        assert call_kwargs["amount"] == 141600
        assert call_kwargs["currency"] == "INR"
        assert call_kwargs["receipt"].startswith("temp_")
        assert await OrderRepository.count(None, test_session) == 0
        assert await ProductRepository.get_stock(product_id, test_session) == 5

    @pytest.mark.asyncio
    async def test_gateway_failure(self, test_session, user_id, create_product, shipping_address,
                                   gateway_client):
        product_id = await create_product()
        gateway_client.create_order.side_effect = GatewayException("connection refused")
        request = CreateOrderRequest(product_id=product_id, quantity=1, shipping_address=shipping_address,
                                     payment_info={"method": "upi"})

        with pytest.raises(GatewayException) as exc_info:
            await OrderService.create_order(user_id, request, gateway_client, test_session)

        assert exc_info.value.message == "Error initializing payment"
        assert await OrderRepository.count(None, test_session) == 0

    @pytest.mark.asyncio
    async def test_stock_checked_before_gateway_call(self, test_session, user_id, create_product,
                                                     shipping_address, gateway_client):
        product_id = await create_product(stock=0)
        request = CreateOrderRequest(product_id=product_id, quantity=1, shipping_address=shipping_address,
                                     payment_info={"method": "credit_card"})

        with pytest.raises(InsufficientStockException):
            await OrderService.create_order(user_id, request, gateway_client, test_session)

        gateway_client.create_order.assert_not_called()


class TestRequestValidation:

    @pytest.mark.asyncio
    async def test_both_shapes_rejected(self, test_session, user_id, create_product, shipping_address,
                                        gateway_client):
        product_id = await create_product()
        request = cod_request(shipping_address, product_id=product_id, quantity=1,
                              items=[{"product_id": product_id, "quantity": 1}])

        with pytest.raises(OrderValidationException):
            await OrderService.create_order(user_id, request, gateway_client, test_session)

    @pytest.mark.asyncio
    async def test_neither_shape_rejected(self, test_session, user_id, shipping_address, gateway_client):
        with pytest.raises(OrderValidationException):
            await OrderService.create_order(user_id, cod_request(shipping_address), gateway_client, test_session)

    @pytest.mark.asyncio
    async def test_product_without_quantity_rejected(self, test_session, user_id, create_product,
                                                     shipping_address, gateway_client):
        product_id = await create_product()

        with pytest.raises(OrderValidationException):
            await OrderService.create_order(user_id, cod_request(shipping_address, product_id=product_id),
                                            gateway_client, test_session)

    @pytest.mark.asyncio
    async def test_empty_items_rejected(self, test_session, user_id, shipping_address, gateway_client):
        with pytest.raises(OrderValidationException):
            await OrderService.create_order(user_id, cod_request(shipping_address, items=[]), gateway_client,
                                            test_session)

    @pytest.mark.asyncio
    async def test_unknown_product(self, test_session, user_id, shipping_address, gateway_client):
        with pytest.raises(ProductNotFoundException):
            await OrderService.create_order(user_id, cod_request(shipping_address, product_id=999, quantity=1),
                                            gateway_client, test_session)


class TestOrderQueries:

    @pytest.mark.asyncio
    async def test_owner_and_admin_access(self, test_session, user_id, other_user_id, create_product,
                                          shipping_address, gateway_client):
        product_id = await create_product()
        order = await OrderService.create_order(
            user_id, cod_request(shipping_address, product_id=product_id, quantity=1), gateway_client, test_session)

        assert (await OrderService.get_order(order.id, user_id, False, test_session)).id == order.id
        assert (await OrderService.get_order(order.id, other_user_id, True, test_session)).id == order.id
        with pytest.raises(OrderOwnershipException):
            await OrderService.get_order(order.id, other_user_id, False, test_session)

    @pytest.mark.asyncio
    async def test_missing_order(self, test_session, user_id):
        with pytest.raises(OrderNotFoundException):
            await OrderService.get_order(12345, user_id, True, test_session)

    @pytest.mark.asyncio
    async def test_user_orders_newest_first(self, test_session, user_id, create_product, shipping_address,
                                            gateway_client):
        product_id = await create_product(stock=10)
        first = await OrderService.create_order(
            user_id, cod_request(shipping_address, product_id=product_id, quantity=1), gateway_client, test_session)
        second = await OrderService.create_order(
            user_id, cod_request(shipping_address, product_id=product_id, quantity=1), gateway_client, test_session)

        orders = await OrderService.get_user_orders(user_id, test_session)

        assert [order.id for order in orders] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_list_orders_filters_and_paginates(self, test_session, user_id, create_product,
                                                     shipping_address, gateway_client):
        product_id = await create_product(stock=10)
        for _ in range(3):
            await OrderService.create_order(
                user_id, cod_request(shipping_address, product_id=product_id, quantity=1), gateway_client,
                test_session)

        page = await OrderService.list_orders(OrderStatus.PROCESSING, 1, 2, test_session)
        empty = await OrderService.list_orders(OrderStatus.DELIVERED, 1, 2, test_session)

        assert page.total == 3
        assert len(page.orders) == 2
        assert empty.total == 0

    @pytest.mark.asyncio
    async def test_delete_order(self, test_session, user_id, create_product, shipping_address, gateway_client):
        product_id = await create_product()
        order = await OrderService.create_order(
            user_id, cod_request(shipping_address, product_id=product_id, quantity=1), gateway_client, test_session)

        await OrderService.delete_order(order.id, test_session)

        assert await OrderRepository.get_by_id(order.id, test_session) is None
        with pytest.raises(OrderNotFoundException):
            await OrderService.delete_order(order.id, test_session)
