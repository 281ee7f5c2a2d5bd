"""
Unit Tests: PaymentService.verify_payment

Covers:
- Signature check (HMAC-SHA256 over "order_id|payment_id")
- Draft integrity (checksum, gateway order id, owner)
- Idempotent verification
- Stock commitment in the same unit as the order
"""

import hashlib
import hmac

import pytest

import config
from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from exceptions.order import OrderValidationException
from exceptions.payment import PaymentVerificationFailedException
from exceptions.product import InsufficientStockException
from models.cart import AddToCartRequest
from models.order import CreateOrderRequest, VerifyPaymentRequest
from repositories.cart import CartRepository
from repositories.order import OrderRepository
from repositories.product import ProductRepository
from services.cart import CartService
from services.order import OrderService
from services.payment import PaymentService


def gateway_signature(gateway_order_id: str, gateway_payment_id: str) -> str:
    """Signature as the gateway computes it."""
    return hmac.new(config.PAYMENT_GATEWAY_KEY_SECRET.encode(), f"{gateway_order_id}|{gateway_payment_id}".encode(),
                    hashlib.sha256).hexdigest()


@pytest.fixture
def create_intent(test_session, user_id, shipping_address, gateway_client):
    async def _create(product_id: int, quantity: int = 1, from_cart: bool = False):
        if from_cart:
            request = CreateOrderRequest(items=[{"product_id": product_id, "quantity": quantity}],
                                         shipping_address=shipping_address, payment_info={"method": "razorpay"})
        else:
            request = CreateOrderRequest(product_id=product_id, quantity=quantity,
                                         shipping_address=shipping_address, payment_info={"method": "razorpay"})
        return await OrderService.create_order(user_id, request, gateway_client, test_session)

    return _create


def verify_request(intent, payment_id: str = "pay_ABC", signature: str | None = None, **draft_changes):
    draft = intent.order_draft.model_copy(update=draft_changes)
    return VerifyPaymentRequest(
        gateway_order_id=intent.gateway_order.id,
        gateway_payment_id=payment_id,
        signature=signature or gateway_signature(intent.gateway_order.id, payment_id),
        order_data=draft
    )


class TestSignature:

    def test_signature_matches_gateway_scheme(self):
        assert PaymentService.compute_signature("order_1", "pay_1") == gateway_signature("order_1", "pay_1")

    def test_signature_is_bound_to_both_ids(self):
        signature = gateway_signature("order_1", "pay_1")

        assert PaymentService.is_signature_valid("order_1", "pay_1", signature)
        assert not PaymentService.is_signature_valid("order_1", "pay_2", signature)
        assert not PaymentService.is_signature_valid("order_2", "pay_1", signature)


class TestVerifyPayment:

    @pytest.mark.asyncio
    async def test_valid_payment_persists_order_and_takes_stock(self, test_session, user_id, create_product,
                                                                 create_intent):
        product_id = await create_product(price=600.0, stock=5)
        intent = await create_intent(product_id, 2)

        order = await PaymentService.verify_payment(user_id, verify_request(intent), test_session)

        assert order.status == OrderStatus.PROCESSING
        assert order.payment_status == PaymentStatus.COMPLETED
        assert order.payment_id == "pay_ABC"
        assert order.gateway_order_id == "order_TEST123"
        assert order.total_amount == 1416.0
        assert order.stock_committed is True
        assert await ProductRepository.get_stock(product_id, test_session) == 3
        assert await ProductRepository.get_sold_count(product_id, test_session) == 2

    @pytest.mark.asyncio
    async def test_bad_signature_changes_nothing(self, test_session, user_id, create_product, create_intent):
        product_id = await create_product(stock=5)
        intent = await create_intent(product_id, 1)

        with pytest.raises(PaymentVerificationFailedException) as exc_info:
            await PaymentService.verify_payment(user_id, verify_request(intent, signature="0" * 64), test_session)

        assert exc_info.value.message == "Payment verification failed"
        assert await OrderRepository.count(None, test_session) == 0
        assert await ProductRepository.get_stock(product_id, test_session) == 5

    @pytest.mark.asyncio
    async def test_tampered_draft_rejected(self, test_session, user_id, create_product, create_intent):
        product_id = await create_product(stock=5)
        intent = await create_intent(product_id, 1)

        with pytest.raises(OrderValidationException):
            await PaymentService.verify_payment(user_id, verify_request(intent, total_amount=1.0), test_session)

        assert await OrderRepository.count(None, test_session) == 0

    @pytest.mark.asyncio
    async def test_draft_of_another_user_rejected(self, test_session, other_user_id, create_product,
                                                  create_intent):
        product_id = await create_product(stock=5)
        intent = await create_intent(product_id, 1)

        with pytest.raises(OrderValidationException):
            await PaymentService.verify_payment(other_user_id, verify_request(intent), test_session)

    @pytest.mark.asyncio
    async def test_repeated_verification_creates_one_order(self, test_session, user_id, create_product,
                                                           create_intent):
        product_id = await create_product(stock=5)
        intent = await create_intent(product_id, 2)

        first = await PaymentService.verify_payment(user_id, verify_request(intent), test_session)
        second = await PaymentService.verify_payment(user_id, verify_request(intent), test_session)

        assert first.id == second.id
        assert await OrderRepository.count(None, test_session) == 1
        assert await ProductRepository.get_stock(product_id, test_session) == 3

    @pytest.mark.asyncio
    async def test_stock_gone_after_payment_rolls_back(self, test_session, user_id, create_product,
                                                       create_intent):
        product_id = await create_product(stock=2)
        intent = await create_intent(product_id, 2)
        # Another buyer took the units between intent and verification
        await ProductRepository.decrement_stock(product_id, 2, test_session)
        await test_session.commit()

        with pytest.raises(InsufficientStockException):
            await PaymentService.verify_payment(user_id, verify_request(intent), test_session)

        assert await OrderRepository.count(None, test_session) == 0
        assert await ProductRepository.get_stock(product_id, test_session) == 0

    @pytest.mark.asyncio
    async def test_cart_lines_removed_after_verification(self, test_session, user_id, create_product,
                                                         create_intent):
        product_id = await create_product(stock=5)
        await CartService.add_item(user_id, AddToCartRequest(product_id=product_id, quantity=1), test_session)
        intent = await create_intent(product_id, 1, from_cart=True)

        await PaymentService.verify_payment(user_id, verify_request(intent), test_session)

        assert await CartRepository.get_by_user_id(user_id, test_session) is None
