import hashlib
import hmac
import json
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import session_rollback
from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from exceptions.base import StorefrontException
from exceptions.order import OrderValidationException
from exceptions.payment import PaymentVerificationFailedException
from models.order import OrderDTO, OrderDraftDTO, VerifyPaymentRequest
from repositories.order import OrderRepository


class PaymentService:
    """
    Payment reconciliation for gateway-routed orders.

    An order paid through the gateway only exists after its payment has been
    verified: the signature proves the gateway captured the payment, the draft
    checksum proves the order data was produced by this server for that
    gateway order.
    """

    @staticmethod
    def _secret() -> bytes:
        return config.PAYMENT_GATEWAY_KEY_SECRET.encode("utf-8")

    @staticmethod
    def compute_signature(gateway_order_id: str, gateway_payment_id: str) -> str:
        """Hex HMAC-SHA256 of "<gateway_order_id>|<gateway_payment_id>" keyed with the gateway secret."""
        message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
        return hmac.new(PaymentService._secret(), message, hashlib.sha256).hexdigest()

    @staticmethod
    def is_signature_valid(gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        expected_signature = PaymentService.compute_signature(gateway_order_id, gateway_payment_id)
        # Use timing-safe comparison to prevent timing attacks
        return hmac.compare_digest(expected_signature, signature)

    @staticmethod
    def _canonical_draft(draft: OrderDraftDTO) -> bytes:
        payload = draft.model_dump(mode="json", exclude={"checksum"})
        return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")

    @staticmethod
    def sign_draft(draft: OrderDraftDTO) -> str:
        return hmac.new(PaymentService._secret(), PaymentService._canonical_draft(draft), hashlib.sha256).hexdigest()

    @staticmethod
    def is_draft_authentic(draft: OrderDraftDTO) -> bool:
        if not draft.checksum:
            return False
        return hmac.compare_digest(PaymentService.sign_draft(draft), draft.checksum)

    @staticmethod
    async def verify_payment(user_id: int, request: VerifyPaymentRequest, session: AsyncSession) -> OrderDTO:
        """
        Verify a gateway payment and persist the paid order.

        Flow:
        1. Signature check, PaymentVerificationFailedException on mismatch (nothing changes)
        2. Draft integrity: checksum, gateway order id and owner must match
        3. Idempotency: a payment already recorded returns its existing order
        4. Order persisted with payment_status=completed and status=processing,
           stock committed in the same transactional unit
        5. Purchased cart lines removed (best effort)

        Raises:
            PaymentVerificationFailedException: Signature mismatch
            OrderValidationException: Tampered or foreign order draft
            InsufficientStockException / StockConflictException: Stock ran out after payment
        """
        from services.order import OrderService

        gateway_order_id = request.gateway_order_id
        gateway_payment_id = request.gateway_payment_id

        if not PaymentService.is_signature_valid(gateway_order_id, gateway_payment_id, request.signature):
            logging.warning(f"⚠️ Payment signature mismatch for gateway order {gateway_order_id}, "
                            f"payment {gateway_payment_id}")
            raise PaymentVerificationFailedException(gateway_order_id, gateway_payment_id)

        draft = request.order_data
        if not PaymentService.is_draft_authentic(draft):
            logging.warning(f"⚠️ Order draft checksum mismatch for gateway order {gateway_order_id}")
            raise OrderValidationException("order data was modified after payment initialization")
        if draft.gateway_order_id != gateway_order_id:
            raise OrderValidationException("order data belongs to another payment")
        if draft.user_id != user_id:
            raise OrderValidationException("order data belongs to another user")

        existing_order = await OrderRepository.get_by_payment_id(gateway_payment_id, session)
        if existing_order is not None:
            logging.info(f"🔁 Payment {gateway_payment_id} already recorded as order {existing_order.id}")
            return existing_order

        order = OrderDTO(
            user_id=user_id,
            status=OrderStatus.PROCESSING,
            items_price=draft.items_price,
            tax_price=draft.tax_price,
            shipping_price=draft.shipping_price,
            total_amount=draft.total_amount,
            payment_method=draft.payment_method,
            payment_status=PaymentStatus.COMPLETED,
            payment_id=gateway_payment_id,
            gateway_order_id=gateway_order_id,
            shipping_address=draft.shipping_address,
            source=draft.source,
            notes=draft.notes,
        )
        try:
            order_id = await OrderService.commit_order(order, draft.items, session)
        except IntegrityError:
            # Concurrent verification of the same payment won the unique payment_id
            await session_rollback(session)
            existing_order = await OrderRepository.get_by_payment_id(gateway_payment_id, session)
            if existing_order is None:
                raise
            return existing_order
        except StorefrontException as e:
            logging.error(f"❌ Payment {gateway_payment_id} captured but order could not be created: {e}. "
                          f"REFUND REQUIRED for gateway order {gateway_order_id}")
            raise

        logging.info(f"✅ Payment {gateway_payment_id} verified, order {order_id} created")
        return await OrderRepository.get_by_id(order_id, session)
