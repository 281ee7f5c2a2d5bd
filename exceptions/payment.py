"""
Payment-related exceptions.
"""

from .base import StorefrontException


class PaymentException(StorefrontException):
    """Base exception for payment-related errors."""
    pass


class PaymentVerificationFailedException(PaymentException):
    """Raised when the gateway signature does not match."""

    def __init__(self, gateway_order_id: str, gateway_payment_id: str):
        super().__init__(
            "Payment verification failed",
            details={'gateway_order_id': gateway_order_id, 'gateway_payment_id': gateway_payment_id}
        )
        self.gateway_order_id = gateway_order_id
        self.gateway_payment_id = gateway_payment_id


class GatewayException(PaymentException):
    """Raised when the payment gateway could not create a payment intent."""

    def __init__(self, reason: str, status: int | None = None):
        details = {'reason': reason}
        if status is not None:
            details['status'] = status

        super().__init__("Error initializing payment", details)
        self.reason = reason
        self.status = status
