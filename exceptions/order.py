"""
Order-related exceptions.
"""

from .base import StorefrontException


class OrderException(StorefrontException):
    """Base exception for order-related errors."""
    pass


class OrderNotFoundException(OrderException):
    """Raised when order is not found in database."""

    def __init__(self, order_id: int):
        super().__init__(
            f"Order {order_id} not found",
            details={'order_id': order_id}
        )
        self.order_id = order_id


class OrderValidationException(OrderException):
    """Raised when order input is malformed or contradictory."""

    def __init__(self, reason: str):
        super().__init__(
            f"Invalid order request: {reason}",
            details={'reason': reason}
        )
        self.reason = reason


class InvalidOrderStateException(OrderException):
    """Raised when order is in invalid state for requested transition."""

    def __init__(self, order_id: int, current_state: str, required_state: str):
        super().__init__(
            f"Order {order_id} is in state '{current_state}', cannot move to '{required_state}'",
            details={'order_id': order_id, 'current_state': current_state, 'required_state': required_state}
        )
        self.order_id = order_id
        self.current_state = current_state
        self.required_state = required_state


class OrderOwnershipException(OrderException):
    """Raised when user attempts to access an order they don't own."""

    def __init__(self, order_id: int, user_id: int):
        super().__init__(
            f"User {user_id} does not have permission to access order {order_id}",
            details={'order_id': order_id, 'user_id': user_id}
        )
        self.order_id = order_id
        self.user_id = user_id
