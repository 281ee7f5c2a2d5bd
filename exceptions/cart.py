"""
Cart-related exceptions.
"""

from .base import StorefrontException


class CartException(StorefrontException):
    """Base exception for cart-related errors."""
    pass


class CartNotFoundException(CartException):
    """Raised when the user has no cart."""

    def __init__(self, user_id: int):
        super().__init__(
            f"Cart not found for user {user_id}",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class CartItemNotFoundException(CartException):
    """Raised when the product is not in the user's cart."""

    def __init__(self, user_id: int, product_id: int):
        super().__init__(
            f"Product {product_id} not found in cart of user {user_id}",
            details={'user_id': user_id, 'product_id': product_id}
        )
        self.user_id = user_id
        self.product_id = product_id
