"""
Product and stock-related exceptions.
"""

from .base import StorefrontException


class ProductException(StorefrontException):
    """Base exception for product and stock errors."""
    pass


class ProductNotFoundException(ProductException):
    """Raised when product is not found in database."""

    def __init__(self, product_id: int):
        super().__init__(
            f"Product {product_id} not found",
            details={'product_id': product_id}
        )
        self.product_id = product_id


class VariantNotFoundException(ProductException):
    """Raised when a variant label does not exist on the product."""

    def __init__(self, product_id: int, variant_label: str):
        super().__init__(
            f"Variant '{variant_label}' not found for product {product_id}",
            details={'product_id': product_id, 'variant': variant_label}
        )
        self.product_id = product_id
        self.variant_label = variant_label


class ColorNotFoundException(ProductException):
    """Raised when a color name does not exist on the product."""

    def __init__(self, product_id: int, color_name: str):
        super().__init__(
            f"Color '{color_name}' not found for product {product_id}",
            details={'product_id': product_id, 'color': color_name}
        )
        self.product_id = product_id
        self.color_name = color_name


class InsufficientStockException(ProductException):
    """Raised when requested quantity exceeds the resolved stock pool."""

    def __init__(self, product_id: int, requested: int, available: int, product_name: str | None = None):
        label = f"{product_name} ({product_id})" if product_name else str(product_id)
        super().__init__(
            f"Insufficient stock for product {label}: requested {requested}, available {available}",
            details={'product_id': product_id, 'requested': requested, 'available': available}
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class StockConflictException(ProductException):
    """
    Raised when a conditional stock update matched no row.

    The pool had enough stock when it was read, but a concurrent order
    consumed it before the guarded decrement ran.
    """

    def __init__(self, product_id: int, requested: int):
        super().__init__(
            f"Stock for product {product_id} changed concurrently, could not reserve {requested}",
            details={'product_id': product_id, 'requested': requested}
        )
        self.product_id = product_id
        self.requested = requested


class SelectionRequiredException(ProductException):
    """
    Raised when a product offers variants or colors and the request picks none.

    Each populated dimension is a pool that must move with the aggregate stock.
    """

    def __init__(self, product_id: int, dimension: str):
        super().__init__(
            f"Product {product_id} requires a {dimension} selection",
            details={'product_id': product_id, 'dimension': dimension}
        )
        self.product_id = product_id
        self.dimension = dimension
