"""
Custom exceptions for the storefront backend.

Exception Hierarchy:
--------------------
StorefrontException (base)
├── ProductException
│   ├── ProductNotFoundException
│   ├── VariantNotFoundException
│   ├── ColorNotFoundException
│   ├── InsufficientStockException
│   ├── StockConflictException
│   └── SelectionRequiredException
├── CartException
│   ├── CartNotFoundException
│   └── CartItemNotFoundException
├── OrderException
│   ├── OrderNotFoundException
│   ├── OrderValidationException
│   ├── InvalidOrderStateException
│   └── OrderOwnershipException
└── PaymentException
    ├── PaymentVerificationFailedException
    └── GatewayException

Usage:
------
Services raise specific exceptions:
    raise OrderNotFoundException(order_id=123)

The web layer translates them into HTTP responses (utils/error_handler.py):
    {"success": false, "error": "OrderNotFoundException", "message": "Order 123 not found"}
"""

from .base import StorefrontException
from .cart import CartException, CartNotFoundException, CartItemNotFoundException
from .order import (
    OrderException,
    OrderNotFoundException,
    OrderValidationException,
    InvalidOrderStateException,
    OrderOwnershipException
)
from .payment import PaymentException, PaymentVerificationFailedException, GatewayException
from .product import (
    ProductException,
    ProductNotFoundException,
    VariantNotFoundException,
    ColorNotFoundException,
    InsufficientStockException,
    StockConflictException,
    SelectionRequiredException
)

__all__ = [
    # Base
    'StorefrontException',

    # Product / stock
    'ProductException',
    'ProductNotFoundException',
    'VariantNotFoundException',
    'ColorNotFoundException',
    'InsufficientStockException',
    'StockConflictException',
    'SelectionRequiredException',

    # Cart
    'CartException',
    'CartNotFoundException',
    'CartItemNotFoundException',

    # Order
    'OrderException',
    'OrderNotFoundException',
    'OrderValidationException',
    'InvalidOrderStateException',
    'OrderOwnershipException',

    # Payment
    'PaymentException',
    'PaymentVerificationFailedException',
    'GatewayException',
]
