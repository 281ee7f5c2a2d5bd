"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for relationships to work correctly.
"""

from models.base import Base
from models.user import User
from models.product import Product, ProductVariant, ProductColor
from models.cart import Cart
from models.cartItem import CartItem
from models.order import Order
from models.orderItem import OrderItem

__all__ = [
    'Base',
    'User',
    'Product',
    'ProductVariant',
    'ProductColor',
    'Cart',
    'CartItem',
    'Order',
    'OrderItem',
]
