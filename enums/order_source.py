from enum import Enum


class OrderSource(Enum):
    SINGLE_PRODUCT = "single_product"  # "Buy now" on a product page
    CART = "cart"                      # Checkout of cart lines, purchased lines are removed afterwards
