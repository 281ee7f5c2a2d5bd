from pydantic import BaseModel

from models.orderItem import OrderItemDTO
from models.product import ProductDTO

# Fixed business constants, not configurable
TAX_RATE = 0.18
FREE_SHIPPING_THRESHOLD = 1000.0
FLAT_SHIPPING_FEE = 100.0


class OrderTotalsDTO(BaseModel):
    items_price: float
    tax_price: float
    shipping_price: float
    total_amount: float


class PricingService:
    """Price resolution and order totals."""

    @staticmethod
    def effective_price(product: ProductDTO, variant_label: str | None = None) -> float:
        """
        Unit price a customer pays for a product selection.

        The variant price override wins when the selected variant defines one,
        otherwise the product base price applies. Colors never override the price.
        Cart totals and order item snapshots both go through this method so that
        the amount shown in the cart is the amount charged.

        Args:
            product: Product with its variants loaded
            variant_label: Selected variant label or None

        Returns:
            Unit price rounded to 2 decimals
        """
        variant = product.get_variant(variant_label)
        if variant is not None and variant.price is not None:
            return round(variant.price, 2)
        return round(product.price, 2)

    @staticmethod
    def calculate_items_price(items: list[OrderItemDTO]) -> float:
        return round(sum(item.price * item.quantity for item in items), 2)

    @staticmethod
    def calculate_totals(items_price: float) -> OrderTotalsDTO:
        """
        Calculate tax, shipping and grand total for an items subtotal.

        Rules:
        - tax = items_price × 18%
        - shipping is free when items_price exceeds 1000, otherwise a flat 100
        - total = items_price + tax + shipping

        Example:
            >>> PricingService.calculate_totals(1200.0)
            OrderTotalsDTO(items_price=1200.0, tax_price=216.0, shipping_price=0.0, total_amount=1416.0)
            >>> PricingService.calculate_totals(500.0)
            OrderTotalsDTO(items_price=500.0, tax_price=90.0, shipping_price=100.0, total_amount=690.0)
        """
        items_price = round(items_price, 2)
        tax_price = round(items_price * TAX_RATE, 2)
        shipping_price = 0.0 if items_price > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE
        total_amount = round(items_price + tax_price + shipping_price, 2)
        return OrderTotalsDTO(
            items_price=items_price,
            tax_price=tax_price,
            shipping_price=shipping_price,
            total_amount=total_amount
        )

    @staticmethod
    def to_minor_units(amount: float) -> int:
        # Gateway amounts are integers in the smallest currency unit (paise / cents)
        return int(round(amount * 100))
