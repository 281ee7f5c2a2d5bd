"""
PricingService Unit Tests

Tests totals calculation (tax, shipping threshold) and effective prices.
"""

import pytest

from models.orderItem import OrderItemDTO
from models.product import ProductDTO, ProductVariantDTO, ProductColorDTO
from services.pricing import PricingService


class TestCalculateTotals:

    def test_free_shipping_above_threshold(self):
        totals = PricingService.calculate_totals(1200.0)

        assert totals.tax_price == 216.0
        assert totals.shipping_price == 0.0
        assert totals.total_amount == 1416.0

    def test_flat_shipping_below_threshold(self):
        totals = PricingService.calculate_totals(500.0)

        assert totals.tax_price == 90.0
        assert totals.shipping_price == 100.0
        assert totals.total_amount == 690.0

    def test_threshold_itself_is_not_free(self):
        totals = PricingService.calculate_totals(1000.0)

        assert totals.shipping_price == 100.0
        assert totals.total_amount == 1280.0

    def test_rounding_to_two_decimals(self):
        totals = PricingService.calculate_totals(33.33)

        assert totals.tax_price == 6.0
        assert totals.total_amount == 139.33


class TestEffectivePrice:

    @pytest.fixture
    def product(self):
        return ProductDTO(
            id=1,
            name="T-Shirt",
            price=500.0,
            stock=10,
            variants=[ProductVariantDTO(label="XL", price=650.0, stock=5),
                      ProductVariantDTO(label="M", price=None, stock=5)],
            colors=[ProductColorDTO(name="Red", stock=10)]
        )

    def test_base_price_without_variant(self, product):
        assert PricingService.effective_price(product) == 500.0

    def test_variant_override(self, product):
        assert PricingService.effective_price(product, "XL") == 650.0

    def test_variant_without_override_falls_back(self, product):
        assert PricingService.effective_price(product, "M") == 500.0

    def test_unknown_variant_falls_back(self, product):
        assert PricingService.effective_price(product, "XXL") == 500.0


def test_items_price_sums_line_totals():
    items = [
        OrderItemDTO(product_id=1, name="A", price=500.0, quantity=2),
        OrderItemDTO(product_id=2, name="B", price=99.99, quantity=3),
    ]

    assert PricingService.calculate_items_price(items) == 1299.97


def test_minor_units():
    assert PricingService.to_minor_units(1416.0) == 141600
    assert PricingService.to_minor_units(139.33) == 13933
