"""Tests for checkout pricing."""

import pytest

from models.order import OrderItem, Pricing
from services.pricing import check_pricing, compute_pricing
from utils.errors import ValidationError


def _items(*lines):
    return [
        OrderItem(product_id=pid, name=pid, quantity=qty, unit_price=price)
        for pid, qty, price in lines
    ]


class TestComputePricing:
    def test_free_shipping_at_threshold(self, settings):
        pricing = compute_pricing(_items(("A", 2, 500), ("B", 1, 300)), settings)
        assert pricing.items_total == 1300
        assert pricing.shipping_total == 0
        assert pricing.tax_total == 65
        assert pricing.grand_total == 1365

    def test_shipping_fee_below_threshold(self, settings):
        pricing = compute_pricing(_items(("A", 1, 300)), settings)
        assert pricing.items_total == 300
        assert pricing.tax_total == 15
        assert pricing.shipping_total == 50
        assert pricing.grand_total == 365

    def test_exact_threshold_ships_free(self, settings):
        pricing = compute_pricing(_items(("A", 2, 500)), settings)
        assert pricing.shipping_total == 0

    def test_grand_total_is_sum_of_parts(self, settings):
        pricing = compute_pricing(_items(("A", 3, 199.99), ("B", 1, 49.5)), settings)
        assert pricing.grand_total == pytest.approx(
            pricing.items_total + pricing.tax_total + pricing.shipping_total
        )


class TestCheckPricing:
    def test_matching_breakdown_passes(self, settings):
        computed = compute_pricing(_items(("A", 2, 500), ("B", 1, 300)), settings)
        check_pricing(Pricing(items_total=1300, tax_total=65, shipping_total=0, grand_total=1365), computed)

    def test_understated_total_rejected(self, settings):
        computed = compute_pricing(_items(("A", 2, 500), ("B", 1, 300)), settings)
        with pytest.raises(ValidationError, match="grand_total"):
            check_pricing(Pricing(items_total=1300, tax_total=65, shipping_total=0, grand_total=1000), computed)
