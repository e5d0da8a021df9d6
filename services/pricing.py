from typing import Iterable

from models.order import OrderItem, Pricing
from utils.config import Settings
from utils.errors import ValidationError

PRICE_TOLERANCE = 0.01


def compute_pricing(items: Iterable[OrderItem], settings: Settings) -> Pricing:
    """
    Applies the checkout rule: tax is a flat rate on the items total, shipping is free
    at or above the threshold and a fixed fee below it.
    """
    items_total = round(sum(item.subtotal for item in items), 2)
    tax_total = round(items_total * settings.tax_rate, 2)
    shipping_total = 0.0 if items_total >= settings.free_shipping_threshold else float(settings.shipping_fee)
    return Pricing(
        items_total=items_total,
        tax_total=tax_total,
        shipping_total=shipping_total,
        grand_total=round(items_total + tax_total + shipping_total, 2),
    )


def check_pricing(submitted: Pricing, computed: Pricing) -> None:
    """Rejects a client-side breakdown that disagrees with the server's."""
    for field, expected in computed.model_dump().items():
        got = getattr(submitted, field)
        if abs(got - expected) > PRICE_TOLERANCE:
            raise ValidationError(f"Submitted {field} {got} does not match computed {expected}")
