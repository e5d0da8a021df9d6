"""CSV renderings of orders and products for the admin back-office."""
from datetime import datetime
from typing import Dict, Iterable, Optional
import csv
import io

from models.order import Order
from models.product import Product
from models.user import User

ORDER_COLUMNS = ["Order ID", "User", "Email", "Total", "Status", "Created At", "Delivered At"]
PRODUCT_COLUMNS = ["Product ID", "Name", "Category", "Price", "Stock", "Num Reviews", "Ratings", "Created At"]


def _iso(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


def orders_to_csv(orders: Iterable[Order], owners: Dict[str, User]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(ORDER_COLUMNS)
    for order in orders:
        owner = owners.get(order.owner_user_id)
        writer.writerow([
            order.id,
            owner.name if owner else "",
            owner.email if owner else "",
            f"{order.pricing.grand_total:.2f}",
            order.status.value,
            _iso(order.created_at),
            _iso(order.delivered_at),
        ])
    return buffer.getvalue()


def products_to_csv(products: Iterable[Product]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(PRODUCT_COLUMNS)
    for product in products:
        writer.writerow([
            product.id,
            product.name,
            product.category.value,
            f"{product.price:.2f}",
            product.stock,
            product.num_reviews,
            f"{product.rating:.2f}",
            _iso(product.created_at),
        ])
    return buffer.getvalue()
