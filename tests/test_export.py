"""Tests for CSV exports."""

import csv
import io

from models.order import OrderStatus
from services.export import ORDER_COLUMNS, PRODUCT_COLUMNS, orders_to_csv, products_to_csv


def _rows(text):
    return list(csv.reader(io.StringIO(text)))


def test_orders_csv(services, alice, admin, make_order):
    order = make_order(alice, 1365)
    services.lifecycle.update_status(order.id, OrderStatus.SHIPPED, admin)
    delivered = services.lifecycle.update_status(order.id, OrderStatus.DELIVERED, admin)
    pending = make_order(alice, 100)

    owners = services.users.get_many([alice.id])
    rows = _rows(orders_to_csv([delivered, pending], owners))

    assert rows[0] == ORDER_COLUMNS
    assert rows[1] == [
        order.id,
        "Alice",
        alice.email,
        "1365.00",
        "Delivered",
        delivered.created_at.isoformat(),
        delivered.delivered_at.isoformat(),
    ]
    assert rows[2][4] == "Pending"
    assert rows[2][6] == ""


def test_orders_csv_unknown_owner(services, alice, make_order):
    order = make_order(alice)
    rows = _rows(orders_to_csv([order], {}))
    assert rows[1][1:3] == ["", ""]


def test_products_csv(saree):
    rows = _rows(products_to_csv([saree]))
    assert rows[0] == PRODUCT_COLUMNS
    assert rows[1][:7] == [saree.id, "Banarasi Silk Saree", "Saree", "500.00", "10", "0", "0.00"]
