"""Tests for order placement and the status state machine."""

import pytest

from models.order import CheckoutItem, OrderCreateRequest, OrderStatus, Pricing
from models.payment import PaymentMethod
from utils.database import utcnow
from utils.errors import ConflictError, ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError


class TestPlaceOrder:
    def test_checkout_from_cart(self, services, alice, saree, kurti, address):
        services.users.add_to_cart(alice.id, saree.id, 2, size="Free", color="Red")
        services.users.add_to_cart(alice.id, kurti.id, 1, size="M", color="Blue")

        order = services.lifecycle.place_order(
            alice, OrderCreateRequest(shipping_address=address, payment_method=PaymentMethod.GATEWAY)
        )

        assert order.owner_user_id == alice.id
        assert [(i.name, i.quantity, i.unit_price) for i in order.items] == [
            ("Banarasi Silk Saree", 2, 500),
            ("Cotton Kurti", 1, 300),
        ]
        assert order.items[0].image == "https://cdn.ethnicwear.in/saree.jpg"
        assert order.pricing.items_total == 1300
        assert order.pricing.tax_total == 65
        assert order.pricing.shipping_total == 0
        assert order.pricing.grand_total == 1365
        assert services.users.get_cart(alice.id) == []

    def test_cart_changed_during_checkout_is_rejected(self, services, alice, saree, kurti, address, monkeypatch):
        services.users.add_to_cart(alice.id, saree.id, 1, size="Free", color="Red")
        get_many = services.products.get_many

        def add_line_then_lookup(product_ids):
            services.users.add_to_cart(alice.id, kurti.id, 1, size="M", color="Blue")
            return get_many(product_ids)

        monkeypatch.setattr(services.products, "get_many", add_line_then_lookup)
        with pytest.raises(ConflictError):
            services.lifecycle.place_order(
                alice, OrderCreateRequest(shipping_address=address, payment_method=PaymentMethod.GATEWAY)
            )

        assert {line.product_id for line in services.users.get_cart(alice.id)} == {saree.id, kurti.id}
        assert services.orders.list_by_owner(alice.id) == []

    def test_cart_price_snapshot_survives_catalog_change(self, services, alice, saree, address):
        from models.product import ProductUpdate

        services.users.add_to_cart(alice.id, saree.id, 1)
        order = services.lifecycle.place_order(
            alice, OrderCreateRequest(shipping_address=address, payment_method=PaymentMethod.CASH_ON_DELIVERY)
        )
        services.products.update(saree.id, ProductUpdate(price=900, name="Renamed"))

        stored = services.orders.get(order.id)
        assert stored.items[0].unit_price == 500
        assert stored.items[0].name == "Banarasi Silk Saree"

    def test_checkout_with_explicit_items_uses_catalog_price(self, services, alice, kurti, address):
        order = services.lifecycle.place_order(
            alice,
            OrderCreateRequest(
                shipping_address=address,
                payment_method=PaymentMethod.CASH_ON_DELIVERY,
                items=[CheckoutItem(product_id=kurti.id, quantity=2, size="L")],
            ),
        )
        assert order.items[0].unit_price == 300
        assert order.pricing.grand_total == 600 + 30 + 50

    def test_empty_cart_rejected(self, services, alice, address):
        with pytest.raises(ValidationError):
            services.lifecycle.place_order(
                alice, OrderCreateRequest(shipping_address=address, payment_method=PaymentMethod.GATEWAY)
            )
        assert services.orders.list_by_owner(alice.id) == []

    def test_unknown_product_rejected(self, services, alice, address):
        with pytest.raises(NotFoundError):
            services.lifecycle.place_order(
                alice,
                OrderCreateRequest(
                    shipping_address=address,
                    payment_method=PaymentMethod.GATEWAY,
                    items=[CheckoutItem(product_id="nope", quantity=1)],
                ),
            )

    def test_client_pricing_must_match(self, services, alice, saree, address):
        services.users.add_to_cart(alice.id, saree.id, 1)
        with pytest.raises(ValidationError):
            services.lifecycle.place_order(
                alice,
                OrderCreateRequest(
                    shipping_address=address,
                    payment_method=PaymentMethod.GATEWAY,
                    pricing=Pricing(items_total=500, tax_total=0, shipping_total=0, grand_total=500),
                ),
            )
        # The failed checkout leaves the cart alone
        assert len(services.users.get_cart(alice.id)) == 1


class TestCancel:
    def test_owner_cancels_pending(self, services, alice, make_order):
        order = make_order(alice)
        cancelled = services.lifecycle.cancel(order.id, alice)
        assert cancelled.status == OrderStatus.CANCELLED
        assert cancelled.delivered_at is None

    def test_other_user_cannot_cancel(self, services, alice, bob, make_order):
        order = make_order(alice)
        with pytest.raises(ForbiddenError):
            services.lifecycle.cancel(order.id, bob)
        assert services.orders.get(order.id).status == OrderStatus.PENDING

    def test_other_user_cannot_transition(self, services, alice, bob, make_order):
        order = make_order(alice)
        with pytest.raises(ForbiddenError):
            services.lifecycle.transition(order, OrderStatus.CANCELLED, bob)
        assert services.orders.get(order.id).status == OrderStatus.PENDING

    @pytest.mark.parametrize("path", [
        [OrderStatus.SHIPPED],
        [OrderStatus.SHIPPED, OrderStatus.DELIVERED],
        [OrderStatus.CANCELLED],
    ])
    def test_owner_cannot_cancel_after_pending(self, services, alice, admin, make_order, path):
        order = make_order(alice)
        for status in path:
            services.lifecycle.update_status(order.id, status, admin)
        with pytest.raises(InvalidTransitionError):
            services.lifecycle.cancel(order.id, alice)

    def test_owner_cannot_ship(self, services, alice, make_order):
        order = make_order(alice)
        with pytest.raises(ForbiddenError):
            services.lifecycle.transition(order, OrderStatus.SHIPPED, alice)


class TestAdminTransitions:
    def test_deliver_stamps_delivered_at(self, services, alice, admin, make_order):
        order = make_order(alice)
        services.lifecycle.update_status(order.id, OrderStatus.SHIPPED, admin)

        before = utcnow()
        delivered = services.lifecycle.update_status(order.id, OrderStatus.DELIVERED, admin)
        after = utcnow()

        assert delivered.status == OrderStatus.DELIVERED
        assert before <= delivered.delivered_at <= after
        stored = services.orders.get(order.id)
        assert stored.delivered_at == delivered.delivered_at

    def test_cannot_skip_shipped(self, services, alice, admin, make_order):
        order = make_order(alice)
        with pytest.raises(InvalidTransitionError):
            services.lifecycle.update_status(order.id, OrderStatus.DELIVERED, admin)
        stored = services.orders.get(order.id)
        assert stored.status == OrderStatus.PENDING
        assert stored.delivered_at is None

    def test_shipped_order_cannot_be_cancelled(self, services, alice, admin, make_order):
        order = make_order(alice)
        services.lifecycle.update_status(order.id, OrderStatus.SHIPPED, admin)
        with pytest.raises(InvalidTransitionError):
            services.lifecycle.update_status(order.id, OrderStatus.CANCELLED, admin)

    @pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_terminal_states_are_final(self, services, alice, admin, make_order, terminal, target):
        order = make_order(alice)
        if terminal == OrderStatus.DELIVERED:
            services.lifecycle.update_status(order.id, OrderStatus.SHIPPED, admin)
        services.lifecycle.update_status(order.id, terminal, admin)
        with pytest.raises(InvalidTransitionError):
            services.lifecycle.update_status(order.id, target, admin)

    def test_non_admin_cannot_update_status(self, services, alice, make_order):
        order = make_order(alice)
        with pytest.raises(ForbiddenError):
            services.lifecycle.update_status(order.id, OrderStatus.CANCELLED, alice)

    def test_full_lifecycle(self, services, alice, admin, make_order):
        order = make_order(alice)
        services.lifecycle.update_status(order.id, OrderStatus.SHIPPED, admin)

        with pytest.raises(InvalidTransitionError):
            services.lifecycle.cancel(order.id, alice)

        delivered = services.lifecycle.update_status(order.id, OrderStatus.DELIVERED, admin)
        assert delivered.delivered_at is not None

        with pytest.raises(InvalidTransitionError):
            services.lifecycle.update_status(order.id, OrderStatus.PENDING, admin)

    def test_reverse_transition_rejected(self, services, alice, admin, make_order):
        order = make_order(alice)
        services.lifecycle.update_status(order.id, OrderStatus.SHIPPED, admin)
        with pytest.raises(InvalidTransitionError):
            services.lifecycle.update_status(order.id, OrderStatus.PENDING, admin)


class TestReadAccess:
    def test_owner_and_admin_can_read(self, services, alice, admin, make_order):
        order = make_order(alice)
        assert services.lifecycle.get_order(order.id, alice).id == order.id
        assert services.lifecycle.get_order(order.id, admin).id == order.id

    def test_stranger_cannot_read(self, services, alice, bob, make_order):
        order = make_order(alice)
        with pytest.raises(ForbiddenError):
            services.lifecycle.get_order(order.id, bob)

    def test_list_all_requires_admin(self, services, alice, make_order):
        make_order(alice)
        with pytest.raises(ForbiddenError):
            services.lifecycle.list_all(alice)
