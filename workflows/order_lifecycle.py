"""Order placement and the status state machine."""
from datetime import datetime
from typing import List, Optional, Tuple
import logging

from models.order import CheckoutItem, Order, OrderCreateRequest, OrderItem, OrderStatus
from models.user import Actor, CartItem
from services.pricing import check_pricing, compute_pricing
from store.orders import OrderStore
from store.products import ProductStore
from store.users import UserStore
from utils.config import Settings
from utils.database import utcnow
from utils.errors import ForbiddenError, InvalidTransitionError, ValidationError

logger = logging.getLogger(__name__)

# Legal edges; Delivered and Cancelled are terminal
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES = {status for status, targets in ALLOWED_TRANSITIONS.items() if not targets}


def check_access(order: Order, actor: Actor) -> None:
    if actor.id != order.owner_user_id and not actor.is_admin:
        logger.warning(f"User {actor.id} denied access to order {order.id}")
        raise ForbiddenError()


class OrderLifecycle:
    def __init__(self, orders: OrderStore, users: UserStore, products: ProductStore, settings: Settings):
        self._orders = orders
        self._users = users
        self._products = products
        self._settings = settings

    # --- Placement ---

    def _snapshot_cart(self, actor: Actor) -> Tuple[List[CartItem], List[OrderItem]]:
        cart = self._users.get_cart(actor.id)
        products = {p.id: p for p in self._products.get_many(line.product_id for line in cart)}
        items = []
        for line in cart:
            product = products.get(line.product_id)
            if product is None:
                raise ValidationError(f"Product {line.product_id} in cart is no longer available")
            items.append(
                OrderItem(
                    product_id=line.product_id,
                    name=product.name,
                    quantity=line.quantity,
                    unit_price=line.price,
                    size=line.size,
                    color=line.color,
                    image=product.images[0] if product.images else None,
                )
            )
        return cart, items

    def _snapshot_items(self, requested: List[CheckoutItem]) -> List[OrderItem]:
        items = []
        for line in requested:
            product = self._products.get(line.product_id)
            items.append(
                OrderItem(
                    product_id=product.id,
                    name=product.name,
                    quantity=line.quantity,
                    unit_price=product.price,
                    size=line.size,
                    color=line.color,
                    image=product.images[0] if product.images else None,
                )
            )
        return items

    def place_order(self, actor: Actor, request: OrderCreateRequest) -> Order:
        """
        Snapshots line items (from the request or the caller's cart), prices them
        server-side and stores the order. The cart is cleared with the insert; a cart
        that changed after it was read fails the checkout with ConflictError.
        """
        cart = None
        if request.items is not None:
            items = self._snapshot_items(request.items)
        else:
            cart, items = self._snapshot_cart(actor)
        if not items:
            raise ValidationError("No order items")

        pricing = compute_pricing(items, self._settings)
        if request.pricing is not None:
            check_pricing(request.pricing, pricing)

        return self._orders.create(
            owner_user_id=actor.id,
            items=items,
            shipping_address=request.shipping_address,
            payment_method=request.payment_method,
            pricing=pricing,
            cart_snapshot=cart,
        )

    # --- Reads ---

    def get_order(self, order_id: str, actor: Actor) -> Order:
        order = self._orders.get(order_id)
        check_access(order, actor)
        return order

    def list_all(self, actor: Actor) -> List[Order]:
        if not actor.is_admin:
            raise ForbiddenError("Admin only")
        return self._orders.list_all()

    # --- Transitions ---

    def transition(self, order: Order, new_status: OrderStatus, actor: Actor) -> Order:
        check_access(order, actor)
        current = order.status

        if current in TERMINAL_STATES:
            raise InvalidTransitionError(current.value, new_status.value, "order is in a terminal state")
        if not actor.is_admin and new_status != OrderStatus.CANCELLED:
            raise ForbiddenError("Only administrators can advance fulfillment")
        if new_status not in ALLOWED_TRANSITIONS[current]:
            if new_status == OrderStatus.CANCELLED:
                raise InvalidTransitionError(current.value, new_status.value, "only pending orders can be cancelled")
            raise InvalidTransitionError(current.value, new_status.value)

        delivered_at: Optional[datetime] = utcnow() if new_status == OrderStatus.DELIVERED else None
        logger.info(f"Updating order {order.id} status from {current.value} to {new_status.value} by {actor.id}")
        return self._orders.apply(order, status=new_status, delivered_at=delivered_at)

    def update_status(self, order_id: str, new_status: OrderStatus, actor: Actor) -> Order:
        if not actor.is_admin:
            raise ForbiddenError("Admin only")
        return self.transition(self._orders.get(order_id), new_status, actor)

    def cancel(self, order_id: str, actor: Actor) -> Order:
        order = self._orders.get(order_id)
        if actor.id != order.owner_user_id:
            logger.warning(f"User {actor.id} tried to cancel order {order_id} they do not own")
            raise ForbiddenError()
        return self.transition(order, OrderStatus.CANCELLED, actor)
