"""Persistence for orders: creation, lookups, guarded updates and reporting."""
from datetime import datetime, timedelta
from typing import Iterable, List, Optional
import logging

from sqlalchemy import func, select, update

from models.order import (
    DailyOrders,
    Order,
    OrderItem,
    OrderStats,
    OrderStatus,
    Pricing,
    ShippingAddress,
)
from models.payment import PaymentMethod, PaymentResult
from models.user import CartItem
from services.pricing import PRICE_TOLERANCE
from store.base import BaseStore
from store.tables import OrderRecord
from utils.database import utcnow
from utils.errors import ConcurrentModificationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _to_order(record: OrderRecord) -> Order:
    return Order(
        id=record.id,
        owner_user_id=record.owner_user_id,
        items=[OrderItem(**item) for item in record.items],
        shipping_address=ShippingAddress(**record.shipping_address),
        payment_method=PaymentMethod(record.payment_method),
        pricing=Pricing(
            items_total=record.items_total,
            tax_total=record.tax_total,
            shipping_total=record.shipping_total,
            grand_total=record.grand_total,
        ),
        status=OrderStatus(record.status),
        payment_result=PaymentResult(**record.payment_result) if record.payment_result else None,
        paid_at=record.paid_at,
        delivered_at=record.delivered_at,
        created_at=record.created_at,
        version=record.version,
    )


def validate_order_input(items: List[OrderItem], pricing: Pricing) -> None:
    if not items:
        raise ValidationError("No order items")
    for field, value in pricing.model_dump().items():
        if value < 0:
            raise ValidationError(f"Pricing field {field} must not be negative")
    items_sum = sum(item.subtotal for item in items)
    if abs(items_sum - pricing.items_total) > PRICE_TOLERANCE:
        raise ValidationError(
            f"Items total {pricing.items_total} does not match line items ({items_sum:.2f})"
        )
    expected = pricing.items_total + pricing.tax_total + pricing.shipping_total
    if abs(expected - pricing.grand_total) > PRICE_TOLERANCE:
        raise ValidationError(
            f"Grand total {pricing.grand_total} does not equal items + tax + shipping ({expected:.2f})"
        )


class OrderStore(BaseStore):
    def __init__(self, session_factory, users):
        super().__init__(session_factory)
        # Cart collaborator, cleared in the same transaction as the insert
        self._users = users

    def create(
        self,
        owner_user_id: str,
        items: Iterable[OrderItem],
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod,
        pricing: Pricing,
        cart_snapshot: Optional[List[CartItem]] = None,
    ) -> Order:
        """
        Inserts the order and empties the owner's cart in one transaction. When the items
        came from the cart, `cart_snapshot` is the cart they were taken from and the insert
        is rolled back if the cart no longer matches it.
        """
        items = list(items)
        validate_order_input(items, pricing)
        order = Order(
            owner_user_id=owner_user_id,
            items=items,
            shipping_address=shipping_address,
            payment_method=payment_method,
            pricing=pricing,
            created_at=utcnow(),
        )
        with self.transaction() as session:
            session.add(
                OrderRecord(
                    id=order.id,
                    owner_user_id=owner_user_id,
                    items=[item.model_dump(mode="json") for item in items],
                    shipping_address=shipping_address.model_dump(mode="json"),
                    payment_method=payment_method.value,
                    items_total=pricing.items_total,
                    tax_total=pricing.tax_total,
                    shipping_total=pricing.shipping_total,
                    grand_total=pricing.grand_total,
                    status=order.status.value,
                    created_at=order.created_at,
                    version=0,
                )
            )
            self._users.clear_cart(owner_user_id, session=session, expected=cart_snapshot)
        logger.info(f"Created order {order.id} for user {owner_user_id} with total {pricing.grand_total:.2f}")
        return order

    def get(self, order_id: str) -> Order:
        with self.reading() as session:
            record = session.get(OrderRecord, order_id)
            if record is None:
                raise NotFoundError("Order", order_id)
            return _to_order(record)

    def list_by_owner(self, owner_user_id: str) -> List[Order]:
        with self.reading() as session:
            records = session.scalars(
                select(OrderRecord)
                .where(OrderRecord.owner_user_id == owner_user_id)
                .order_by(OrderRecord.created_at.desc())
            )
            return [_to_order(r) for r in records]

    def list_all(self) -> List[Order]:
        with self.reading() as session:
            records = session.scalars(select(OrderRecord).order_by(OrderRecord.created_at.desc()))
            return [_to_order(r) for r in records]

    def apply(
        self,
        order: Order,
        *,
        status: Optional[OrderStatus] = None,
        delivered_at: Optional[datetime] = None,
        payment_result: Optional[PaymentResult] = None,
        paid_at: Optional[datetime] = None,
    ) -> Order:
        """
        Writes the given fields only if the stored row still has the version `order` was read at.

        All fields go out in one UPDATE, so a status and its timestamp (or a payment result
        and paid_at) are never observed apart. Settlement writes are additionally
        conditional on the order being unpaid.
        """
        values = {"version": order.version + 1, "updated_at": utcnow()}
        if status is not None:
            values["status"] = status.value
        if delivered_at is not None:
            values["delivered_at"] = delivered_at
        if payment_result is not None:
            values["payment_result"] = payment_result.model_dump(mode="json")
            values["paid_at"] = paid_at

        conditions = [OrderRecord.id == order.id, OrderRecord.version == order.version]
        if payment_result is not None:
            conditions.append(OrderRecord.paid_at.is_(None))

        with self.transaction() as session:
            result = session.execute(
                update(OrderRecord)
                .where(*conditions)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                logger.warning(f"Conditional update lost for order {order.id} at version {order.version}")
                raise ConcurrentModificationError(order.id)
            record = session.get(OrderRecord, order.id)
            return _to_order(record)

    def aggregate(self, window_days: int = 7, now: Optional[datetime] = None) -> OrderStats:
        """Totals over all orders plus a per-day breakdown of the trailing window."""
        now = now or utcnow()
        since = (now - timedelta(days=window_days - 1)).replace(hour=0, minute=0, second=0, microsecond=0)
        day = func.date(OrderRecord.created_at)

        with self.reading() as session:
            total_orders, total_revenue = session.execute(
                select(func.count(OrderRecord.id), func.coalesce(func.sum(OrderRecord.grand_total), 0))
            ).one()
            # Paid through the gateway or delivered cash-on-delivery, never cancelled
            collected = session.execute(
                select(func.coalesce(func.sum(OrderRecord.grand_total), 0)).where(
                    OrderRecord.status != OrderStatus.CANCELLED.value,
                    (OrderRecord.paid_at.is_not(None)) | (OrderRecord.status == OrderStatus.DELIVERED.value),
                )
            ).scalar_one()
            daily = session.execute(
                select(day, func.count(OrderRecord.id), func.sum(OrderRecord.grand_total))
                .where(OrderRecord.created_at >= since)
                .group_by(day)
                .order_by(day)
            ).all()
            statuses = session.execute(
                select(OrderRecord.status, func.count(OrderRecord.id)).group_by(OrderRecord.status)
            ).all()

        return OrderStats(
            total_orders=total_orders,
            total_revenue=float(total_revenue),
            collected_revenue=float(collected),
            per_day=[DailyOrders(date=str(d), count=c, sales=float(s or 0)) for d, c, s in daily],
            per_status={s: c for s, c in statuses},
            window_days=window_days,
        )
