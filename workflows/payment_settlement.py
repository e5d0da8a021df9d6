"""Gateway intents and settlement of verified payments onto orders."""
from typing import List, Optional
import hashlib
import hmac
import logging
import time

from models.order import Order, OrderStatus
from models.payment import GatewayIntent, PaymentMethod, PaymentMethodInfo, PaymentResult
from models.user import Actor
from services.gateway import PaymentGateway
from store.orders import OrderStore
from store.users import UserStore
from utils.config import Settings
from utils.database import utcnow
from utils.errors import (
    ConcurrentModificationError,
    ConflictError,
    ForbiddenError,
    GatewayUnavailableError,
    InvalidAmountError,
    InvalidTransitionError,
    SignatureMismatchError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def sign(secret: str, gateway_order_id: str, gateway_payment_id: str) -> str:
    """Hex HMAC-SHA256 of "<gateway order id>|<gateway payment id>"."""
    body = f"{gateway_order_id}|{gateway_payment_id}"
    return hmac.new(secret.encode(), body.encode(), hashlib.sha256).hexdigest()


class PaymentSettlement:
    def __init__(self, orders: OrderStore, users: UserStore, gateway: PaymentGateway, settings: Settings):
        self._orders = orders
        self._users = users
        self._gateway = gateway
        self._settings = settings

    def list_methods(self) -> List[PaymentMethodInfo]:
        return [
            PaymentMethodInfo(
                id=PaymentMethod.GATEWAY.value,
                name="Online payment",
                description="Pay with UPI, Cards, Net Banking",
                available=self._settings.gateway_configured,
            ),
            PaymentMethodInfo(
                id=PaymentMethod.CASH_ON_DELIVERY.value,
                name="Cash on Delivery",
                description="Pay when you receive your order",
                available=True,
            ),
        ]

    def create_gateway_intent(
        self, amount: float, currency: Optional[str] = None, receipt: Optional[str] = None
    ) -> GatewayIntent:
        if amount is None or amount < 1:
            raise InvalidAmountError(amount)
        currency = currency or self._settings.default_currency
        receipt = receipt or f"receipt_{int(time.time() * 1000)}"
        # The gateway takes amounts in minor units
        data = self._gateway.create_order(round(amount * 100), currency, receipt)
        return GatewayIntent(
            intent_id=data["id"],
            amount=data.get("amount", round(amount * 100)),
            currency=data.get("currency", currency),
            receipt=data.get("receipt", receipt),
        )

    def expected_signature(self, gateway_order_id: str, gateway_payment_id: str) -> str:
        if not self._settings.gateway_key_secret:
            raise GatewayUnavailableError()
        return sign(self._settings.gateway_key_secret, gateway_order_id, gateway_payment_id)

    def verify(
        self,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
        order_id: str,
        payer_email: Optional[str],
        actor: Actor,
    ) -> Order:
        """
        Checks the gateway signature and records the payment on the order exactly once.

        The order is left untouched on any failure. Verifying an order already settled
        with the same payment id returns it unchanged; a different payment id is a conflict.
        Status stays Pending: paid is tracked apart from fulfillment.
        Without an explicit payer_email the order owner's address is recorded.
        """
        if not gateway_order_id or not gateway_payment_id or not signature:
            raise ValidationError("Missing payment verification parameters")

        expected = self.expected_signature(gateway_order_id, gateway_payment_id)
        if not hmac.compare_digest(expected.encode(), signature.encode()):
            logger.warning(f"Signature mismatch for gateway order {gateway_order_id} (order {order_id})")
            raise SignatureMismatchError()

        order = self._orders.get(order_id)
        if actor.id != order.owner_user_id and not actor.is_admin:
            logger.warning(f"User {actor.id} tried to settle order {order_id} they do not own")
            raise ForbiddenError()

        if order.payment_method != PaymentMethod.GATEWAY:
            raise ValidationError(f"Order {order_id} is not payable through the gateway")
        if order.is_paid:
            if order.payment_result and order.payment_result.external_payment_id == gateway_payment_id:
                logger.info(f"Order {order_id} already settled with payment {gateway_payment_id}, ignoring")
                return order
            raise ConflictError(f"Order {order_id} is already paid")
        if order.status == OrderStatus.CANCELLED:
            raise InvalidTransitionError(order.status.value, "Paid", "cancelled orders cannot be settled")

        payer_email = payer_email or self._users.get(order.owner_user_id).email
        now = utcnow()
        try:
            settled = self._orders.apply(
                order,
                payment_result=PaymentResult(
                    external_payment_id=gateway_payment_id,
                    verified_at=now,
                    payer_email=payer_email,
                ),
                paid_at=now,
            )
        except ConcurrentModificationError:
            # A parallel verify of the same payment may have won the write
            current = self._orders.get(order_id)
            if current.payment_result and current.payment_result.external_payment_id == gateway_payment_id:
                return current
            raise
        logger.info(f"Order {order_id} settled with gateway payment {gateway_payment_id}")
        return settled
