from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.engine import Engine

from models.user import Actor
from services.gateway import HttpPaymentGateway, PaymentGateway
from store.orders import OrderStore
from store.products import ProductStore
from store.users import UserStore
from utils.config import Settings
from utils.database import get_engine, get_session_factory, init_db
from utils.errors import AuthenticationError, ForbiddenError, NotFoundError
from utils.security import decode_token
from workflows.order_lifecycle import OrderLifecycle
from workflows.payment_settlement import PaymentSettlement


@dataclass
class Services:
    settings: Settings
    products: ProductStore
    users: UserStore
    orders: OrderStore
    lifecycle: OrderLifecycle
    settlement: PaymentSettlement


def build_services(
    settings: Settings,
    engine: Optional[Engine] = None,
    gateway: Optional[PaymentGateway] = None,
) -> Services:
    """Wires stores and services over one engine, creating tables if needed."""
    engine = engine or get_engine(settings.database_url)
    init_db(engine)
    sessions = get_session_factory(engine)
    products = ProductStore(sessions)
    users = UserStore(sessions, products)
    orders = OrderStore(sessions, users)
    return Services(
        settings=settings,
        products=products,
        users=users,
        orders=orders,
        lifecycle=OrderLifecycle(orders, users, products, settings),
        settlement=PaymentSettlement(orders, users, gateway or HttpPaymentGateway(settings), settings),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_current_user(
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services),
) -> Actor:
    if not authorization:
        raise AuthenticationError("Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Invalid Authorization header")
    claims = decode_token(token.strip(), services.settings)
    # Role and existence come from the stored account, not the token
    try:
        user = services.users.get(claims.id)
    except NotFoundError:
        raise AuthenticationError("Account no longer exists")
    return user.as_actor()


def require_admin(user: Actor = Depends(get_current_user)) -> Actor:
    if not user.is_admin:
        raise ForbiddenError("Admin only")
    return user
