"""User accounts with their embedded cart and wishlist."""
from typing import Dict, Iterable, List, Optional
import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from models.product import Product
from models.user import CartItem, Role, User
from store.base import BaseStore
from store.tables import UserRecord
from utils.database import utcnow
from utils.errors import AuthenticationError, ConflictError, NotFoundError
from utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)


def _to_user(record: UserRecord) -> User:
    return User(
        id=record.id,
        name=record.name,
        email=record.email,
        role=Role(record.role),
        cart=[CartItem(**line) for line in record.cart or []],
        wishlist=list(record.wishlist or []),
        created_at=record.created_at,
    )


class UserStore(BaseStore):
    def __init__(self, session_factory, products):
        super().__init__(session_factory)
        self._products = products

    def _load(self, session: Session, user_id: str, for_update: bool = False) -> UserRecord:
        stmt = select(UserRecord).where(UserRecord.id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        record = session.scalars(stmt).first()
        if record is None:
            raise NotFoundError("User", user_id)
        return record

    # --- Accounts ---

    def create_user(self, name: str, email: str, password: str, role: Role = Role.USER) -> User:
        email = email.strip().lower()
        with self.transaction() as session:
            if session.scalars(select(UserRecord).where(UserRecord.email == email)).first():
                raise ConflictError("Email already registered")
            record = UserRecord(
                id=str(uuid.uuid4()),
                name=name.strip(),
                email=email,
                password_hash=hash_password(password),
                role=role.value,
                cart=[],
                wishlist=[],
                created_at=utcnow(),
            )
            session.add(record)
            session.flush()
            user = _to_user(record)
        logger.info(f"Registered user {user.id} ({role.value})")
        return user

    def authenticate(self, email: str, password: str) -> User:
        with self.reading() as session:
            record = session.scalars(
                select(UserRecord).where(UserRecord.email == email.strip().lower())
            ).first()
            if record is None or not verify_password(password, record.password_hash):
                raise AuthenticationError("Invalid credentials")
            return _to_user(record)

    def get(self, user_id: str) -> User:
        with self.reading() as session:
            return _to_user(self._load(session, user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        with self.reading() as session:
            record = session.scalars(
                select(UserRecord).where(UserRecord.email == email.strip().lower())
            ).first()
            return _to_user(record) if record else None

    def get_many(self, user_ids: Iterable[str]) -> Dict[str, User]:
        ids = set(user_ids)
        if not ids:
            return {}
        with self.reading() as session:
            records = session.scalars(select(UserRecord).where(UserRecord.id.in_(ids)))
            return {r.id: _to_user(r) for r in records}

    def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        with self.transaction() as session:
            record = self._load(session, user_id, for_update=True)
            if email:
                email = email.strip().lower()
                taken = session.scalars(
                    select(UserRecord).where(UserRecord.email == email, UserRecord.id != user_id)
                ).first()
                if taken:
                    raise ConflictError("Email already registered")
                record.email = email
            if name:
                record.name = name.strip()
            if password:
                record.password_hash = hash_password(password)
            session.flush()
            return _to_user(record)

    def set_role(self, user_id: str, role: Role) -> User:
        with self.transaction() as session:
            record = self._load(session, user_id, for_update=True)
            record.role = role.value
            session.flush()
            return _to_user(record)

    # --- Cart ---

    def get_cart(self, user_id: str) -> List[CartItem]:
        return self.get(user_id).cart

    def _replace_cart(self, session: Session, record: UserRecord, cart: List[CartItem]) -> List[CartItem]:
        record.cart = [line.model_dump(mode="json") for line in cart]
        session.flush()
        return cart

    def add_to_cart(
        self,
        user_id: str,
        product_id: str,
        quantity: int = 1,
        size: Optional[str] = None,
        color: Optional[str] = None,
    ) -> List[CartItem]:
        """Adds a line, merging quantities with an existing (product, size, color) line."""
        product = self._products.get(product_id)
        with self.transaction() as session:
            record = self._load(session, user_id, for_update=True)
            cart = [CartItem(**line) for line in record.cart or []]
            key = (product_id, size, color)
            existing = next((line for line in cart if line.key == key), None)
            if existing:
                cart = [
                    line.model_copy(update={"quantity": line.quantity + quantity}) if line.key == key else line
                    for line in cart
                ]
            else:
                cart.append(
                    CartItem(product_id=product_id, quantity=quantity, size=size, color=color, price=product.price)
                )
            return self._replace_cart(session, record, cart)

    def update_cart_item(
        self,
        user_id: str,
        product_id: str,
        quantity: int,
        size: Optional[str] = None,
        color: Optional[str] = None,
    ) -> List[CartItem]:
        with self.transaction() as session:
            record = self._load(session, user_id, for_update=True)
            cart = [CartItem(**line) for line in record.cart or []]
            key = (product_id, size, color)
            if not any(line.key == key for line in cart):
                raise NotFoundError("Cart item", product_id)
            cart = [line.model_copy(update={"quantity": quantity}) if line.key == key else line for line in cart]
            return self._replace_cart(session, record, cart)

    def remove_from_cart(
        self, user_id: str, product_id: str, size: Optional[str] = None, color: Optional[str] = None
    ) -> List[CartItem]:
        with self.transaction() as session:
            record = self._load(session, user_id, for_update=True)
            key = (product_id, size, color)
            cart = [line for line in (CartItem(**raw) for raw in record.cart or []) if line.key != key]
            return self._replace_cart(session, record, cart)

    def clear_cart(
        self, user_id: str, session: Session | None = None, expected: Optional[List[CartItem]] = None
    ) -> None:
        """
        Empties the cart. With `expected`, the stored cart must still hold exactly those
        lines, otherwise nothing is cleared and ConflictError is raised.
        """
        with self.transaction(session) as s:
            if expected is not None:
                record = self._load(s, user_id, for_update=True)
                current = [CartItem(**raw) for raw in record.cart or []]
                if current != list(expected):
                    logger.warning(f"Cart of user {user_id} changed during checkout")
                    raise ConflictError("Cart changed during checkout, review it and try again")
            s.execute(
                update(UserRecord)
                .where(UserRecord.id == user_id)
                .values(cart=[], updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )

    # --- Wishlist ---

    def get_wishlist(self, user_id: str) -> List[Product]:
        ids = self.get(user_id).wishlist
        # Products deleted from the catalog drop out silently
        return self._products.get_many(ids)

    def add_to_wishlist(self, user_id: str, product_id: str) -> List[str]:
        self._products.get(product_id)
        with self.transaction() as session:
            record = self._load(session, user_id, for_update=True)
            wishlist = list(record.wishlist or [])
            if product_id not in wishlist:
                wishlist.append(product_id)
                record.wishlist = wishlist
            return wishlist

    def remove_from_wishlist(self, user_id: str, product_id: str) -> List[str]:
        with self.transaction() as session:
            record = self._load(session, user_id, for_update=True)
            wishlist = [pid for pid in record.wishlist or [] if pid != product_id]
            record.wishlist = wishlist
            return wishlist
