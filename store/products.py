"""Catalog products and their embedded reviews."""
from typing import Iterable, List, Optional
import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from models.product import Category, Product, ProductCreate, ProductUpdate, Review, ReviewCreate, ReviewUpdate
from models.user import Actor
from store.base import BaseStore
from store.tables import ProductRecord
from utils.database import utcnow
from utils.errors import ConflictError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


def _to_product(record: ProductRecord) -> Product:
    return Product(
        id=record.id,
        name=record.name,
        description=record.description,
        price=record.price,
        category=Category(record.category),
        sizes=list(record.sizes or []),
        colors=list(record.colors or []),
        fabric=record.fabric,
        images=list(record.images or []),
        stock=record.stock,
        is_in_stock=record.is_in_stock,
        rating=record.rating,
        num_reviews=record.num_reviews,
        reviews=[Review(**r) for r in record.reviews or []],
        created_at=record.created_at,
    )


def summarize_reviews(reviews: List[Review]) -> tuple[int, float]:
    """Returns (count, average rating); the average of no reviews is 0."""
    if not reviews:
        return 0, 0.0
    return len(reviews), sum(r.rating for r in reviews) / len(reviews)


class ProductStore(BaseStore):
    def _load(self, session: Session, product_id: str, for_update: bool = False) -> ProductRecord:
        stmt = select(ProductRecord).where(ProductRecord.id == product_id)
        if for_update:
            stmt = stmt.with_for_update()
        record = session.scalars(stmt).first()
        if record is None:
            raise NotFoundError("Product", product_id)
        return record

    def create(self, data: ProductCreate) -> Product:
        with self.transaction() as session:
            record = ProductRecord(
                id=str(uuid.uuid4()),
                **data.model_dump(mode="json"),
                rating=0,
                num_reviews=0,
                reviews=[],
                created_at=utcnow(),
            )
            session.add(record)
            session.flush()
            product = _to_product(record)
        logger.info(f"Created product {product.id} ({product.name})")
        return product

    def get(self, product_id: str) -> Product:
        with self.reading() as session:
            return _to_product(self._load(session, product_id))

    def get_many(self, product_ids: Iterable[str]) -> List[Product]:
        ids = list(product_ids)
        if not ids:
            return []
        with self.reading() as session:
            records = {r.id: r for r in session.scalars(select(ProductRecord).where(ProductRecord.id.in_(ids)))}
            return [_to_product(records[pid]) for pid in ids if pid in records]

    def list(self, category: Optional[Category] = None) -> List[Product]:
        stmt = select(ProductRecord).order_by(ProductRecord.created_at.desc())
        if category is not None:
            stmt = stmt.where(ProductRecord.category == category.value)
        with self.reading() as session:
            return [_to_product(r) for r in session.scalars(stmt)]

    def update(self, product_id: str, data: ProductUpdate) -> Product:
        changes = data.model_dump(mode="json", exclude_unset=True)
        with self.transaction() as session:
            record = self._load(session, product_id, for_update=True)
            for field, value in changes.items():
                setattr(record, field, value)
            session.flush()
            product = _to_product(record)
        logger.info(f"Updated product {product_id}: {sorted(changes)}")
        return product

    def delete(self, product_id: str) -> None:
        with self.transaction() as session:
            result = session.execute(delete(ProductRecord).where(ProductRecord.id == product_id))
            if result.rowcount == 0:
                raise NotFoundError("Product", product_id)
        logger.info(f"Deleted product {product_id}")

    # --- Reviews ---

    def _replace_reviews(self, session: Session, record: ProductRecord, reviews: List[Review]) -> Product:
        # The rating summary is written together with the list it is computed from
        record.reviews = [r.model_dump(mode="json") for r in reviews]
        record.num_reviews, record.rating = summarize_reviews(reviews)
        session.flush()
        return _to_product(record)

    def list_reviews(self, product_id: str) -> List[Review]:
        return self.get(product_id).reviews

    def add_review(self, product_id: str, actor: Actor, data: ReviewCreate) -> Product:
        with self.transaction() as session:
            record = self._load(session, product_id, for_update=True)
            reviews = [Review(**r) for r in record.reviews or []]
            if any(r.user_id == actor.id for r in reviews):
                raise ConflictError("Product already reviewed by this user")
            reviews.append(
                Review(user_id=actor.id, name=actor.name, rating=data.rating, comment=data.comment, created_at=utcnow())
            )
            return self._replace_reviews(session, record, reviews)

    def update_review(self, product_id: str, review_id: str, actor: Actor, data: ReviewUpdate) -> Product:
        with self.transaction() as session:
            record = self._load(session, product_id, for_update=True)
            reviews = [Review(**r) for r in record.reviews or []]
            review = next((r for r in reviews if r.id == review_id), None)
            if review is None:
                raise NotFoundError("Review", review_id)
            if review.user_id != actor.id:
                raise ForbiddenError()
            edited = review.model_copy(update=data.model_dump(exclude_unset=True, exclude_none=True))
            reviews = [edited if r.id == review_id else r for r in reviews]
            return self._replace_reviews(session, record, reviews)

    def delete_review(self, product_id: str, review_id: str, actor: Actor) -> Product:
        with self.transaction() as session:
            record = self._load(session, product_id, for_update=True)
            reviews = [Review(**r) for r in record.reviews or []]
            review = next((r for r in reviews if r.id == review_id), None)
            if review is None:
                raise NotFoundError("Review", review_id)
            if review.user_id != actor.id:
                raise ForbiddenError()
            return self._replace_reviews(session, record, [r for r in reviews if r.id != review_id])
