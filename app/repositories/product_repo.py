# app/repositories/product_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, update
from sqlmodel import Session, select

from app.models.product import Product


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_by_code(self, session: Session, code: str) -> Product | None:
        stmt = select(Product).where(Product.code == code.strip().upper())
        return session.exec(stmt).first()

    def list_active(
        self,
        session: Session,
        category: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Product]:
        stmt = select(Product).where(Product.is_active == True)  # noqa: E712
        if category:
            stmt = stmt.where(func.lower(Product.category) == category.strip().lower())
        stmt = stmt.order_by(Product.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def decrement_stock(
        self,
        session: Session,
        product_id: uuid.UUID,
        quantity: int,
    ) -> bool:
        """
        Conditional decrement in a single UPDATE:

            UPDATE products SET stock = stock - :q
            WHERE id = :id AND is_active AND stock >= :q

        Returns True if the row was updated. No commit here; the caller owns
        the transaction.
        """
        stmt = (
            update(Product)
            .where(
                Product.id == product_id,
                Product.is_active == True,  # noqa: E712
                Product.stock >= quantity,
            )
            .values(
                stock=Product.stock - quantity,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        result = session.exec(stmt)
        return result.rowcount == 1
