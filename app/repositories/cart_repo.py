# app/repositories/cart_repo.py
import uuid
from sqlmodel import Session, select
from app.models.cart import Cart, CartStatus


class CartRepository:

    def get_by_id(self, session: Session, cart_id: uuid.UUID) -> Cart | None:
        return session.get(Cart, cart_id)

    # Exactly one active cart per user is kept by lookup-or-create
    def get_active_for_user(self, session: Session, user_id: uuid.UUID) -> Cart | None:
        stmt = (
            select(Cart)
            .where(Cart.user_id == user_id, Cart.status == CartStatus.ACTIVE.value)
            .order_by(Cart.created_at)
        )
        return session.exec(stmt).first()

    # CRUD
    def create(self, session: Session, cart: Cart) -> Cart:
        session.add(cart)
        session.commit()
        session.refresh(cart)
        return cart

    def save(self, session: Session, cart: Cart) -> Cart:
        session.add(cart)
        session.commit()
        session.refresh(cart)
        return cart

    def delete(self, session: Session, cart: Cart) -> None:
        session.delete(cart)
        session.commit()
