# app/services/cart_service.py
import logging
import uuid
from typing import Any

from sqlmodel import Session

from app.core.exceptions import (
    CartNotFoundError,
    InsufficientStockError,
    LineNotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from app.core.ids import canonical_id, parse_id
from app.database import Database
from app.models.cart import Cart
from app.repositories.cart_repo import CartRepository
from app.schemas.cart import CartItemRead, CartRead
from app.services.inventory_service import ProductInventory

logger = logging.getLogger(__name__)


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - lazily create the one active cart per user
      - validate cart/product existence and the advisory stock check
      - snapshot the product's current price when a line is added
      - persist the cart after every mutation (totals are recomputed by
        the Cart aggregate itself)

    Stock is never decremented here; checkout owns that.
    """

    def __init__(self, db: Database, inventory: ProductInventory, cart_repo: CartRepository | None = None):
        self.db = db
        self.inventory = inventory
        self.cart_repo = cart_repo or CartRepository()

    # ---- internal helpers ----

    def _load_cart(
        self,
        session: Session,
        cart_id: Any,
        user_id: uuid.UUID | None = None,
    ) -> Cart:
        """
        Load a cart; a cart owned by someone else is reported as not found.
        """
        cart = self.cart_repo.get_by_id(session, parse_id(cart_id))
        if cart is None or (user_id is not None and cart.user_id != user_id):
            raise CartNotFoundError(cart_id)
        return cart

    def _save(self, session: Session, cart: Cart) -> CartRead:
        cart = self.cart_repo.save(session, cart)
        return build_cart_dto(cart)

    # ---- queries ----

    def get_or_create_cart(self, user_id: uuid.UUID) -> CartRead:
        """
        Return the user's active cart, creating an empty one if none exists.
        """
        with self.db.session() as session:
            cart = self.cart_repo.get_active_for_user(session, user_id)
            if cart is None:
                cart = self.cart_repo.create(session, Cart(user_id=user_id, items=[]))
                logger.info("Created cart %s for user %s", cart.id, user_id)
            return build_cart_dto(cart)

    def get_cart(self, cart_id: Any, user_id: uuid.UUID | None = None) -> CartRead:
        with self.db.session() as session:
            return build_cart_dto(self._load_cart(session, cart_id, user_id))

    # ---- commands ----

    def add_product(
        self,
        cart_id: Any,
        product_id: Any,
        quantity: int = 1,
        user_id: uuid.UUID | None = None,
    ) -> CartRead:
        """
        Add a product to the cart.

        Rules:
          - cart and product must exist, cart must be active
          - quantity >= 1
          - product.stock >= quantity (advisory only; checkout reserves)
          - snapshot price is taken from the product's current price
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError("Quantity must be a positive integer", field="quantity")

        with self.db.session() as session:
            cart = self._load_cart(session, cart_id, user_id)
            cart.ensure_active()

            product = self.inventory.get_by_id(product_id, session=session)
            if product is None:
                raise ProductNotFoundError(product_id)

            if product.stock < quantity:
                raise InsufficientStockError(product.id, quantity, product.stock)

            cart.add_line(product, quantity, product.price)
            logger.info(
                "Added %s x product %s to cart %s", quantity, product.id, cart.id
            )
            return self._save(session, cart)

    def remove_product(
        self,
        cart_id: Any,
        product_id: Any,
        user_id: uuid.UUID | None = None,
    ) -> CartRead:
        """
        Remove a product from the cart. Removing an absent product is a no-op.
        """
        with self.db.session() as session:
            cart = self._load_cart(session, cart_id, user_id)
            removed = cart.remove_line(product_id)
            if removed:
                logger.info("Removed product %s from cart %s", canonical_id(product_id), cart.id)
            return self._save(session, cart)

    def update_product_quantity(
        self,
        cart_id: Any,
        product_id: Any,
        quantity: int,
        user_id: uuid.UUID | None = None,
    ) -> CartRead:
        """
        Overwrite a line quantity; quantity <= 0 removes the line.

        Current stock is not re-validated here.
        """
        with self.db.session() as session:
            cart = self._load_cart(session, cart_id, user_id)
            cart.ensure_active()
            if cart.find_line(product_id) is None:
                raise LineNotFoundError(canonical_id(product_id))

            cart.set_line_quantity(product_id, quantity)
            logger.info(
                "Set quantity of product %s in cart %s to %s",
                canonical_id(product_id),
                cart.id,
                quantity,
            )
            return self._save(session, cart)

    def clear_cart(self, cart_id: Any, user_id: uuid.UUID | None = None) -> CartRead:
        with self.db.session() as session:
            cart = self._load_cart(session, cart_id, user_id)
            cart.clear()
            logger.info("Cleared cart %s", cart.id)
            return self._save(session, cart)

    def delete_cart(self, cart_id: Any, user_id: uuid.UUID | None = None) -> None:
        with self.db.session() as session:
            cart = self._load_cart(session, cart_id, user_id)
            self.cart_repo.delete(session, cart)
            logger.info("Deleted cart %s", cart_id)

    def abandon_cart(self, cart_id: Any) -> CartRead:
        """
        Transition an active cart to abandoned (used by external TTL
        policies).
        """
        with self.db.session() as session:
            cart = self._load_cart(session, cart_id)
            cart.mark_abandoned()
            logger.info("Cart %s marked abandoned", cart.id)
            return self._save(session, cart)


def build_cart_dto(cart: Cart) -> CartRead:
    """
    Compose CartRead from the ORM aggregate.
    """
    return CartRead(
        id=cart.id,
        user_id=cart.user_id,
        status=cart.status,
        items=[
            CartItemRead(
                product_id=line.product_id,
                quantity=line.quantity,
                snapshot_price=line.snapshot_price,
                line_total=line.line_total,
                updated_at=line.updated_at,
            )
            for line in cart.items
        ],
        total_items=cart.total_items,
        total_amount=cart.total_amount,
        formatted_total=cart.formatted_total,
        is_empty=cart.is_empty,
        created_at=cart.created_at,
        last_modified=cart.last_modified,
    )
