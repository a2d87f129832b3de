# app/services/inventory_service.py
import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlmodel import Session

from app.core.exceptions import ProductNotFoundError
from app.core.ids import parse_id
from app.database import Database
from app.models.product import Product
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


class ReservationResult(str, Enum):
    RESERVED = "reserved"
    INSUFFICIENT_STOCK = "insufficient_stock"
    NOT_FOUND = "not_found"


class ProductInventory:
    """
    Product records shared by every cart.

    Responsibilities:
      - product lookups for the cart service
      - advisory availability checks (add-to-cart time)
      - atomic stock reservation (checkout time); nothing else decrements
        stock
    """

    def __init__(self, db: Database, repo: ProductRepository | None = None):
        self.db = db
        self.repo = repo or ProductRepository()

    # ---- reads ----

    def get_by_id(self, product_id: Any, session: Session | None = None) -> Product | None:
        pid = parse_id(product_id)
        if session is not None:
            return self.repo.get_by_id(session, pid)
        with self.db.session() as own:
            return self.repo.get_by_id(own, pid)

    def get_product(self, product_id: Any) -> Product:
        product = self.get_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def get_by_code(self, code: str) -> Product | None:
        with self.db.session() as session:
            return self.repo.get_by_code(session, code)

    def list_active(
        self,
        category: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Product]:
        with self.db.session() as session:
            return self.repo.list_active(session, category=category, skip=skip, limit=limit)

    @staticmethod
    def is_available(product: Product, quantity: int = 1) -> bool:
        return bool(product.is_active) and product.stock >= quantity

    # ---- writes ----

    def create(self, payload: ProductCreate) -> Product:
        """
        Create a catalog product. Catalog management normally lives outside
        this service; this is used for seeding and tests.
        """
        with self.db.session() as session:
            product = Product.model_validate(payload)
            return self.repo.create(session, product)

    def update(self, product_id: Any, payload: ProductUpdate) -> Product:
        """
        Partial catalog edit (price change, restock, deactivation).

        Cart lines keep their snapshot price; only new lines see the new one.
        """
        with self.db.session() as session:
            product = self.repo.get_by_id(session, parse_id(product_id))
            if product is None:
                raise ProductNotFoundError(product_id)

            if payload.title is not None:
                product.title = payload.title
            if payload.description is not None:
                product.description = payload.description
            if payload.price is not None:
                product.price = payload.price
            if payload.stock is not None:
                product.stock = payload.stock
            if payload.is_active is not None:
                product.is_active = payload.is_active
            if payload.category is not None:
                product.category = payload.category

            product.updated_at = datetime.now(timezone.utc)
            logger.info("Updated product %s", product.id)
            return self.repo.update(session, product)

    def reserve(
        self,
        product_id: Any,
        quantity: int,
        session: Session | None = None,
    ) -> ReservationResult:
        """
        Atomically check `stock >= quantity` and decrement in one UPDATE.

        When `session` is given the decrement joins the caller's transaction
        (checkout); otherwise it is committed immediately.
        """
        if quantity < 1:
            return ReservationResult.INSUFFICIENT_STOCK

        pid = parse_id(product_id)
        if session is None:
            with self.db.session() as own:
                result = self._reserve(own, pid, quantity)
                own.commit()
                return result
        return self._reserve(session, pid, quantity)

    def _reserve(self, session: Session, product_id: uuid.UUID, quantity: int) -> ReservationResult:
        if self.repo.decrement_stock(session, product_id, quantity):
            logger.info("Reserved %s unit(s) of product %s", quantity, product_id)
            return ReservationResult.RESERVED

        # The decrement did not match; tell the caller why
        if self.repo.get_by_id(session, product_id) is None:
            logger.warning("Reservation failed: product %s not found", product_id)
            return ReservationResult.NOT_FOUND

        logger.warning(
            "Reservation failed: insufficient stock for product %s (requested %s)",
            product_id,
            quantity,
        )
        return ReservationResult.INSUFFICIENT_STOCK
