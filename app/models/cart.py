# app/models/cart.py
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from sqlmodel import SQLModel, Field, Relationship

from app.core.exceptions import (
    CartAlreadyCompletedError,
    LineNotFoundError,
    ValidationError,
)
from app.core.ids import canonical_id, parse_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CartStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class CartItem(SQLModel, table=True):
    """
    One product line inside a cart.

    snapshot_price is captured when the product is first added and is not
    touched by later catalog price changes.
    """

    __tablename__ = "cart_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    cart_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="carts.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    quantity: int = Field(
        gt=0,
        description="Must be >= 1",
    )

    snapshot_price: float = Field(
        description="Unit price when added to cart",
    )

    # Keeps lines in insertion order
    position: int = Field(default=0)

    updated_at: datetime = Field(default_factory=_utcnow)

    cart: Optional["Cart"] = Relationship(back_populates="items")

    @property
    def line_total(self) -> float:
        return self.snapshot_price * self.quantity


class Cart(SQLModel, table=True):
    """
    Shopping cart aggregate.

    Invariants (maintained by the methods below, never by the storage layer):
      - every line has quantity >= 1
      - at most one line per product
      - total_items / total_amount are recomputed after every mutation
      - only an active cart accepts line mutations; completed and
        abandoned are terminal
    """

    __tablename__ = "carts"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(index=True)

    status: str = Field(
        default=CartStatus.ACTIVE.value,
        index=True,
        description="active | completed | abandoned",
    )

    total_items: int = Field(default=0, ge=0)
    total_amount: float = Field(default=0.0, ge=0)

    created_at: datetime = Field(default_factory=_utcnow)
    last_modified: datetime = Field(default_factory=_utcnow)

    items: list[CartItem] = Relationship(
        back_populates="cart",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "lazy": "selectin",
            "order_by": "CartItem.position",
        },
    )

    # ---- derived accessors ----

    @property
    def is_active(self) -> bool:
        return self.status == CartStatus.ACTIVE.value

    @property
    def is_empty(self) -> bool:
        return len(self.items) == 0

    @property
    def formatted_total(self) -> str:
        return f"${self.total_amount:,.2f}"

    # ---- invariant maintenance ----

    def recalculate_totals(self) -> None:
        self.total_items = sum(line.quantity for line in self.items)
        self.total_amount = sum(
            (line.snapshot_price * line.quantity for line in self.items), 0.0
        )
        self.last_modified = _utcnow()

    def ensure_active(self) -> None:
        if not self.is_active:
            raise CartAlreadyCompletedError(self.id, self.status)

    # ---- line operations ----

    def find_line(self, product_ref: Any) -> CartItem | None:
        wanted = canonical_id(product_ref)
        for line in self.items:
            if canonical_id(line.product_id) == wanted:
                return line
        return None

    def add_line(self, product_ref: Any, quantity: int, unit_price: float) -> CartItem:
        """
        Add `quantity` units of a product.

        An existing line for the same product is merged (quantity increased,
        timestamp refreshed, original price snapshot kept); otherwise a new
        line is appended with `unit_price` as its snapshot.
        """
        self.ensure_active()
        _validate_quantity(quantity, minimum=1)
        if unit_price is None or unit_price <= 0:
            raise ValidationError("Unit price must be positive", field="unit_price")

        line = self.find_line(product_ref)
        if line is not None:
            line.quantity += quantity
            line.updated_at = _utcnow()
        else:
            next_position = max((ln.position for ln in self.items), default=-1) + 1
            line = CartItem(
                product_id=parse_id(product_ref),
                quantity=quantity,
                snapshot_price=unit_price,
                position=next_position,
            )
            self.items.append(line)

        self.recalculate_totals()
        return line

    def remove_line(self, product_ref: Any) -> bool:
        """Remove the product's line. Returns False (no error) if it was absent."""
        self.ensure_active()
        line = self.find_line(product_ref)
        if line is not None:
            self.items.remove(line)
        self.recalculate_totals()
        return line is not None

    def set_line_quantity(self, product_ref: Any, quantity: int) -> CartItem | None:
        """
        Overwrite a line's quantity. quantity <= 0 removes the line.

        Raises:
            LineNotFoundError: if the product is not in the cart.
        """
        self.ensure_active()
        _validate_quantity(quantity)
        line = self.find_line(product_ref)
        if line is None:
            raise LineNotFoundError(canonical_id(product_ref))

        if quantity <= 0:
            self.remove_line(product_ref)
            return None

        line.quantity = quantity
        line.updated_at = _utcnow()
        self.recalculate_totals()
        return line

    def retain_lines(self, product_refs: list[Any]) -> None:
        """Keep only the lines whose product is in `product_refs`."""
        self.ensure_active()
        keep = {canonical_id(ref) for ref in product_refs}
        for line in list(self.items):
            if canonical_id(line.product_id) not in keep:
                self.items.remove(line)
        self.recalculate_totals()

    def clear(self) -> None:
        self.ensure_active()
        self.items.clear()
        self.recalculate_totals()

    # ---- status transitions ----

    def mark_completed(self) -> None:
        self.ensure_active()
        self.status = CartStatus.COMPLETED.value
        self.last_modified = _utcnow()

    def mark_abandoned(self) -> None:
        self.ensure_active()
        self.status = CartStatus.ABANDONED.value
        self.last_modified = _utcnow()


def _validate_quantity(quantity: Any, minimum: int | None = None) -> None:
    # bool is an int subclass; reject it explicitly
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("Quantity must be an integer", field="quantity")
    if minimum is not None and quantity < minimum:
        raise ValidationError(f"Quantity must be at least {minimum}", field="quantity")
