# app/models/product.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Product catalog entry.

    Invariants:
      - price is strictly positive
      - stock is a non-negative integer, only decremented by checkout
        reservations
      - products referenced by carts are deactivated (is_active=False),
        never deleted
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    title: str = Field(
        max_length=100,
        min_length=3,
        index=True,
        description="Display name of the product",
    )

    description: str = Field(
        default="",
        max_length=500,
    )

    code: str = Field(
        max_length=20,
        unique=True,
        index=True,
        description="Unique uppercase product code",
    )

    price: float = Field(
        gt=0,
        description="Current unit price",
    )

    stock: int = Field(
        default=0,
        ge=0,
        description="How many units currently in stock",
    )

    is_active: bool = Field(
        default=True,
        index=True,
        description="Soft-delete flag; inactive products cannot be purchased",
    )

    category: str = Field(
        max_length=50,
        index=True,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    @property
    def in_stock(self) -> bool:
        return self.stock > 0
