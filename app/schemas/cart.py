# app/schemas/cart.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class AddProductPayload(SQLModel):
    """
    Payload for adding a product to a cart.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(default=1, ge=1)


class UpdateQuantityPayload(SQLModel):
    """
    Payload for overwriting a line quantity.

    quantity <= 0 removes the line.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int


class CartItemRead(SQLModel):
    """
    Read model for a single cart line, including line_total.
    """

    product_id: uuid.UUID
    quantity: int
    snapshot_price: float
    line_total: float
    updated_at: datetime


class CartRead(SQLModel):
    """
    Full cart view with derived totals.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    status: Literal["active", "completed", "abandoned"]
    items: list[CartItemRead]
    total_items: int
    total_amount: float
    formatted_total: str
    is_empty: bool
    created_at: datetime
    last_modified: datetime


class CartResponse(SQLModel):
    status: Literal["success"] = "success"
    message: str | None = None
    cart: CartRead


class AckResponse(SQLModel):
    status: Literal["success"] = "success"
    message: str
