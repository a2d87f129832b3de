# app/schemas/ticket.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class TicketItemRead(SQLModel):
    product_id: uuid.UUID
    quantity: int
    unit_price: float
    line_total: float


class TicketRead(SQLModel):
    """
    Purchase ticket as shown to the buyer.
    """

    code: str
    amount: float
    purchase_datetime: datetime
    purchaser: uuid.UUID
    cart_id: uuid.UUID | None = None
    items: list[TicketItemRead]


class CheckoutRead(SQLModel):
    """
    Checkout outcome: the ticket for fulfilled lines plus the product ids
    that were dropped for lack of stock.
    """

    ticket: TicketRead
    products_not_processed: list[str] = []

    @property
    def is_partial(self) -> bool:
        return bool(self.products_not_processed)


class PurchaseResponse(SQLModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["success"] = "success"
    message: str
    ticket: TicketRead
    products_not_processed: list[str] = Field(
        default_factory=list,
        alias="productsNotProcessed",
    )


class TicketResponse(SQLModel):
    status: Literal["success"] = "success"
    ticket: TicketRead


class TicketListResponse(SQLModel):
    status: Literal["success"] = "success"
    tickets: list[TicketRead]
