# app/models/ticket.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field, Relationship


def generate_ticket_code() -> str:
    return uuid.uuid4().hex[:16].upper()


class Ticket(SQLModel, table=True):
    """
    Immutable record of a completed (possibly partial) purchase.

    amount only covers the lines that were actually fulfilled.
    """

    __tablename__ = "tickets"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    code: str = Field(
        default_factory=generate_ticket_code,
        unique=True,
        index=True,
        description="Public purchase code",
    )

    amount: float = Field(
        gt=0,
        description="Sum of snapshot price x quantity over fulfilled lines",
    )

    purchase_datetime: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    purchaser: uuid.UUID = Field(
        index=True,
        description="User id of the buyer",
    )

    # Tickets outlive their cart; deleting the cart only detaches them
    cart_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="carts.id",
        ondelete="SET NULL",
        index=True,
    )

    items: list["TicketItem"] = Relationship(
        back_populates="ticket",
        sa_relationship_kwargs={"lazy": "selectin"},
    )


class TicketItem(SQLModel, table=True):
    """
    Fulfilled line inside a ticket.
    """

    __tablename__ = "ticket_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    ticket_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="tickets.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    quantity: int = Field(gt=0)

    # Snapshot price carried over from the cart line
    unit_price: float

    ticket: Ticket | None = Relationship(back_populates="items")
