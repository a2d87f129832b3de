# app/services/checkout_service.py
import logging
import uuid
from typing import Any

from app.core.exceptions import (
    CartAlreadyCompletedError,
    CartNotFoundError,
    CheckoutFailedError,
    EmptyCartError,
    NotFoundError,
)
from app.core.ids import canonical_id, parse_id
from app.database import Database
from app.models.cart import CartItem
from app.models.ticket import Ticket, TicketItem
from app.repositories.cart_repo import CartRepository
from app.repositories.ticket_repo import TicketRepository
from app.schemas.ticket import CheckoutRead, TicketItemRead, TicketRead
from app.services.inventory_service import ProductInventory, ReservationResult

logger = logging.getLogger(__name__)


class CheckoutService:
    """
    Turns a cart into a purchase ticket with partial fulfillment.

    Steps:
      1. Load the cart; it must exist, be active and have lines.
      2. Reserve stock line by line, in ascending product id order. A line
         whose product is missing or short on stock goes to the "not
         processed" set; the rest continue.
      3. Nothing reserved -> CheckoutFailedError, transaction rolled back,
         cart untouched.
      4. Otherwise create the ticket for the fulfilled lines, keep only the
         not-processed lines in the cart (or clear it when
         clear_cart_on_checkout is set) and mark the cart completed.
      5. Commit stock decrements, ticket and cart in one transaction.
    """

    def __init__(
        self,
        db: Database,
        inventory: ProductInventory,
        cart_repo: CartRepository | None = None,
        ticket_repo: TicketRepository | None = None,
        clear_cart_on_checkout: bool = False,
    ):
        self.db = db
        self.inventory = inventory
        self.cart_repo = cart_repo or CartRepository()
        self.ticket_repo = ticket_repo or TicketRepository()
        self.clear_cart_on_checkout = clear_cart_on_checkout

    def purchase(self, cart_id: Any, user_id: uuid.UUID | None = None) -> CheckoutRead:
        with self.db.session() as session:
            cart = self.cart_repo.get_by_id(session, parse_id(cart_id))
            if cart is None or (user_id is not None and cart.user_id != user_id):
                raise CartNotFoundError(cart_id)
            if not cart.is_active:
                raise CartAlreadyCompletedError(cart.id, cart.status)
            if cart.is_empty:
                raise EmptyCartError(cart.id)

            # Every checkout takes product row locks in ascending id order
            reserved: set[str] = set()
            for line in sorted(cart.items, key=lambda ln: canonical_id(ln.product_id)):
                result = self.inventory.reserve(line.product_id, line.quantity, session=session)
                if result is ReservationResult.RESERVED:
                    reserved.add(canonical_id(line.product_id))

            fulfilled: list[CartItem] = []
            not_processed: list[str] = []
            for line in cart.items:
                if canonical_id(line.product_id) in reserved:
                    fulfilled.append(line)
                else:
                    not_processed.append(canonical_id(line.product_id))

            if not fulfilled:
                session.rollback()
                logger.warning("Checkout of cart %s failed: nothing could be fulfilled", cart.id)
                raise CheckoutFailedError(cart.id, not_processed)

            ticket = Ticket(
                amount=sum((line.snapshot_price * line.quantity for line in fulfilled), 0.0),
                purchaser=cart.user_id,
                cart_id=cart.id,
                items=[
                    TicketItem(
                        product_id=line.product_id,
                        quantity=line.quantity,
                        unit_price=line.snapshot_price,
                    )
                    for line in fulfilled
                ],
            )
            self.ticket_repo.create(session, ticket)

            if self.clear_cart_on_checkout:
                cart.clear()
            else:
                cart.retain_lines(not_processed)
            cart.mark_completed()

            session.add(cart)
            session.commit()
            session.refresh(ticket)

            logger.info(
                "Checkout of cart %s: ticket %s, amount %.2f, %s line(s) not processed",
                cart.id,
                ticket.code,
                ticket.amount,
                len(not_processed),
            )
            return CheckoutRead(
                ticket=build_ticket_dto(ticket),
                products_not_processed=not_processed,
            )

    # ---- ticket reads ----

    def get_ticket(self, code: str, user_id: uuid.UUID | None = None) -> TicketRead:
        with self.db.session() as session:
            ticket = self.ticket_repo.get_by_code(session, code)
            if ticket is None or (user_id is not None and ticket.purchaser != user_id):
                raise NotFoundError("Ticket", code)
            return build_ticket_dto(ticket)

    def list_tickets(self, user_id: uuid.UUID, skip: int = 0, limit: int = 50) -> list[TicketRead]:
        with self.db.session() as session:
            tickets = self.ticket_repo.list_for_purchaser(session, user_id, skip, limit)
            return [build_ticket_dto(t) for t in tickets]


def build_ticket_dto(ticket: Ticket) -> TicketRead:
    return TicketRead(
        code=ticket.code,
        amount=ticket.amount,
        purchase_datetime=ticket.purchase_datetime,
        purchaser=ticket.purchaser,
        cart_id=ticket.cart_id,
        items=[
            TicketItemRead(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=item.unit_price * item.quantity,
            )
            for item in ticket.items
        ],
    )
