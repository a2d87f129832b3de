# app/repositories/ticket_repo.py
import uuid

from sqlmodel import Session, select

from app.models.ticket import Ticket


class TicketRepository:
    """
    Data access layer for tickets and ticket_items.

    NOTE:
      - No commits here; checkout is a multi-step transaction.
        The service is responsible for calling session.commit().
    """

    def get_by_code(self, session: Session, code: str) -> Ticket | None:
        stmt = select(Ticket).where(Ticket.code == code.strip().upper())
        return session.exec(stmt).first()

    def list_for_purchaser(
        self,
        session: Session,
        purchaser: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Ticket]:
        stmt = (
            select(Ticket)
            .where(Ticket.purchaser == purchaser)
            .order_by(Ticket.purchase_datetime.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def create(self, session: Session, ticket: Ticket) -> Ticket:
        """
        Insert a Ticket (and its items) without committing.
        """
        session.add(ticket)
        session.flush()
        return ticket
