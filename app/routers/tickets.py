# app/routers/tickets.py
from fastapi import APIRouter, Depends

from app.core.auth import Principal, require_user
from app.core.deps import get_checkout_service
from app.schemas.ticket import TicketListResponse, TicketResponse
from app.services.checkout_service import CheckoutService

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.get("", response_model=TicketListResponse)
def list_my_tickets(
    service: CheckoutService = Depends(get_checkout_service),
    principal: Principal = Depends(require_user),
    skip: int = 0,
    limit: int = 50,
):
    """
    List the authenticated user's purchase tickets, newest first.
    """
    return TicketListResponse(tickets=service.list_tickets(principal.user_id, skip, limit))


@router.get("/{code}", response_model=TicketResponse)
def get_my_ticket(
    code: str,
    service: CheckoutService = Depends(get_checkout_service),
    principal: Principal = Depends(require_user),
):
    return TicketResponse(ticket=service.get_ticket(code, user_id=principal.user_id))
