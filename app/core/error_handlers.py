# app/core/error_handlers.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import (
    CartServiceError,
    CheckoutFailedError,
    InsufficientStockError,
)

logger = logging.getLogger(__name__)


def _error_body(message: str, code: str, **extra) -> dict:
    return {"status": "error", "message": message, "code": code, **extra}


async def cart_service_error_handler(request: Request, exc: CartServiceError):
    """
    Map domain exceptions onto their HTTP status.

    Stock and checkout failures carry enough detail for the client to
    redisplay the cart with an explanatory banner.
    """
    extra: dict = {}
    if isinstance(exc, InsufficientStockError):
        extra = {
            "product_id": exc.product_id,
            "requested": exc.requested,
            "available": exc.available,
        }
    elif isinstance(exc, CheckoutFailedError):
        extra = {"productsNotProcessed": exc.not_processed}

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.code, **extra),
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
):
    # Malformed ids / non-integer quantities are client errors (400, not 422)
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(message, "VALIDATION_ERROR"),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Auth failures and unknown routes use the same envelope
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), "HTTP_ERROR"),
        headers=getattr(exc, "headers", None),
    )


async def persistence_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Persistence failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error", "INTERNAL_ERROR"),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CartServiceError, cart_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(SQLAlchemyError, persistence_error_handler)
