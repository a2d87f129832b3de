# app/core/exceptions.py
"""
Cart and checkout exceptions.

Services raise these; the handlers in app/core/error_handlers.py map them
onto HTTP status codes and the {"status": "error", "message": ...} envelope.
"""


class CartServiceError(Exception):
    """Base exception for the cart/checkout core."""

    status_code: int = 400
    default_code: str = "CART_SERVICE_ERROR"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(self.message)


class NotFoundError(CartServiceError):
    """Raised when a cart or product does not exist."""

    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(self, entity_name: str, entity_id: object):
        super().__init__(f"{entity_name} '{entity_id}' not found")
        self.entity_name = entity_name
        self.entity_id = str(entity_id)


class CartNotFoundError(NotFoundError):
    def __init__(self, cart_id: object):
        super().__init__("Cart", cart_id)


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: object):
        super().__init__("Product", product_id)


class ValidationError(CartServiceError):
    """Raised for non-positive quantities and malformed ids."""

    status_code = 400
    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class InsufficientStockError(CartServiceError):
    """Raised by the advisory stock check when adding to a cart."""

    status_code = 400
    default_code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: object, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product '{product_id}': "
            f"requested {requested}, available {available}"
        )
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available


class LineNotFoundError(CartServiceError):
    """Raised when a quantity update targets a product that is not in the cart."""

    status_code = 404
    default_code = "LINE_NOT_FOUND"

    def __init__(self, product_id: object):
        super().__init__(f"Product '{product_id}' is not in the cart")
        self.product_id = str(product_id)


class CartStateError(CartServiceError):
    """Raised when the cart status does not allow the operation."""

    status_code = 400
    default_code = "CART_STATE"

    def __init__(self, message: str, state: str | None = None):
        super().__init__(message)
        self.state = state


class EmptyCartError(CartStateError):
    default_code = "EMPTY_CART"

    def __init__(self, cart_id: object):
        super().__init__(f"Cart '{cart_id}' is empty")


class CartAlreadyCompletedError(CartStateError):
    default_code = "CART_ALREADY_COMPLETED"

    def __init__(self, cart_id: object, state: str):
        super().__init__(f"Cart '{cart_id}' is {state} and cannot be modified", state)


class CheckoutFailedError(CartServiceError):
    """Raised when not a single cart line could be fulfilled."""

    status_code = 409
    default_code = "CHECKOUT_FAILED"

    def __init__(self, cart_id: object, not_processed: list[str]):
        super().__init__(
            f"Checkout of cart '{cart_id}' failed: no product could be fulfilled"
        )
        self.not_processed = not_processed
