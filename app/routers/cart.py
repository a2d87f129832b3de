# app/routers/cart.py
import uuid

from fastapi import APIRouter, Depends

from app.core.auth import Principal, require_user
from app.core.deps import get_cart_service, get_checkout_service
from app.schemas.cart import (
    AckResponse,
    AddProductPayload,
    CartResponse,
    UpdateQuantityPayload,
)
from app.schemas.ticket import PurchaseResponse
from app.services.cart_service import CartService
from app.services.checkout_service import CheckoutService

router = APIRouter(prefix="/carts", tags=["Carts"])


@router.get("/mine", response_model=CartResponse)
def get_my_cart(
    service: CartService = Depends(get_cart_service),
    principal: Principal = Depends(require_user),
):
    """
    Get (or lazily create) the current user's active cart.
    """
    return CartResponse(cart=service.get_or_create_cart(principal.user_id))


@router.get("/{cart_id}", response_model=CartResponse)
def get_cart(
    cart_id: uuid.UUID,
    service: CartService = Depends(get_cart_service),
    principal: Principal = Depends(require_user),
):
    return CartResponse(cart=service.get_cart(cart_id, user_id=principal.user_id))


@router.post("/{cart_id}/products/{product_id}", response_model=CartResponse)
def add_product(
    cart_id: uuid.UUID,
    product_id: uuid.UUID,
    payload: AddProductPayload | None = None,
    service: CartService = Depends(get_cart_service),
    principal: Principal = Depends(require_user),
):
    """
    Add a product to the cart (quantity defaults to 1).

    The stock check here is advisory; checkout reserves stock for real.
    """
    quantity = payload.quantity if payload else 1
    cart = service.add_product(cart_id, product_id, quantity, user_id=principal.user_id)
    return CartResponse(message="Product added to cart", cart=cart)


@router.put("/{cart_id}/products/{product_id}", response_model=CartResponse)
def update_product_quantity(
    cart_id: uuid.UUID,
    product_id: uuid.UUID,
    payload: UpdateQuantityPayload,
    service: CartService = Depends(get_cart_service),
    principal: Principal = Depends(require_user),
):
    """
    Overwrite the quantity of a product in the cart.

    quantity <= 0 removes the product.
    """
    cart = service.update_product_quantity(
        cart_id, product_id, payload.quantity, user_id=principal.user_id
    )
    return CartResponse(message="Quantity updated", cart=cart)


@router.delete("/{cart_id}/products/{product_id}", response_model=CartResponse)
def remove_product(
    cart_id: uuid.UUID,
    product_id: uuid.UUID,
    service: CartService = Depends(get_cart_service),
    principal: Principal = Depends(require_user),
):
    """
    Remove a product from the cart. Absent products are ignored.
    """
    cart = service.remove_product(cart_id, product_id, user_id=principal.user_id)
    return CartResponse(message="Product removed from cart", cart=cart)


@router.delete("/{cart_id}", response_model=AckResponse)
def clear_cart(
    cart_id: uuid.UUID,
    service: CartService = Depends(get_cart_service),
    principal: Principal = Depends(require_user),
):
    """
    Empty the cart (the cart itself is kept).
    """
    service.clear_cart(cart_id, user_id=principal.user_id)
    return AckResponse(message="Cart emptied")


@router.post("/{cart_id}/purchase", response_model=PurchaseResponse)
def purchase(
    cart_id: uuid.UUID,
    service: CheckoutService = Depends(get_checkout_service),
    principal: Principal = Depends(require_user),
):
    """
    Check out the cart.

    Lines that cannot be fulfilled are reported in productsNotProcessed;
    that is still a successful purchase.
    """
    result = service.purchase(cart_id, user_id=principal.user_id)
    message = "Purchase completed"
    if result.is_partial:
        message = "Purchase completed; some products could not be processed for lack of stock"
    return PurchaseResponse(
        message=message,
        ticket=result.ticket,
        products_not_processed=result.products_not_processed,
    )
