# app/core/deps.py
from fastapi import Depends

from app.core.config import get_settings
from app.database import Database, get_database
from app.services.cart_service import CartService
from app.services.checkout_service import CheckoutService
from app.services.inventory_service import ProductInventory


def get_inventory(db: Database = Depends(get_database)) -> ProductInventory:
    return ProductInventory(db)


def get_cart_service(
    db: Database = Depends(get_database),
    inventory: ProductInventory = Depends(get_inventory),
) -> CartService:
    return CartService(db, inventory)


def get_checkout_service(
    db: Database = Depends(get_database),
    inventory: ProductInventory = Depends(get_inventory),
) -> CheckoutService:
    return CheckoutService(
        db,
        inventory,
        clear_cart_on_checkout=get_settings().CLEAR_CART_ON_CHECKOUT,
    )
