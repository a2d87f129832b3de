# app/routers/products.py
import uuid

from fastapi import APIRouter, Depends

from app.core.deps import get_inventory
from app.schemas.product import ProductListResponse, ProductRead, ProductResponse
from app.services.inventory_service import ProductInventory

router = APIRouter(prefix="/products", tags=["Products"])


# -------- Public endpoints --------


@router.get("", response_model=ProductListResponse)
def list_products(
    inventory: ProductInventory = Depends(get_inventory),
    category: str | None = None,
    skip: int = 0,
    limit: int = 50,
):
    """
    List active products, optionally filtered by category (case-insensitive).
    """
    products = inventory.list_active(category=category, skip=skip, limit=limit)
    return ProductListResponse(products=[ProductRead.model_validate(p) for p in products])


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: uuid.UUID,
    inventory: ProductInventory = Depends(get_inventory),
):
    """
    Get a single product by id.
    """
    return ProductResponse(product=ProductRead.model_validate(inventory.get_product(product_id)))
