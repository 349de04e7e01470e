"""Cart router - FastAPI endpoints for the shopping cart"""

from fastapi import APIRouter, Depends

from ...auth import get_current_user
from ...schemas import CurrentUser
from .repository import CartRepository
from .schemas import CartAddRequest, CartQuantityUpdate, CartResponse
from .service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])


def get_cart_service() -> CartService:
    """Dependency injection for CartService"""
    return CartService(CartRepository())


@router.get("", response_model=CartResponse)
async def get_cart(
    current_user: CurrentUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    return service.get_cart(current_user)


@router.post("/items", response_model=CartResponse)
async def add_cart_item(
    data: CartAddRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    """Add a catalog product to the cart"""
    return service.add_item(current_user, data.product_id, data.quantity)


@router.patch("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: int,
    data: CartQuantityUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    """Set quantity for a cart line (0 removes it)"""
    return service.update_item(current_user, item_id, data.quantity)


@router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(
    item_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    return service.remove_item(current_user, item_id)


@router.delete("", response_model=CartResponse)
async def clear_cart(
    current_user: CurrentUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    return service.clear(current_user)
