"""Checkout router"""

from fastapi import APIRouter, Depends

from ...appwrite_client import AppwriteClient, get_appwrite_client
from ...auth import get_current_user
from ...schemas import CurrentUser
from .schemas import CheckoutResponse
from .service import CheckoutService

router = APIRouter(prefix="/cart", tags=["Checkout"])


def get_checkout_service(client: AppwriteClient = Depends(get_appwrite_client)) -> CheckoutService:
    """Dependency injection for CheckoutService"""
    return CheckoutService(client)


@router.post("/checkout", response_model=CheckoutResponse)
async def checkout(
    current_user: CurrentUser = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Save the cart as purchases (test mode, no payment) and email a confirmation"""
    return await service.checkout(current_user)
