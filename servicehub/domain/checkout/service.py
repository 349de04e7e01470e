"""Checkout service - converts a cart into remote purchase records"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException

from ... import config
from ...appwrite_client import AppwriteClient
from ...exceptions import StorageUnavailableError
from ...schemas import CurrentUser
from ...services.notification_service import notify_order_placed
from ..account.repository import UserRepository
from ..cart.repository import CartRepository
from ..cart.schemas import CartItem
from ..cart.service import summarize
from .repository import PurchaseRepository
from .schemas import CheckoutResponse, CheckoutResult

logger = logging.getLogger(__name__)


def purchase_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix"""
    now = datetime.now(timezone.utc)
    return f"{now:%Y-%m-%dT%H:%M:%S}.{now.microsecond // 1000:03d}Z"


class CheckoutService:
    """Service layer for checkout"""

    def __init__(self, client: AppwriteClient, cart_repo: Optional[CartRepository] = None):
        self.client = client
        self.cart_repo = cart_repo or CartRepository()

    async def checkout_items(
        self,
        items: list[CartItem],
        user_id: Optional[str] = None,
        user_email: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> CheckoutResult:
        """
        Write one item-detail and one purchase document per purchased unit.

        The purchases schema has no quantity column, so quantities are
        expanded into repeated single-unit writes sharing one timestamp.
        Writes are sequential; a failure aborts the checkout without rolling
        back documents already created.
        """
        db = config.get_database_config()
        purchase_date_iso = purchase_timestamp()

        try:
            await UserRepository(self.client, db).ensure_user_document(user_id, user_email, user_name)
        except Exception as e:
            logger.warning(f"⚠️ Could not mirror user {user_id} before checkout: {e}")

        repo = PurchaseRepository(self.client, db)
        saved = 0
        for cart_item in items:
            for _ in range(max(1, cart_item.quantity or 1)):
                await repo.create_item_document(cart_item, purchase_date_iso, user_id, user_email)
                await repo.create_purchase_document(cart_item, purchase_date_iso, user_id, user_email)
                saved += 1

        logger.info(f"✅ Saved {saved} purchase(s) for {user_email or user_id} at {purchase_date_iso}")
        return CheckoutResult(purchase_date_iso=purchase_date_iso, saved_count=saved)

    async def checkout(self, user: CurrentUser) -> CheckoutResponse:
        """Check out the user's cart, clear it and send an order confirmation"""
        items = self.cart_repo.load(user.id)
        if not items:
            raise HTTPException(status_code=400, detail="Your cart is empty")

        totals = summarize(items)
        result = await self.checkout_items(items, user.id, user.email, user.name)
        try:
            self.cart_repo.clear(user.id)
        except StorageUnavailableError as e:
            # Purchases are already saved at this point
            logger.warning(f"⚠️ Could not clear cart after checkout for {user.id}: {e}")

        notification = await notify_order_placed(
            user.email,
            user_name=user.name,
            purchase_date_iso=result.purchase_date_iso,
            purchases=[
                {
                    "item": item.name,
                    "purchaseType": item.category,
                    "quantity": max(1, item.quantity),
                    "unitPrice": item.price,
                }
                for item in items
            ],
            subtotal=totals.subtotal,
            total=totals.total,
        )

        plural = "" if result.saved_count == 1 else "s"
        return CheckoutResponse(
            message=f"Saved {result.saved_count} purchase{plural}",
            purchase_date_iso=result.purchase_date_iso,
            saved_count=result.saved_count,
            subtotal=totals.subtotal,
            total=totals.total,
            email_sent=notification["email_sent"],
            email_status=notification["email_status"],
        )
