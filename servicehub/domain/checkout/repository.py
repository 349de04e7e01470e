"""Purchase repository - item-detail and purchase documents, one per unit"""

import logging
from typing import Optional

from ...appwrite_client import AppwriteClient, AppwriteException, permissions_for_user
from ...config import DatabaseConfig
from ...exceptions import ConfigurationError
from ...schema_tolerance import create_dropping_rejected, is_item_id_range_error
from ...utils.sanitization import truncate
from ..cart.schemas import CartItem

logger = logging.getLogger(__name__)

ITEM_ID_RANGE_HELP = (
    "Items.itemID is restricted by your Appwrite schema (e.g. 3–5), but your product IDs "
    "don't fit that range. Update sh-items → Attributes → itemID to allow your product IDs "
    "(e.g. 1–6), then retry checkout."
)


def _present(**fields) -> dict:
    return {key: value for key, value in fields.items() if value}


def item_document_fields(
    cart_item: CartItem,
    purchase_date_iso: str,
    user_id: Optional[str],
    user_email: Optional[str],
) -> tuple[dict, dict]:
    """Required and optional item-detail attributes"""
    required = {
        "itemName": truncate(cart_item.name, 100),
        "itemID": cart_item.id,
        "itemType": truncate(cart_item.category, 100),
    }
    optional = _present(userEmail=user_email, userId=user_id, purchaseDate=purchase_date_iso)
    return required, optional


def purchase_document_fields(
    cart_item: CartItem,
    purchase_date_iso: str,
    user_id: Optional[str],
    user_email: Optional[str],
) -> tuple[dict, dict]:
    """Required and optional purchase attributes"""
    required = {
        "purchaseDate": purchase_date_iso,
        "purchaseType": truncate(cart_item.category, 50),
        "item": truncate(cart_item.name, 50),
    }
    return required, _present(userEmail=user_email, userId=user_id)


class PurchaseRepository:
    """Repository for the purchases and items collections"""

    def __init__(self, client: AppwriteClient, db: DatabaseConfig):
        self.client = client
        self.db = db

    async def create_item_document(
        self,
        cart_item: CartItem,
        purchase_date_iso: str,
        user_id: Optional[str] = None,
        user_email: Optional[str] = None,
    ) -> dict:
        required, optional = item_document_fields(cart_item, purchase_date_iso, user_id, user_email)
        try:
            document, _ = await create_dropping_rejected(
                self.client,
                self.db.database_id,
                self.db.items_collection_id,
                required,
                optional,
                permissions=permissions_for_user(user_id),
            )
            return document
        except AppwriteException as e:
            # No payload shape can fix a range constraint on itemID
            if is_item_id_range_error(e):
                raise ConfigurationError(ITEM_ID_RANGE_HELP) from e
            raise

    async def create_purchase_document(
        self,
        cart_item: CartItem,
        purchase_date_iso: str,
        user_id: Optional[str] = None,
        user_email: Optional[str] = None,
    ) -> dict:
        required, optional = purchase_document_fields(cart_item, purchase_date_iso, user_id, user_email)
        document, _ = await create_dropping_rejected(
            self.client,
            self.db.database_id,
            self.db.purchases_collection_id,
            required,
            optional,
            permissions=permissions_for_user(user_id),
        )
        return document
