"""Cart service - cart manipulation, no backend calls until checkout"""

import logging

from fastapi import HTTPException

from ... import catalog, config
from ...catalog import Product
from ...schemas import CurrentUser
from .repository import CartRepository
from .schemas import CartItem, CartResponse

logger = logging.getLogger(__name__)


def add_to_cart(items: list[CartItem], product: Product, quantity: int = 1) -> list[CartItem]:
    """Add a product, merging with an existing line for the same product"""
    updated = [item.model_copy() for item in items]
    for item in updated:
        if item.id == product.id:
            item.quantity += quantity
            return updated
    updated.append(
        CartItem(
            id=product.id,
            name=product.name,
            category=product.category,
            price=product.price,
            quantity=quantity,
        )
    )
    return updated


def update_quantity(items: list[CartItem], item_id: int, quantity: int) -> list[CartItem]:
    if quantity < 1:
        return remove_from_cart(items, item_id)
    return [
        item.model_copy(update={"quantity": quantity}) if item.id == item_id else item
        for item in items
    ]


def remove_from_cart(items: list[CartItem], item_id: int) -> list[CartItem]:
    return [item for item in items if item.id != item_id]


def total_items(items: list[CartItem]) -> int:
    return sum(item.quantity for item in items)


def total_price(items: list[CartItem]) -> float:
    return round(sum(item.price * item.quantity for item in items), 2)


def summarize(items: list[CartItem]) -> CartResponse:
    subtotal = total_price(items)
    tax = round(subtotal * config.TAX_RATE, 2)
    return CartResponse(
        items=items,
        total_items=total_items(items),
        subtotal=subtotal,
        tax=tax,
        total=round(subtotal + tax, 2),
    )


class CartService:
    """Service layer for cart operations"""

    def __init__(self, repo: CartRepository):
        self.repo = repo

    def get_items(self, user: CurrentUser) -> list[CartItem]:
        return self.repo.load(user.id)

    def get_cart(self, user: CurrentUser) -> CartResponse:
        return summarize(self.get_items(user))

    def add_item(self, user: CurrentUser, product_id: int, quantity: int = 1) -> CartResponse:
        product = catalog.get_product(product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")

        items = add_to_cart(self.get_items(user), product, quantity)
        self.repo.save(user.id, items)
        logger.debug(f"🛒 Added {quantity} x {product.name} to cart for {user.id}")
        return summarize(items)

    def update_item(self, user: CurrentUser, item_id: int, quantity: int) -> CartResponse:
        items = self.get_items(user)
        if not any(item.id == item_id for item in items):
            raise HTTPException(status_code=404, detail="Item not in cart")

        items = update_quantity(items, item_id, quantity)
        self.repo.save(user.id, items)
        return summarize(items)

    def remove_item(self, user: CurrentUser, item_id: int) -> CartResponse:
        items = remove_from_cart(self.get_items(user), item_id)
        self.repo.save(user.id, items)
        return summarize(items)

    def clear(self, user: CurrentUser) -> CartResponse:
        self.repo.clear(user.id)
        return summarize([])
