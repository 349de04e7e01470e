"""Cart repository - per-user cart persistence (Redis or process memory)"""

from typing import Optional

from ...cache import Cache, cache
from ...exceptions import StorageUnavailableError
from .schemas import CartItem

CART_TTL_SECONDS = 30 * 24 * 3600


class CartRepository:
    """Repository for cart storage. The store is the only copy of a cart, so failed writes raise."""

    def __init__(self, store: Optional[Cache] = None):
        self.store = store or cache

    @staticmethod
    def _key(user_id: str) -> str:
        return f"cart:{user_id}"

    def load(self, user_id: str) -> list[CartItem]:
        raw = self.store.get(self._key(user_id), strict=True) or []
        return [CartItem(**item) for item in raw]

    def save(self, user_id: str, items: list[CartItem]) -> None:
        if not items:
            self.clear(user_id)
            return
        stored = self.store.set(
            self._key(user_id), [item.model_dump() for item in items], ttl=CART_TTL_SECONDS
        )
        if not stored:
            raise StorageUnavailableError(f"Could not save cart for {user_id}")

    def clear(self, user_id: str) -> None:
        if not self.store.delete(self._key(user_id)):
            raise StorageUnavailableError(f"Could not clear cart for {user_id}")
