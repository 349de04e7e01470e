"""Cart domain schemas - Pydantic models for validation"""

from pydantic import BaseModel, Field


class CartItem(BaseModel):
    """A catalog product with the quantity selected"""

    id: int
    name: str
    category: str
    price: float
    quantity: int = Field(1, ge=1)


class CartAddRequest(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)


class CartQuantityUpdate(BaseModel):
    quantity: int  # 0 or less removes the item


class CartResponse(BaseModel):
    items: list[CartItem]
    total_items: int
    subtotal: float
    tax: float
    total: float
