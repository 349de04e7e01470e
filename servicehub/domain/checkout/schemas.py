"""Checkout domain schemas"""

from typing import Optional

from pydantic import BaseModel


class CheckoutResult(BaseModel):
    purchase_date_iso: str
    saved_count: int


class CheckoutResponse(BaseModel):
    success: bool = True
    message: str
    purchase_date_iso: str
    saved_count: int
    subtotal: float
    total: float
    email_sent: bool
    email_status: Optional[str] = None
