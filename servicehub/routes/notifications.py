"""
Confirmation email endpoints

Callers trigger a booking or order confirmation directly. Responses are
{ok, id} on success and {ok: false, error} otherwise; 501 means email is not
set up, which callers treat as a soft failure.
"""

import logging
from typing import Awaitable, Callable, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import email_service
from ..auth import get_current_user
from ..exceptions import EmailDomainNotVerifiedError, EmailNotConfiguredError
from ..schemas import CurrentUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notifications"])


class BookingConfirmationRequest(BaseModel):
    to: Optional[str] = None
    userName: Optional[str] = None
    serviceName: Optional[str] = None
    bookingDateIso: str = ""
    bookingTime: str = ""
    servicePrice: float = 0
    serviceDurationMinutes: int = 0


class PurchaseLine(BaseModel):
    item: str
    purchaseType: str
    quantity: int = 1
    unitPrice: float = 0


class OrderConfirmationRequest(BaseModel):
    to: Optional[str] = None
    userName: Optional[str] = None
    purchases: Optional[List[PurchaseLine]] = None
    subtotal: float = 0
    total: float = 0
    purchaseDateIso: str = ""


def error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": error})


async def dispatch(
    label: str,
    saved_label: str,
    send: Callable[..., Awaitable[dict]],
    to: str,
    fields: dict,
) -> JSONResponse:
    try:
        result = await send(to, **fields)
        return JSONResponse(content={"ok": True, "id": result.get("id")})
    except EmailNotConfiguredError:
        logger.warning(f"Email not configured. {label} email skipped")
        return error_response(501, f"Email not configured. {saved_label} was saved successfully.")
    except EmailDomainNotVerifiedError as e:
        return error_response(501, f"{e} {saved_label} was saved successfully.")
    except Exception as e:
        logger.error(f"❌ {label} email error: {e}")
        return error_response(500, str(e) or "Unknown error")


@router.post("/booking-confirmation")
async def booking_confirmation(
    data: BookingConfirmationRequest,
    current_user: CurrentUser = Depends(get_current_user),
):
    """Send a booking confirmation email"""
    if not data.to:
        return error_response(400, 'Missing "to" email')
    if not data.serviceName:
        return error_response(400, 'Missing "serviceName"')

    return await dispatch(
        "booking-confirmation",
        "Booking",
        email_service.send_booking_confirmation,
        data.to,
        {
            "user_name": data.userName,
            "service_name": data.serviceName,
            "booking_date_iso": data.bookingDateIso,
            "booking_time": data.bookingTime,
            "duration_minutes": data.serviceDurationMinutes,
            "price": data.servicePrice,
        },
    )


@router.post("/order-confirmation")
async def order_confirmation(
    data: OrderConfirmationRequest,
    current_user: CurrentUser = Depends(get_current_user),
):
    """Send an order confirmation email (test mode, no payment taken)"""
    if not data.to:
        return error_response(400, 'Missing "to" email')
    if not data.purchases:
        return error_response(400, 'Missing "purchases"')

    return await dispatch(
        "order-confirmation",
        "Order",
        email_service.send_order_confirmation,
        data.to,
        {
            "user_name": data.userName,
            "purchase_date_iso": data.purchaseDateIso,
            "purchases": [p.model_dump() for p in data.purchases],
            "subtotal": data.subtotal,
            "total": data.total,
        },
    )
