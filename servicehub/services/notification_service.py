"""
Confirmation notifications sent after a successful write.
Email failures never fail the booking/checkout that triggered them; they are
reported back as a secondary status.
"""

import logging
from typing import Awaitable, Callable

from .. import email_service
from ..exceptions import EmailDomainNotVerifiedError, EmailNotConfiguredError

logger = logging.getLogger(__name__)


async def send_notification(
    notification_type: str,
    saved_label: str,
    email_func: Callable[..., Awaitable[dict]],
    to: str,
    email_kwargs: dict,
) -> dict:
    """
    Send a confirmation email and describe the outcome.

    Returns:
        Dict with email_sent, email_status and the provider message id
    """
    result = {"email_sent": False, "email_status": None, "email_id": None}

    if not to:
        result["email_status"] = "No email address on file"
        return result

    try:
        logger.info(f"📧 Sending {notification_type} email to {to}")
        response = await email_func(to, **email_kwargs)
        result["email_sent"] = True
        result["email_id"] = response.get("id")
        result["email_status"] = "Confirmation email sent"
        logger.info(f"✅ {notification_type} email sent successfully to {to}")
    except EmailNotConfiguredError:
        logger.warning(f"Email not configured. {notification_type} email skipped")
        result["email_status"] = f"Email not configured. {saved_label} was saved successfully."
    except EmailDomainNotVerifiedError as e:
        result["email_status"] = f"{e} {saved_label} was saved successfully."
    except Exception as e:
        logger.error(f"❌ Failed to send {notification_type} email to {to}: {e}")
        result["email_status"] = str(e) or "Email failed to send"

    return result


async def notify_booking_confirmed(to: str, **fields) -> dict:
    return await send_notification(
        "booking-confirmation",
        "Booking",
        email_service.send_booking_confirmation,
        to,
        fields,
    )


async def notify_order_placed(to: str, **fields) -> dict:
    return await send_notification(
        "order-confirmation",
        "Order",
        email_service.send_order_confirmation,
        to,
        fields,
    )
