"""
Email Service using Resend (primary) or an SMTP relay (fallback)
Renders booking/order confirmations as text + MJML-compiled HTML
"""

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Optional

import resend
from mjml import mjml_to_html

from . import config
from .email_templates import (
    booking_confirmation_subject,
    booking_confirmation_template,
    booking_confirmation_text,
    order_confirmation_subject,
    order_confirmation_template,
    order_confirmation_text,
)
from .exceptions import EmailDomainNotVerifiedError, EmailNotConfiguredError

logger = logging.getLogger(__name__)

DOMAIN_NOT_VERIFIED_HINT = (
    "Email domain not verified. Use onboarding@resend.dev for testing or verify your domain."
)


@dataclass(frozen=True)
class EmailContent:
    subject: str
    text: str
    html: str


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict-like with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


def is_domain_not_verified_error(err: Exception) -> bool:
    msg = str(err).lower()
    return "domain is not verified" in msg or "not verified" in msg


def send_via_smtp(smtp: config.SMTPConfig, to: str, content: EmailContent) -> dict:
    """Send email through the configured SMTP relay"""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = content.subject
    msg["From"] = smtp.from_address
    msg["To"] = to
    message_id = make_msgid(domain=smtp.host)
    msg["Message-ID"] = message_id

    msg.attach(MIMEText(content.text, "plain"))
    msg.attach(MIMEText(content.html, "html"))

    if smtp.secure:
        context = ssl.create_default_context()
        server = smtplib.SMTP_SSL(smtp.host, smtp.port, context=context, timeout=30)
    else:
        server = smtplib.SMTP(smtp.host, smtp.port, timeout=30)

    try:
        if not smtp.secure and smtp.use_tls:
            server.ehlo()
            # Upgrade only when the relay offers it
            if server.has_extn("starttls"):
                server.starttls(context=ssl.create_default_context())
                server.ehlo()
        server.login(smtp.username, smtp.password)
        server.sendmail(smtp.from_address.split("<")[-1].rstrip(">"), [to], msg.as_string())
    finally:
        server.quit()

    logger.info(f"✅ SMTP email sent successfully via {smtp.host}")
    return {"id": message_id}


def send_via_resend(api_key: str, to: str, content: EmailContent) -> dict:
    resend.api_key = api_key
    response = resend.Emails.send(
        {
            "from": config.EMAIL_FROM_ADDRESS,
            "to": [to],
            "subject": content.subject,
            "text": content.text,
            "html": content.html,
        }
    )
    logger.info(f"✅ Email sent successfully via Resend: {response}")
    return {"id": response.get("id") if isinstance(response, dict) else getattr(response, "id", None)}


async def send_email(to: str, content: EmailContent) -> dict:
    """
    Send an email via Resend, falling back to SMTP when the Resend sender
    domain is unverified.

    Raises:
        EmailNotConfiguredError: neither provider is configured
        EmailDomainNotVerifiedError: Resend rejected the sender domain and
            no SMTP relay is configured
    """
    api_key = config.get_resend_api_key()
    smtp = config.get_smtp_config()

    if api_key:
        try:
            logger.info(f"📧 Sending email via Resend to: {to}")
            return send_via_resend(api_key, to, content)
        except Exception as e:
            if not is_domain_not_verified_error(e):
                logger.error(f"❌ Email send error to {to}: {e}")
                raise
            if not smtp:
                logger.warning(f"⚠️ Resend domain not verified: {e}")
                raise EmailDomainNotVerifiedError(DOMAIN_NOT_VERIFIED_HINT) from e
            logger.warning(f"⚠️ Resend domain not verified, falling back to SMTP: {e}")

    if smtp:
        logger.info(f"📧 Sending email via SMTP: {smtp.host}")
        return send_via_smtp(smtp, to, content)

    logger.error("❌ No email service configured - RESEND_API_KEY and SMTP_* missing")
    raise EmailNotConfiguredError("Email not configured")


# ============================================
# Rendered confirmations
# ============================================


def render_booking_confirmation(
    user_name: Optional[str],
    service_name: str,
    booking_date_iso: str,
    booking_time: str,
    duration_minutes: int,
    price: float,
) -> EmailContent:
    args = (user_name, service_name, booking_date_iso, booking_time, duration_minutes, price)
    return EmailContent(
        subject=booking_confirmation_subject(),
        text=booking_confirmation_text(*args),
        html=compile_mjml_to_html(booking_confirmation_template(*args)),
    )


def render_order_confirmation(
    user_name: Optional[str],
    purchase_date_iso: str,
    purchases: list[dict],
    subtotal: float,
    total: float,
) -> EmailContent:
    args = (user_name, purchase_date_iso, purchases, subtotal, total)
    return EmailContent(
        subject=order_confirmation_subject(),
        text=order_confirmation_text(*args),
        html=compile_mjml_to_html(order_confirmation_template(*args)),
    )


async def send_booking_confirmation(to: str, **fields) -> dict:
    """Send booking confirmation email to the customer"""
    return await send_email(to, render_booking_confirmation(**fields))


async def send_order_confirmation(to: str, **fields) -> dict:
    """Send order confirmation email to the customer"""
    return await send_email(to, render_order_confirmation(**fields))
