"""
MJML Email Templates
Booking and order confirmation emails, each with a plain-text counterpart.
All values interpolated into markup are HTML-escaped by the caller-facing
builders below.
"""

from datetime import datetime
from typing import Optional

from .utils.sanitization import sanitize_string

THEME = {
    "primary": "#4f46e5",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}

SIGNATURE = "— ServiceHub"


def format_money(amount: float) -> str:
    return f"${float(amount or 0):.2f}"


def parse_iso(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_date(value: str) -> str:
    """Locale-independent long date, e.g. "March 4, 2026" """
    parsed = parse_iso(value)
    if not parsed:
        return value or ""
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def format_datetime(value: str) -> str:
    parsed = parse_iso(value)
    if not parsed:
        return value or ""
    suffix = " UTC" if parsed.utcoffset() is not None and not parsed.utcoffset() else ""
    return f"{format_date(value)} {parsed:%H:%M}{suffix}"


def greeting_name(user_name: Optional[str]) -> str:
    return f" {user_name}" if user_name else ""


def get_base_template(title: str, preview_text: str, content_sections: str) -> str:
    """Base MJML template wrapper for all emails"""
    return f"""
<mjml>
  <mj-head>
    <mj-title>{title}</mj-title>
    <mj-preview>{preview_text}</mj-preview>
    <mj-attributes>
      <mj-all font-family="ui-sans-serif, system-ui, -apple-system, Segoe UI, Roboto, Arial, sans-serif" />
      <mj-text font-size="15px" line-height="1.5" color="{THEME['text_secondary']}" />
    </mj-attributes>
  </mj-head>
  <mj-body background-color="{THEME['background']}">
    <mj-section background-color="{THEME['card_bg']}" border="1px solid {THEME['border']}" border-radius="12px" padding="24px">
      <mj-column>
        {content_sections}
        <mj-text color="{THEME['text_muted']}">{SIGNATURE}</mj-text>
      </mj-column>
    </mj-section>
  </mj-body>
</mjml>
"""


# ============================================
# Booking confirmation
# ============================================


def booking_confirmation_subject() -> str:
    return "Booking confirmation"


def booking_confirmation_text(
    user_name: Optional[str],
    service_name: str,
    booking_date_iso: str,
    booking_time: str,
    duration_minutes: int,
    price: float,
) -> str:
    return f"""Hi{greeting_name(user_name)},

Your booking is confirmed:

Service: {service_name}
Date: {format_date(booking_date_iso)}
Time: {booking_time}
Duration: {duration_minutes} minutes
Price: {format_money(price)}

{SIGNATURE}"""


def booking_confirmation_template(
    user_name: Optional[str],
    service_name: str,
    booking_date_iso: str,
    booking_time: str,
    duration_minutes: int,
    price: float,
) -> str:
    rows = [
        ("Service", sanitize_string(service_name)),
        ("Date", sanitize_string(format_date(booking_date_iso))),
        ("Time", sanitize_string(booking_time)),
        ("Duration", f"{int(duration_minutes or 0)} minutes"),
        ("Price", format_money(price)),
    ]
    items = "".join(f"<li><strong>{label}:</strong> {value}</li>" for label, value in rows)

    content_sections = f"""
        <mj-text>Hi{sanitize_string(greeting_name(user_name))},</mj-text>
        <mj-text><strong>Your booking is confirmed:</strong></mj-text>
        <mj-text><ul>{items}</ul></mj-text>
    """
    return get_base_template(
        title="Booking confirmation",
        preview_text=f"Your booking for {sanitize_string(service_name)} is confirmed",
        content_sections=content_sections,
    )


# ============================================
# Order confirmation (test mode, no payment taken)
# ============================================


def order_confirmation_subject() -> str:
    return "Order confirmation (test mode)"


def order_line(item: str, purchase_type: str, quantity: int, unit_price: float) -> str:
    return f"- {item} ({purchase_type}) x{quantity} — {format_money(unit_price)} each"


def order_confirmation_text(
    user_name: Optional[str],
    purchase_date_iso: str,
    purchases: list[dict],
    subtotal: float,
    total: float,
) -> str:
    lines = "\n".join(
        order_line(p["item"], p["purchaseType"], p["quantity"], p["unitPrice"]) for p in purchases
    )
    return f"""Hi{greeting_name(user_name)},

Thanks for your order! (This is a TEST — no real payment was processed.)

Order date: {format_datetime(purchase_date_iso)}

Items:
{lines}

Subtotal: {format_money(subtotal)}
Total: {format_money(total)}

{SIGNATURE}"""


def order_confirmation_template(
    user_name: Optional[str],
    purchase_date_iso: str,
    purchases: list[dict],
    subtotal: float,
    total: float,
) -> str:
    items = "".join(
        f"<li><strong>{sanitize_string(p['item'])}</strong> ({sanitize_string(p['purchaseType'])}) "
        f"× {int(p['quantity'])} — {format_money(p['unitPrice'])} each</li>"
        for p in purchases
    )

    content_sections = f"""
        <mj-text>Hi{sanitize_string(greeting_name(user_name))},</mj-text>
        <mj-text><strong>Thanks for your order!</strong> (This is a <strong>TEST</strong> — no real payment was processed.)</mj-text>
        <mj-text><strong>Order date:</strong> {sanitize_string(format_datetime(purchase_date_iso))}</mj-text>
        <mj-text><strong>Items:</strong><ul>{items}</ul></mj-text>
        <mj-text><strong>Subtotal:</strong> {format_money(subtotal)}<br/><strong>Total:</strong> {format_money(total)}</mj-text>
    """
    return get_base_template(
        title="Order confirmation",
        preview_text="Thanks for your order",
        content_sections=content_sections,
    )
