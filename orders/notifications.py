"""Best-effort transactional email. Nothing here raises; outcomes are returned."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils.html import strip_tags

from .models import Order

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    ok: bool
    error: Optional[str] = None


def format_amount(cents, currency="usd") -> str:
    if cents is None:
        return "—"
    return f"{cents / 100:.2f} {str(currency or 'usd').upper()}"


def send_html_email(to, subject: str, html: str, *, reply_to: Optional[str] = None) -> SendResult:
    if not to:
        return SendResult(ok=False, error="missing_recipient")
    msg = EmailMultiAlternatives(
        subject=subject,
        body=strip_tags(html),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[to],
        reply_to=[reply_to] if reply_to else None,
    )
    msg.attach_alternative(html, "text/html")
    try:
        sent = msg.send(fail_silently=False)
    except Exception as exc:  # SMTP, DNS, TLS ... all end up recorded on the order
        logger.warning("email to %s failed: %s", to, exc)
        return SendResult(ok=False, error=str(exc) or "send_failed")
    if not sent:
        return SendResult(ok=False, error="not_accepted")
    return SendResult(ok=True)


def _context(order: Order) -> dict:
    site = settings.SITE_URL
    return {
        "session_id": order.stripe_session_id,
        "buyer_email": order.buyer_email,
        "total": format_amount(order.amount_total, order.currency),
        "items": order.items if isinstance(order.items, list) else [],
        "shipping": order.shipping_snapshot,
        "site_url": site,
        "site_host": urlparse(site).netloc or site,
    }


def notify_seller(order: Order) -> SendResult:
    html = render_to_string("orders/email/admin_order.html", _context(order))
    return send_html_email(settings.ADMIN_EMAIL, "Fragrantique — New order received", html,
                           reply_to=order.buyer_email)


def notify_buyer(order: Order) -> SendResult:
    if not order.buyer_email:
        return SendResult(ok=False, error="missing_recipient")
    html = render_to_string("orders/email/customer_order.html", _context(order))
    return send_html_email(order.buyer_email, "Thank you for your Fragrantique order", html)


def send_contact_message(name: str, email: str, message: str) -> SendResult:
    # autoescape in the template takes care of the visitor's input
    html = render_to_string("orders/email/contact.html", {"name": name, "email": email, "message": message})
    return send_html_email(settings.CONTACT_EMAIL, "Fragrantique — New contact message", html,
                           reply_to=email)
