"""
Order reconciliation: turn a completed Checkout Session into exactly one
``Order`` row, apply its stock decrements once, and notify seller and buyer.

Reached from two directions that may race or repeat:
  - the Stripe webhook (``checkout.session.completed`` and friends)
  - the client's post-redirect "ensure" poll

The order row is keyed by the session id (get-or-create under a row lock);
stock is only touched by whichever caller flips ``inventory_applied`` from
false to true on a paid order, and emails only go out from the call that
created the row.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Optional

import stripe
from django.conf import settings
from django.db import DatabaseError, transaction

from catalog.models import Profile
from catalog.services import as_pk, decrement_stock, owner_profile

from . import payments
from .models import Order
from .notifications import notify_buyer, notify_seller

logger = logging.getLogger(__name__)

HANDLED_EVENTS = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
}


class ReconcileError(Exception):
    pass


class SessionNotReady(ReconcileError):
    """The processor could not hand us the session (yet); the poller should retry."""


@dataclass
class ReconcileResult:
    order: Order
    created: bool
    inventory_applied: bool = False
    email_ok: Optional[bool] = None
    email_error: Optional[str] = None
    customer_email_ok: Optional[bool] = None
    customer_email_error: Optional[str] = None


def _get(obj, *path, default=None):
    cur = obj
    for key in path:
        if cur is None or isinstance(cur, str):
            return default
        if hasattr(cur, "get"):
            cur = cur.get(key)
        else:
            cur = getattr(cur, key, None)
    return default if cur is None else cur


def _first(*values):
    for v in values:
        if v not in (None, ""):
            return v
    return None


def _as_int(value, default=0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


# ================== Line items ==================

def _processor_line_items(session) -> list[dict]:
    items = []
    for x in payments.list_line_items(_get(session, "id")):
        price = _get(x, "price") or {}
        product = _get(price, "product")
        meta = _get(product, "metadata") or _get(price, "metadata") or {}
        items.append({
            "name": _first(_get(x, "description"), _get(product, "name"),
                           product if isinstance(product, str) else None) or "Item",
            "quantity": _as_int(_get(x, "quantity"), 1) or 1,
            "unit_amount": _get(price, "unit_amount"),
            "currency": _first(_get(x, "currency"), _get(session, "currency")),
            "option_id": _get(meta, "option_id"),
            "fragrance_id": _get(meta, "fragrance_id"),
        })
    return items


def _metadata_line_items(session) -> list[dict]:
    raw = _get(session, "metadata", "cart")
    if not raw:
        return []
    try:
        rows = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("unparseable cart metadata on session %s", _get(session, "id"))
        return []
    if not isinstance(rows, list):
        return []
    return [
        {
            "name": r.get("name") or "Item",
            "quantity": _as_int(r.get("quantity"), 1) or 1,
            "unit_amount": r.get("unit_amount"),
            "currency": r.get("currency") or _get(session, "currency"),
            "option_id": r.get("option_id"),
            "fragrance_id": r.get("fragrance_id"),
        }
        for r in rows if isinstance(r, dict)
    ]


def canonical_line_items(session) -> list[dict]:
    """Processor line items when retrievable, else the cart snapshot from checkout metadata."""
    try:
        items = _processor_line_items(session)
    except (stripe.StripeError, payments.StripeConfigError) as exc:
        logger.warning("line items unavailable for %s, using metadata cart: %s", _get(session, "id"), exc)
        items = []
    return items or _metadata_line_items(session)


# ================== Buyer / shipping ==================

def buyer_fields(session) -> dict:
    details = _get(session, "customer_details") or {}
    ship = _first(_get(session, "shipping_details"),
                  _get(session, "collected_information", "shipping_details")) or {}
    meta = _get(session, "metadata") or {}
    ship_addr = _get(ship, "address") or {}
    cust_addr = _get(details, "address") or {}

    def addr(key, meta_key):
        return _first(_get(ship_addr, key), _get(cust_addr, key), _get(meta, meta_key))

    return {
        "buyer_email": _first(_get(details, "email"), _get(session, "customer_email"), _get(meta, "buyer_email")),
        "buyer_name": _first(_get(details, "name"), _get(ship, "name"), _get(meta, "buyer_name")),
        "buyer_phone": _first(_get(details, "phone"), _get(ship, "phone"), _get(meta, "buyer_phone")),
        "shipping_name": _first(_get(ship, "name"), _get(details, "name"), _get(meta, "buyer_name")),
        "shipping_address1": addr("line1", "buyer_address1"),
        "shipping_address2": addr("line2", "buyer_address2"),
        "shipping_city": addr("city", "buyer_city"),
        "shipping_state": addr("state", "buyer_state"),
        "shipping_postal": addr("postal_code", "buyer_postal"),
        "shipping_country": addr("country", "buyer_country"),
    }


def session_status(session) -> str:
    payment_status = _get(session, "payment_status")
    if payment_status in ("paid", "no_payment_required"):
        return Order.PAID
    return payment_status or Order.PENDING


def _seller(session) -> Optional[Profile]:
    pk = as_pk(_get(session, "metadata", "seller_profile_id"))
    seller = Profile.objects.filter(pk=pk).first() if pk else None
    return seller or owner_profile()


def _payment_intent(session) -> Optional[str]:
    pi = _get(session, "payment_intent")
    if pi is None or isinstance(pi, str):
        return pi
    return _get(pi, "id")


# ================== Reconcile ==================

def _merge(order: Order, payload: dict) -> None:
    """Re-delivery: refresh from the processor without regressing a paid order."""
    fields = []
    for name, value in payload.items():
        if name == "status":
            continue
        if value in (None, "", []):
            continue
        if getattr(order, name) != value:
            setattr(order, name, value)
            fields.append(name)
    if order.status != Order.PAID and payload["status"] != order.status:
        order.status = payload["status"]
        fields.append("status")
    if fields:
        order.save(update_fields=fields)


def _apply_inventory(order: Order) -> bool:
    if order.status != Order.PAID or order.inventory_applied:
        return False
    claimed = (
        Order.objects
        .filter(pk=order.pk, status=Order.PAID, inventory_applied=False)
        .update(inventory_applied=True)
    )
    if not claimed:
        return False
    order.inventory_applied = True
    for item in order.items or []:
        option_id = item.get("option_id") if isinstance(item, dict) else None
        qty = _as_int(item.get("quantity")) if isinstance(item, dict) else 0
        if option_id and qty > 0:
            decrement_stock(option_id, qty)
    return True


def _notify(order: Order, result: ReconcileResult) -> None:
    seller = notify_seller(order)
    buyer = notify_buyer(order) if order.buyer_email else None

    changes = {"email_sent": seller.ok, "email_error": None if seller.ok else seller.error}
    if buyer is not None:
        changes["customer_email_sent"] = buyer.ok
        changes["customer_email_error"] = None if buyer.ok else buyer.error
    Order.objects.filter(pk=order.pk).update(**changes)
    for name, value in changes.items():
        setattr(order, name, value)

    result.email_ok, result.email_error = seller.ok, changes["email_error"]
    if buyer is not None:
        result.customer_email_ok = buyer.ok
        result.customer_email_error = changes["customer_email_error"]


def reconcile_session(session) -> ReconcileResult:
    session_id = _get(session, "id")
    if not session_id:
        raise ReconcileError("checkout session has no id")

    payload = {
        "stripe_payment_intent": _payment_intent(session),
        "amount_total": _get(session, "amount_total"),
        "currency": str(_get(session, "currency") or settings.DEFAULT_CURRENCY).lower(),
        "items": canonical_line_items(session),
        "status": session_status(session),
        "seller": _seller(session),
        "discount_code": _get(session, "metadata", "discount_code"),
        **buyer_fields(session),
    }

    try:
        with transaction.atomic():
            order, created = (
                Order.objects
                .select_for_update()
                .get_or_create(stripe_session_id=session_id, defaults=payload)
            )
            if not created:
                _merge(order, payload)
            applied = _apply_inventory(order)
    except DatabaseError as exc:
        logger.error("order upsert failed for %s: %s", session_id, exc)
        raise ReconcileError(f"could not store order for {session_id}: {exc}") from exc

    result = ReconcileResult(order=order, created=created, inventory_applied=applied)
    if created:
        _notify(order, result)
    logger.info("reconciled %s (created=%s, status=%s, inventory_applied=%s)",
                session_id, created, order.status, applied)
    return result


def ensure_order(session_id: str) -> tuple[Order, str, Optional[ReconcileResult]]:
    """Return the order for ``session_id``, reconciling synchronously if the webhook has not landed."""
    existing = Order.objects.filter(stripe_session_id=session_id).first()
    if existing:
        return existing, "exists", None
    try:
        session = payments.retrieve_session(session_id)
    except (stripe.StripeError, payments.StripeConfigError) as exc:
        raise SessionNotReady(str(exc)) from exc
    result = reconcile_session(session)
    return result.order, ("created" if result.created else "exists"), result


def handle_event(event) -> Optional[ReconcileResult]:
    """None for event types we acknowledge but do not act on."""
    if _get(event, "type") not in HANDLED_EVENTS:
        return None
    return reconcile_session(_get(event, "data", "object"))
