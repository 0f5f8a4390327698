# orders/services.py

from __future__ import annotations

import json
import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.conf import settings
from django.utils import timezone

from catalog.models import Decant
from catalog.services import as_pk, owner_profile

from . import payments
from .models import DiscountCode, Order

logger = logging.getLogger(__name__)

METADATA_VALUE_LIMIT = 500   # Stripe caps each metadata value at 500 chars
BUYER_FIELDS = ("email", "name", "phone", "address1", "address2", "city", "state", "postal", "country")


# ================== Discounts ==================

class DiscountError(Exception):
    def __init__(self, message, *, not_found=False):
        super().__init__(message)
        self.not_found = not_found


@dataclass
class Discount:
    code: str
    type: str
    value: Optional[int]

    def as_dict(self) -> dict:
        return {"code": self.code, "type": self.type, "value": self.value}


def validate_discount(code, subtotal_cents, *, now=None) -> Discount:
    """Read-only: the code must exist, be active, unexpired and reachable with this subtotal."""
    code = str(code or "").strip().upper()
    if not code:
        raise DiscountError("Missing code")
    try:
        subtotal = int(subtotal_cents)
    except (TypeError, ValueError):
        raise DiscountError("Missing or invalid subtotalCents")

    row = DiscountCode.objects.filter(code=code).first()
    if row is None:
        raise DiscountError("Invalid code", not_found=True)
    if not row.active:
        raise DiscountError("This code is not active")
    if row.expires_at and row.expires_at < (now or timezone.now()):
        raise DiscountError("This code has expired")
    if subtotal < (row.min_subtotal_cents or 0):
        raise DiscountError(f"Minimum subtotal is {row.min_subtotal_cents / 100:.2f}")
    if row.type not in (DiscountCode.PERCENT, DiscountCode.FIXED, DiscountCode.FREE_SHIPPING):
        raise DiscountError("Unsupported discount type")
    return Discount(code=row.code, type=row.type, value=row.value)


def discount_cents(discount: Optional[Discount], subtotal_cents: int) -> int:
    """Merchandise discount in cents; fixed amounts are capped at the subtotal."""
    if discount is None or discount.type == DiscountCode.FREE_SHIPPING:
        return 0
    if not discount.value or discount.value < 0:
        raise DiscountError(f"{discount.code} has no discount value")
    if discount.type == DiscountCode.PERCENT:
        pct = min(discount.value, 100)
        off = (Decimal(subtotal_cents) * pct / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return int(off)
    return min(discount.value, subtotal_cents)


def apply_discount(priced: list[dict], off: int) -> list[dict]:
    """
    Spread ``off`` cents over the merchandise lines in proportion to their
    totals. A line whose new total does not divide by its quantity is split
    in two so the charged amount stays exact.
    """
    totals = [p["unit_amount"] * p["quantity"] for p in priced]
    subtotal = sum(totals)
    if off <= 0 or not subtotal:
        return priced

    shares = [off * t // subtotal for t in totals]
    leftover = off - sum(shares)
    for i, total in enumerate(totals):
        if leftover <= 0:
            break
        bump = min(leftover, total - shares[i])
        shares[i] += bump
        leftover -= bump

    out = []
    for p, total, share in zip(priced, totals, shares):
        unit, extra = divmod(total - share, p["quantity"])
        if extra:
            out.append({**p, "quantity": p["quantity"] - extra, "unit_amount": unit})
            out.append({**p, "quantity": extra, "unit_amount": unit + 1})
        else:
            out.append({**p, "unit_amount": unit})
    return out


# ================== Checkout ==================

class CheckoutError(Exception):
    pass


def _quantity(raw) -> int:
    try:
        return max(1, int(raw if raw is not None else 1))
    except (TypeError, ValueError):
        return 1


def price_items(items) -> list[dict]:
    """
    Resolve every cart line to a priced line. Lines pointing at a decant are
    re-priced from the catalog; free-form lines must carry their own price.
    """
    if not isinstance(items, list) or not items:
        raise CheckoutError("Cart is empty.")

    wanted = defaultdict(int)
    for it in items:
        pk = as_pk(it.get("option_id")) if isinstance(it, dict) else None
        if pk:
            wanted[pk] += _quantity(it.get("quantity"))
    decants = Decant.objects.select_related("fragrance").in_bulk(list(wanted))

    priced = []
    for it in items:
        if not isinstance(it, dict):
            raise CheckoutError("Invalid cart line.")
        qty = _quantity(it.get("quantity"))
        pk = as_pk(it.get("option_id"))
        if it.get("option_id") not in (None, "") and pk is None:
            raise CheckoutError(f"Invalid option id: {it.get('option_id')}")

        if pk:
            decant = decants.get(pk)
            if decant is None:
                raise CheckoutError(f"Option {pk} no longer exists.")
            name = f"{decant.fragrance.brand} {decant.fragrance.name} ({decant.label})"
            if not decant.in_stock:
                raise CheckoutError(f"{name} is out of stock.")
            if decant.quantity is not None and decant.quantity < wanted[pk]:
                raise CheckoutError(f"Only {decant.quantity} left of {name}.")
            priced.append({
                "name": name,
                "quantity": qty,
                "unit_amount": decant.price_cents,
                "option_id": pk,
                "fragrance_id": decant.fragrance_id,
            })
            continue

        amount = it.get("unit_amount")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise CheckoutError(f"Invalid price for {it.get('name') or 'item'}.")
        priced.append({
            "name": str(it.get("name") or "Fragrance decant"),
            "quantity": qty,
            "unit_amount": amount,
            "option_id": None,
            "fragrance_id": as_pk(it.get("fragrance_id")),
        })
    return priced


def tax_cents(subtotal_cents: int) -> int:
    rate = Decimal(str(settings.SALES_TAX_RATE))
    return int((Decimal(subtotal_cents) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _line(name, unit_amount, currency, quantity=1, metadata=None) -> dict:
    product_data = {"name": name[:250]}
    if metadata:
        product_data["metadata"] = metadata
    return {
        "quantity": quantity,
        "price_data": {"currency": currency, "unit_amount": unit_amount, "product_data": product_data},
    }


def cart_snapshot(priced: list[dict], currency: str) -> Optional[str]:
    """Compact copy of the cart for the reconciler's fallback; None when it would not fit."""
    raw = json.dumps(
        [{k: v for k, v in {**p, "currency": currency}.items() if v is not None} for p in priced],
        separators=(",", ":"),
    )
    return raw if len(raw) <= METADATA_VALUE_LIMIT else None


def _same_site(url) -> bool:
    return isinstance(url, str) and url.startswith(settings.SITE_URL.rstrip("/") + "/")


def build_checkout_params(items, buyer=None, *, discount: Optional[Discount] = None,
                          success_url=None, cancel_url=None) -> dict:
    buyer = buyer if isinstance(buyer, dict) else {}
    first = items[0] if isinstance(items, list) and items and isinstance(items[0], dict) else {}
    currency = str(first.get("currency") or settings.DEFAULT_CURRENCY).lower()
    priced = price_items(items)
    subtotal = sum(p["unit_amount"] * p["quantity"] for p in priced)
    off = discount_cents(discount, subtotal)
    priced = apply_discount(priced, off)

    line_items = [
        _line(p["name"], p["unit_amount"], currency, p["quantity"],
              metadata={k: str(p[k]) for k in ("option_id", "fragrance_id") if p[k]})
        for p in priced
    ]
    if not (discount and discount.type == DiscountCode.FREE_SHIPPING):
        line_items.append(_line("Flat-rate shipping", settings.FLAT_SHIPPING_CENTS, currency))
    rate_label = f"{float(settings.SALES_TAX_RATE) * 100:g}"
    line_items.append(_line(f"Sales tax ({rate_label}%)", tax_cents(subtotal), currency))

    seller = owner_profile()
    metadata = {"seller_profile_id": str(seller.pk) if seller else ""}
    for key in BUYER_FIELDS:
        value = buyer.get(key)
        if value:
            metadata[f"buyer_{key}"] = str(value)[:METADATA_VALUE_LIMIT]
    if discount:
        metadata["discount_code"] = discount.code
        if off:
            metadata["discount_cents"] = str(off)
    snapshot = cart_snapshot(priced, currency)
    if snapshot:
        metadata["cart"] = snapshot

    site = settings.SITE_URL.rstrip("/")
    params = {
        "mode": "payment",
        "line_items": line_items,
        "shipping_address_collection": {"allowed_countries": list(settings.ALLOWED_SHIP_COUNTRIES)},
        "success_url": success_url if _same_site(success_url)
        else f"{site}/thank-you?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": cancel_url if _same_site(cancel_url) else f"{site}/cart",
        "metadata": metadata,
    }
    if buyer.get("email"):
        params["customer_email"] = str(buyer["email"])
    return params


def start_checkout(items, buyer=None, *, discount_code=None, success_url=None, cancel_url=None):
    """Returns the created Checkout Session; CheckoutError/DiscountError for bad input."""
    discount = None
    if discount_code:
        priced = price_items(items)
        discount = validate_discount(discount_code, sum(p["unit_amount"] * p["quantity"] for p in priced))

    params = build_checkout_params(items, buyer, discount=discount,
                                   success_url=success_url, cancel_url=cancel_url)
    session = payments.create_checkout_session(**params)
    logger.info("checkout session %s created (%d lines, discount=%s)",
                session["id"], len(params["line_items"]), discount.code if discount else None)
    return session


# ================== Admin order management ==================

def set_fulfilled(order_id, fulfilled: bool) -> int:
    return Order.objects.filter(pk=as_pk(order_id)).update(fulfilled=bool(fulfilled), last_modified=int(time.time()))


def set_comment(order_id, comment) -> int:
    return Order.objects.filter(pk=as_pk(order_id)).update(comment=str(comment or ""), last_modified=int(time.time()))
