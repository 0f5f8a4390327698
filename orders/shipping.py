"""Shippo label purchase and tracking updates for paid orders."""
from __future__ import annotations

import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Optional

import requests
from django.conf import settings

from .models import Order

logger = logging.getLogger(__name__)

DEFAULT_PARCEL = {
    "distance_unit": "in",
    "mass_unit": "oz",
    "height": "2",
    "width": "4",
    "length": "6",
    "weight": "8",
}


class ShippingError(Exception):
    def __init__(self, message, *, upstream=False, detail=None):
        super().__init__(message)
        self.upstream = upstream
        self.detail = detail


def shippo_request(path: str, payload: dict) -> dict:
    token = settings.SHIPPO_API_TOKEN
    if not token:
        raise ShippingError("Missing SHIPPO_API_TOKEN", upstream=True)
    try:
        res = requests.post(
            f"{settings.SHIPPO_API_URL}{path}",
            json=payload,
            headers={"Authorization": f"ShippoToken {token}"},
            timeout=settings.OUTBOUND_TIMEOUT * 3,
        )
    except requests.RequestException as exc:
        raise ShippingError(f"Shippo {path} failed: {exc}", upstream=True) from exc
    if not res.ok:
        raise ShippingError(f"Shippo {path} failed: {res.status_code} {res.text[:300]}", upstream=True)
    return res.json()


def address_to(order: Order) -> dict:
    snap = order.shipping_snapshot
    if not (snap["shipping_address1"] and snap["shipping_city"] and snap["shipping_postal"]):
        raise ShippingError("Order has no shipping address")
    return {
        "name": snap["shipping_name"] or "",
        "street1": snap["shipping_address1"],
        "street2": snap["shipping_address2"] or "",
        "city": snap["shipping_city"],
        "state": snap["shipping_state"] or "",
        "zip": snap["shipping_postal"],
        "country": snap["shipping_country"] or "US",
        "email": order.buyer_email or "",
        "phone": order.buyer_phone or "",
    }


def _amount(rate) -> Decimal:
    try:
        return Decimal(str(rate.get("amount")))
    except (InvalidOperation, TypeError):
        return Decimal("Infinity")


def pick_rate(rates: list[dict]) -> Optional[dict]:
    """Cheapest USPS rate, else cheapest of whatever came back."""
    usps = [r for r in rates if "USPS" in str(r.get("provider") or "").upper()]
    pool = usps or rates
    return min(pool, key=_amount) if pool else None


def create_label(order: Order, parcel: Optional[dict] = None) -> dict:
    shipment = shippo_request("/shipments/", {
        "address_from": dict(settings.SHIP_FROM),
        "address_to": address_to(order),
        "parcels": [parcel or DEFAULT_PARCEL],
        "async": False,
    })
    rate = pick_rate(shipment.get("rates") or [])
    if rate is None:
        raise ShippingError("No rates available")

    txn = shippo_request("/transactions/", {
        "rate": rate.get("object_id"),
        "label_file_type": "PDF",
        "async": False,
    })
    if txn.get("status") != "SUCCESS":
        raise ShippingError("Label purchase failed", detail=txn.get("messages"))

    servicelevel = rate.get("servicelevel") or {}
    order.shipping_label_url = txn.get("label_url")
    order.tracking_number = txn.get("tracking_number")
    order.carrier = rate.get("provider")
    order.service = servicelevel.get("name") or rate.get("servicelevel_name")
    cost = _amount(rate)
    order.label_cost_cents = int((cost * 100).to_integral_value()) if cost.is_finite() else None
    order.label_status = "purchased"
    order.save(update_fields=["shipping_label_url", "tracking_number", "carrier", "service",
                              "label_cost_cents", "label_status"])
    logger.info("label purchased for order %s: %s %s", order.pk, order.carrier, order.tracking_number)

    return {
        "ok": True,
        "label_url": order.shipping_label_url,
        "tracking": order.tracking_number,
        "rate": rate.get("amount"),
        "currency": rate.get("currency") or "USD",
    }


def apply_tracking_update(body) -> int:
    """Shippo track_updated payloads; the tracking fields may sit at the top level or under ``data``."""
    if not isinstance(body, dict):
        return 0
    data = body.get("data") if isinstance(body.get("data"), dict) else body
    tracking = data.get("tracking_number")
    if not tracking:
        return 0
    status = (data.get("tracking_status") or {}).get("status") or "in_transit"
    return (
        Order.objects
        .filter(tracking_number=tracking)
        .update(label_status=status, last_modified=int(time.time()))
    )
