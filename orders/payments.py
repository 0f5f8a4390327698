"""Thin Stripe wrapper; every call picks the key set for ``settings.STRIPE_MODE``."""
from __future__ import annotations

import stripe
from django.conf import settings


class StripeConfigError(Exception):
    pass


def stripe_mode() -> str:
    return "live" if settings.STRIPE_MODE == "live" else "test"


def _keys() -> dict:
    return settings.STRIPE_KEYS.get(stripe_mode(), {})


def secret_key() -> str:
    key = _keys().get("secret_key")
    if not key:
        raise StripeConfigError(f"[stripe] Missing secret key for mode {stripe_mode()}")
    return key


def webhook_secret() -> str:
    secret = _keys().get("webhook_secret")
    if not secret:
        raise StripeConfigError(f"[stripe] Missing webhook secret for mode {stripe_mode()}")
    return secret


def key_snapshot() -> dict:
    def mask(v):
        return f"{v[:7]}…{v[-4:]}" if v else "missing"
    keys = _keys()
    return {
        "mode": stripe_mode(),
        "secretKey": mask(keys.get("secret_key", "")),
        "publishableKey": mask(keys.get("publishable_key", "")),
        "webhookSecret": mask(keys.get("webhook_secret", "")),
    }


def _opts() -> dict:
    return {"api_key": secret_key(), "stripe_version": settings.STRIPE_API_VERSION}


def construct_event(payload: bytes, signature: str):
    """Raises ValueError (bad payload) or stripe.SignatureVerificationError."""
    return stripe.Webhook.construct_event(payload, signature, webhook_secret())


def create_checkout_session(**params):
    return stripe.checkout.Session.create(**params, **_opts())


def retrieve_session(session_id: str):
    return stripe.checkout.Session.retrieve(session_id, **_opts())


def list_line_items(session_id: str) -> list:
    page = stripe.checkout.Session.list_line_items(
        session_id, limit=100, expand=["data.price.product"], **_opts()
    )
    return list(page.get("data") or [])
