"""Plain-dict stand-ins for Stripe objects (StripeObject is dict-like)."""


def make_session(session_id="cs_test_123", **overrides):
    session = {
        "id": session_id,
        "object": "checkout.session",
        "payment_status": "paid",
        "status": "complete",
        "amount_total": 3710,
        "currency": "usd",
        "payment_intent": "pi_test_123",
        "customer_details": {
            "email": "buyer@example.com",
            "name": "Ada Buyer",
            "phone": "+15550001111",
            "address": {"line1": "1 Billing Rd", "city": "Tucson", "state": "AZ",
                        "postal_code": "85701", "country": "US"},
        },
        "shipping_details": {
            "name": "Ada Shipto",
            "address": {"line1": "9 Ship St", "line2": "Apt 2", "city": "Phoenix", "state": "AZ",
                        "postal_code": "85001", "country": "US"},
        },
        "metadata": {},
    }
    session.update(overrides)
    return session


def line_item(option, quantity, *, unit_amount=None, name="Baccarat Rouge 540 (2mL)"):
    return {
        "description": name,
        "quantity": quantity,
        "currency": "usd",
        "price": {
            "unit_amount": unit_amount if unit_amount is not None else option.price_cents,
            "product": {"name": name, "metadata": {"option_id": str(option.pk),
                                                   "fragrance_id": str(option.fragrance_id)}},
        },
    }
