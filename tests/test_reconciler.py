import json
from smtplib import SMTPException
from unittest import mock

import pytest
import stripe

from orders.models import Order
from orders.reconciler import (
    SessionNotReady,
    buyer_fields,
    ensure_order,
    handle_event,
    reconcile_session,
)
from tests.stripe_payloads import line_item, make_session

pytestmark = pytest.mark.django_db


@pytest.fixture
def line_items():
    with mock.patch("orders.payments.list_line_items") as m:
        yield m


def test_first_delivery_creates_paid_order_and_decrements(owner, option_a, line_items, mailoutbox):
    line_items.return_value = [line_item(option_a, 2)]
    session = make_session(metadata={"seller_profile_id": str(owner.pk)})

    result = reconcile_session(session)

    assert result.created is True
    assert result.inventory_applied is True
    order = Order.objects.get(stripe_session_id="cs_test_123")
    assert order.status == Order.PAID
    assert order.amount_total == 3710
    assert order.seller == owner
    assert order.items[0]["option_id"] == str(option_a.pk)
    assert order.items[0]["quantity"] == 2
    option_a.refresh_from_db()
    assert option_a.quantity == 3

    assert len(mailoutbox) == 2
    assert {m.to[0] for m in mailoutbox} == {"owner@fragrantique.test", "buyer@example.com"}
    assert order.email_sent and order.customer_email_sent


def test_duplicate_delivery_is_a_no_op(owner, option_a, line_items, mailoutbox):
    line_items.return_value = [line_item(option_a, 2)]
    session = make_session()

    reconcile_session(session)
    again = reconcile_session(session)

    assert again.created is False
    assert again.inventory_applied is False
    assert Order.objects.filter(stripe_session_id="cs_test_123").count() == 1
    option_a.refresh_from_db()
    assert option_a.quantity == 3
    assert len(mailoutbox) == 2


def test_unpaid_then_paid_decrements_once(option_a, line_items):
    line_items.return_value = [line_item(option_a, 1)]

    first = reconcile_session(make_session(payment_status="unpaid"))
    option_a.refresh_from_db()
    assert first.order.status == "unpaid"
    assert option_a.quantity == 5

    reconcile_session(make_session(payment_status="paid"))
    reconcile_session(make_session(payment_status="paid"))
    option_a.refresh_from_db()
    assert option_a.quantity == 4
    assert Order.objects.get().inventory_applied is True


def test_paid_status_never_regresses(option_a, line_items):
    line_items.return_value = [line_item(option_a, 1)]
    reconcile_session(make_session(payment_status="paid"))
    reconcile_session(make_session(payment_status="unpaid"))
    assert Order.objects.get().status == Order.PAID


def test_out_of_stock_option_is_not_touched(option_b, line_items):
    line_items.return_value = [line_item(option_b, 2)]
    reconcile_session(make_session())
    option_b.refresh_from_db()
    assert option_b.quantity == 3


def test_unlimited_option_is_not_touched(option_c, line_items):
    line_items.return_value = [line_item(option_c, 40)]
    reconcile_session(make_session())
    option_c.refresh_from_db()
    assert option_c.quantity is None


def test_stock_floors_at_zero(option_a, line_items):
    line_items.return_value = [line_item(option_a, 9)]
    reconcile_session(make_session())
    option_a.refresh_from_db()
    assert option_a.quantity == 0


def test_falls_back_to_metadata_cart_when_line_items_fail(option_a, line_items):
    line_items.side_effect = stripe.APIConnectionError("stripe unreachable")
    cart = json.dumps([{"name": "BR540 2mL", "quantity": 2, "unit_amount": 1500,
                        "currency": "usd", "option_id": option_a.pk}])

    result = reconcile_session(make_session(metadata={"cart": cart}))

    assert result.order.items[0]["name"] == "BR540 2mL"
    option_a.refresh_from_db()
    assert option_a.quantity == 3


def test_email_failure_is_recorded_not_raised(option_a, line_items):
    line_items.return_value = [line_item(option_a, 1)]
    with mock.patch("orders.notifications.EmailMultiAlternatives.send",
                    side_effect=SMTPException("relay refused")):
        result = reconcile_session(make_session())

    assert result.email_ok is False
    assert "relay refused" in result.email_error
    order = Order.objects.get()
    assert order.email_sent is False
    assert "relay refused" in order.email_error
    assert order.customer_email_sent is False


def test_buyer_fields_prefer_shipping_address_then_metadata():
    session = make_session(metadata={"buyer_phone": "+1999", "buyer_address1": "meta st"})
    session["customer_details"]["phone"] = None
    fields = buyer_fields(session)

    assert fields["buyer_email"] == "buyer@example.com"
    assert fields["buyer_name"] == "Ada Buyer"
    assert fields["buyer_phone"] == "+1999"
    assert fields["shipping_name"] == "Ada Shipto"
    assert fields["shipping_address1"] == "9 Ship St"
    assert fields["shipping_postal"] == "85001"

    bare = make_session(shipping_details=None, customer_details={"email": "x@example.com"},
                        metadata={"buyer_address1": "meta st", "buyer_city": "Mesa"})
    fields = buyer_fields(bare)
    assert fields["shipping_address1"] == "meta st"
    assert fields["shipping_city"] == "Mesa"


def test_collected_information_shipping_details_are_read():
    session = make_session(shipping_details=None, collected_information={
        "shipping_details": {"name": "New API", "address": {"line1": "5 New Way", "city": "Reno",
                                                            "postal_code": "89501", "country": "US"}},
    })
    fields = buyer_fields(session)
    assert fields["shipping_name"] == "New API"
    assert fields["shipping_address1"] == "5 New Way"


# ============ ensure ============

def test_ensure_returns_existing_without_calling_stripe(option_a, line_items):
    line_items.return_value = [line_item(option_a, 1)]
    reconcile_session(make_session())

    with mock.patch("orders.payments.retrieve_session") as retrieve:
        order, state, result = ensure_order("cs_test_123")

    retrieve.assert_not_called()
    assert state == "exists"
    assert result is None
    assert order.stripe_session_id == "cs_test_123"


def test_ensure_then_webhook_decrements_once(option_a, line_items, mailoutbox):
    line_items.return_value = [line_item(option_a, 2)]
    with mock.patch("orders.payments.retrieve_session", return_value=make_session()):
        _, state, result = ensure_order("cs_test_123")
    assert state == "created"
    assert result.email_ok is True

    handle_event({"type": "checkout.session.completed", "data": {"object": make_session()}})

    option_a.refresh_from_db()
    assert option_a.quantity == 3
    assert Order.objects.count() == 1
    assert len(mailoutbox) == 2


def test_ensure_reports_not_ready_when_session_unavailable(db):
    with mock.patch("orders.payments.retrieve_session",
                    side_effect=stripe.InvalidRequestError("No such checkout.session", "id")):
        with pytest.raises(SessionNotReady):
            ensure_order("cs_missing")
    assert not Order.objects.exists()


def test_unhandled_event_types_are_ignored(db):
    assert handle_event({"type": "payment_intent.created", "data": {"object": {}}}) is None
    assert not Order.objects.exists()
