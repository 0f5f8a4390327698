from unittest import mock

import pytest
import stripe

from orders.models import Order
from tests.stripe_payloads import line_item, make_session

pytestmark = pytest.mark.django_db

ENSURE_URL = "/api/orders/ensure"


def test_missing_session_id(api_client):
    res = api_client.post(ENSURE_URL, {}, format="json")
    assert res.status_code == 400


def test_creates_order_when_webhook_has_not_landed(api_client, option_a, mailoutbox):
    with mock.patch("orders.payments.retrieve_session", return_value=make_session()), \
            mock.patch("orders.payments.list_line_items", return_value=[line_item(option_a, 2)]):
        res = api_client.post(ENSURE_URL, {"session_id": "cs_test_123"}, format="json")

    body = res.json()
    assert res.status_code == 200
    assert body["status"] == "created"
    assert body["emailOk"] is True
    assert body["order"]["status"] == "paid"
    option_a.refresh_from_db()
    assert option_a.quantity == 3


def test_existing_order_is_returned(api_client):
    Order.objects.create(stripe_session_id="cs_done", status=Order.PAID, amount_total=1200)
    res = api_client.post(ENSURE_URL, {"session_id": "cs_done"}, format="json")
    assert res.status_code == 200
    assert res.json()["status"] == "exists"
    assert "emailOk" not in res.json()


def test_unretrievable_session_asks_client_to_retry(api_client):
    with mock.patch("orders.payments.retrieve_session",
                    side_effect=stripe.APIConnectionError("timeout")):
        res = api_client.post(ENSURE_URL, {"session_id": "cs_later"}, format="json")
    assert res.status_code == 202
    assert res.json()["status"] == "pending"
    assert not Order.objects.exists()
