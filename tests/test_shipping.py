from unittest import mock

import pytest

from orders.models import Order
from orders.shipping import pick_rate

pytestmark = pytest.mark.django_db

RATES = [
    {"object_id": "rate_ups", "provider": "UPS", "amount": "4.10", "currency": "USD",
     "servicelevel": {"name": "Ground"}},
    {"object_id": "rate_usps_pri", "provider": "USPS", "amount": "9.85", "currency": "USD",
     "servicelevel": {"name": "Priority Mail"}},
    {"object_id": "rate_usps_ga", "provider": "USPS", "amount": "5.20", "currency": "USD",
     "servicelevel": {"name": "Ground Advantage"}},
]


@pytest.fixture
def order(db):
    return Order.objects.create(
        stripe_session_id="cs_ship", status=Order.PAID, buyer_email="buyer@example.com",
        shipping_name="Ada Shipto", shipping_address1="9 Ship St", shipping_city="Phoenix",
        shipping_state="AZ", shipping_postal="85001", shipping_country="US",
    )


def shippo_response(payload, ok=True):
    return mock.Mock(ok=ok, status_code=200 if ok else 500, text="boom", json=mock.Mock(return_value=payload))


def test_pick_rate_prefers_cheapest_usps():
    assert pick_rate(RATES)["object_id"] == "rate_usps_ga"
    assert pick_rate([RATES[0]])["object_id"] == "rate_ups"
    assert pick_rate([]) is None


def test_create_label(admin_client, order):
    responses = [
        shippo_response({"rates": RATES}),
        shippo_response({"status": "SUCCESS", "label_url": "https://shippo.test/label.pdf",
                         "tracking_number": "9400TRACK"}),
    ]
    with mock.patch("orders.shipping.requests.post", side_effect=responses) as post:
        res = admin_client.post("/api/shipping/create-label", {"order_id": order.pk}, format="json")

    assert res.status_code == 200
    assert res.json()["tracking"] == "9400TRACK"
    shipment_call, txn_call = post.call_args_list
    assert shipment_call.kwargs["headers"] == {"Authorization": "ShippoToken shippo_test_token"}
    assert shipment_call.kwargs["json"]["address_to"]["zip"] == "85001"
    assert txn_call.kwargs["json"]["rate"] == "rate_usps_ga"

    order.refresh_from_db()
    assert order.label_status == "purchased"
    assert order.carrier == "USPS"
    assert order.service == "Ground Advantage"
    assert order.label_cost_cents == 520
    assert order.shipping_label_url == "https://shippo.test/label.pdf"


def test_failed_purchase_is_400(admin_client, order):
    responses = [
        shippo_response({"rates": RATES}),
        shippo_response({"status": "ERROR", "messages": [{"text": "address invalid"}]}),
    ]
    with mock.patch("orders.shipping.requests.post", side_effect=responses):
        res = admin_client.post("/api/shipping/create-label", {"order_id": order.pk}, format="json")
    assert res.status_code == 400
    assert res.json()["messages"] == [{"text": "address invalid"}]
    order.refresh_from_db()
    assert order.label_status is None


def test_shippo_http_failure_is_500(admin_client, order):
    with mock.patch("orders.shipping.requests.post", return_value=shippo_response({}, ok=False)):
        res = admin_client.post("/api/shipping/create-label", {"order_id": order.pk}, format="json")
    assert res.status_code == 500


def test_create_label_requires_admin(shopper_client, order):
    res = shopper_client.post("/api/shipping/create-label", {"order_id": order.pk}, format="json")
    assert res.status_code == 403


def test_tracking_webhook_updates_status(api_client, order):
    Order.objects.filter(pk=order.pk).update(tracking_number="9400TRACK")

    res = api_client.post("/api/shipping/shippo-webhook",
                          {"data": {"tracking_number": "9400TRACK", "tracking_status": {"status": "DELIVERED"}}},
                          format="json")
    assert res.status_code == 200
    order.refresh_from_db()
    assert order.label_status == "DELIVERED"

    api_client.post("/api/shipping/shippo-webhook", {"tracking_number": "9400TRACK"}, format="json")
    order.refresh_from_db()
    assert order.label_status == "in_transit"


def test_tracking_webhook_always_acknowledges(api_client):
    res = api_client.post("/api/shipping/shippo-webhook", "not json", content_type="application/json")
    assert res.status_code == 200
