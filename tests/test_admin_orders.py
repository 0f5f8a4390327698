import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from catalog.models import Profile
from orders.models import Order

pytestmark = pytest.mark.django_db


@pytest.fixture
def orders(db):
    return [
        Order.objects.create(stripe_session_id="cs_1", status=Order.PAID, buyer_email="a@example.com"),
        Order.objects.create(stripe_session_id="cs_2", status=Order.PAID, buyer_email="b@example.com",
                             fulfilled=True),
    ]


def test_orders_list_requires_admin(api_client, shopper_client, orders):
    assert api_client.get("/api/admin/orders/").status_code == 403
    assert shopper_client.get("/api/admin/orders/").status_code == 403


def test_orders_list_filters(admin_client, orders):
    res = admin_client.get("/api/admin/orders/")
    assert res.status_code == 200
    assert res.json()["count"] == 2

    res = admin_client.get("/api/admin/orders/", {"fulfilled": "false"})
    assert [o["stripe_session_id"] for o in res.json()["results"]] == ["cs_1"]

    res = admin_client.get("/api/admin/orders/", {"search": "b@example"})
    assert [o["stripe_session_id"] for o in res.json()["results"]] == ["cs_2"]


def test_fulfill_and_comment(admin_client, orders):
    order = orders[0]
    res = admin_client.post("/api/admin/orders/fulfill", {"order_id": order.pk, "fulfilled": True}, format="json")
    assert res.status_code == 200
    res = admin_client.post("/api/admin/orders/comment", {"order_id": order.pk, "comment": "gift wrap"},
                            format="json")
    assert res.status_code == 200

    order.refresh_from_db()
    assert order.fulfilled is True
    assert order.comment == "gift wrap"


def test_fulfill_unknown_order(admin_client):
    res = admin_client.post("/api/admin/orders/fulfill", {"order_id": 424242, "fulfilled": True}, format="json")
    assert res.status_code == 404


def test_mutations_are_rechecked_server_side(shopper_client, orders):
    res = shopper_client.post("/api/admin/orders/fulfill", {"order_id": orders[0].pk, "fulfilled": True},
                              format="json")
    assert res.status_code == 403
    orders[0].refresh_from_db()
    assert orders[0].fulfilled is False


def test_admin_flag_on_profile_grants_access(shopper_client, orders):
    Profile.objects.filter(username="shopper").update(is_admin=True)
    client = APIClient()
    client.force_authenticate(get_user_model().objects.get(username="shopper"))
    assert client.get("/api/admin/orders/").status_code == 200
