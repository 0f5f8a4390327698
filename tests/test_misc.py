import pytest

pytestmark = pytest.mark.django_db


def test_contact_sends_escaped_email(api_client, mailoutbox):
    res = api_client.post("/api/contact", {"name": "<b>Eve</b>", "email": "eve@example.com",
                                           "message": "<script>alert(1)</script>"}, format="json")
    assert res.status_code == 200
    assert len(mailoutbox) == 1
    msg = mailoutbox[0]
    assert msg.to == ["owner@fragrantique.test"]
    assert msg.reply_to == ["eve@example.com"]
    html = msg.alternatives[0][0]
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_contact_validates_input(api_client, mailoutbox):
    res = api_client.post("/api/contact", {"name": "Eve", "email": "not-an-email", "message": "hi"},
                          format="json")
    assert res.status_code == 400
    assert mailoutbox == []


def test_stripe_mode_masks_keys(admin_client, api_client):
    assert api_client.get("/api/stripe-mode").status_code == 403

    body = admin_client.get("/api/stripe-mode").json()
    assert body["mode"] == "test"
    assert body["secretKey"].startswith("sk_test")
    assert "1234567890abcdef" not in body["secretKey"]
