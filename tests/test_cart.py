import json

import pytest

from catalog.services import StockInfo
from orders.cart import Cart, CartError, CartLine, validate_cart


def line(option_id=None, quantity=1, unit_amount=1500):
    return CartLine(name="BR540", quantity=quantity, unit_amount=unit_amount, option_id=option_id)


@pytest.fixture
def stock():
    return {
        1: StockInfo(option_id=1, remaining=5, in_stock=True),
        2: StockInfo(option_id=2, remaining=3, in_stock=False),
        3: StockInfo(option_id=3, remaining=None, in_stock=True),
    }


@pytest.mark.parametrize("requested,allocated,expected", [
    (2, 0, 2),
    (5, 0, 5),
    (9, 0, 5),
    (3, 4, 1),
    (3, 5, 0),
    (3, 7, 0),
])
def test_clamp(stock, requested, allocated, expected):
    assert Cart(stock=stock).clamp(1, requested, allocated=allocated) == expected


def test_unlimited_and_untracked_lines_are_not_clamped(stock):
    cart = Cart(stock=stock)
    assert cart.clamp(3, 500) == 500
    assert cart.clamp(None, 42) == 42


def test_out_of_stock_option_is_rejected(stock):
    cart = Cart(stock=stock)
    with pytest.raises(CartError) as exc:
        cart.add(line(option_id=2))
    assert exc.value.reason == "out_of_stock"
    assert cart.lines == []


def test_add_merges_and_clamps_same_option(stock):
    cart = Cart(stock=stock)
    assert cart.add(line(option_id=1, quantity=3)) == 3
    assert cart.add(line(option_id=1, quantity=4)) == 2
    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 5
    with pytest.raises(CartError):
        cart.add(line(option_id=1, quantity=1))


def test_set_quantity_accounts_for_other_lines(stock):
    cart = Cart(lines=[line(option_id=1, quantity=2), line(option_id=1, quantity=1)], stock=stock)
    assert cart.set_quantity(1, 10) == 3
    assert cart.set_quantity(0, 0) == 1


def test_subtotal_remove_clear(stock):
    cart = Cart(lines=[line(quantity=2, unit_amount=1500), line(option_id=3, quantity=1, unit_amount=5500)],
                stock=stock)
    assert cart.subtotal_cents == 8500
    cart.remove(0)
    assert cart.subtotal_cents == 5500
    cart.clear()
    assert cart.subtotal_cents == 0


def test_load_dump_roundtrip_tolerates_junk():
    raw = json.dumps([
        {"name": "BR540", "quantity": "2", "unit_amount": 1500, "currency": "USD", "option_id": "1"},
        "not a line",
        {"name": "bad", "quantity": "many"},
    ])
    cart = Cart.load(raw)
    assert len(cart.lines) == 1
    assert cart.lines[0].option_id == 1
    assert cart.lines[0].currency == "usd"
    assert json.loads(cart.dump())[0]["quantity"] == 2
    assert Cart.load("{broken").lines == []


def test_validated_reports_issues(stock):
    cart = Cart(lines=[line(option_id=1, quantity=4), line(option_id=1, quantity=4),
                       line(option_id=2, quantity=1), line(option_id=3, quantity=9)], stock=stock)
    fixed, issues = cart.validated()

    assert [(x.option_id, x.quantity) for x in fixed.lines] == [(1, 4), (1, 1), (3, 9)]
    assert [(i["index"], i["reason"]) for i in issues] == [(1, "clamped"), (2, "out_of_stock")]


@pytest.mark.django_db
def test_validate_cart_reads_live_stock(option_a, option_b, option_c):
    raw = [
        {"name": "A", "quantity": 7, "unit_amount": 1500, "option_id": option_a.pk},
        {"name": "B", "quantity": 1, "unit_amount": 3000, "option_id": option_b.pk},
        {"name": "C", "quantity": 30, "unit_amount": 5500, "option_id": option_c.pk},
        {"name": "gone", "quantity": 1, "unit_amount": 100, "option_id": 999999},
    ]
    cart, issues = validate_cart(raw)

    assert [x.quantity for x in cart.lines] == [5, 30]
    assert {i["reason"] for i in issues} == {"clamped", "out_of_stock", "unavailable"}


@pytest.mark.django_db
def test_cart_validate_endpoint(api_client, option_a):
    res = api_client.post("/api/cart/validate",
                          {"items": [{"name": "A", "quantity": 2, "unit_amount": 1500, "option_id": option_a.pk}]},
                          format="json")
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["subtotalCents"] == 3000
