import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from catalog.models import Decant, Fragrance, Profile


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def owner(db):
    user = get_user_model().objects.create_user("stephanie", "stephanie@fragrantique.test", "pw")
    return Profile.objects.create(user=user, username="stephanie", email="stephanie@fragrantique.test")


@pytest.fixture
def admin_client(db):
    user = get_user_model().objects.create_user("boss", "boss@fragrantique.test", "pw", is_staff=True)
    client = APIClient()
    client.force_authenticate(user)
    return client


@pytest.fixture
def shopper_client(db):
    user = get_user_model().objects.create_user("shopper", "shopper@example.com", "pw")
    Profile.objects.create(user=user, username="shopper")
    client = APIClient()
    client.force_authenticate(user)
    return client


@pytest.fixture
def fragrance(db):
    return Fragrance.objects.create(brand="Maison Francis Kurkdjian", name="Baccarat Rouge 540",
                                    slug="baccarat-rouge-540")


@pytest.fixture
def option_a(fragrance):
    """Finite stock: five left."""
    return Decant.objects.create(fragrance=fragrance, label="2mL", price_cents=1500, quantity=5)


@pytest.fixture
def option_b(fragrance):
    """Marked out of stock."""
    return Decant.objects.create(fragrance=fragrance, label="5mL", price_cents=3000, quantity=3, in_stock=False)


@pytest.fixture
def option_c(fragrance):
    """Unlimited stock."""
    return Decant.objects.create(fragrance=fragrance, label="10mL", price_cents=5500, quantity=None)
