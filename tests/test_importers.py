import pytest

from catalog.importers import ImportRowsError, import_rows, parse_fragrantica_url, parse_label
from catalog.models import Fragrance, UserFragrance

URL = "/api/admin/import-fragrantica"


@pytest.mark.parametrize("url,expected", [
    ("https://www.fragrantica.com/perfume/Dior/Sauvage-31861.html", ("Dior", "Sauvage")),
    ("https://www.fragrantica.com/perfume/Maison-Francis-Kurkdjian/Baccarat-Rouge-540-33519.html",
     ("Maison Francis Kurkdjian", "Baccarat Rouge 540")),
    ("https://www.fragrantica.com/designers/Dior.html", (None, None)),
    ("", (None, None)),
])
def test_parse_fragrantica_url(url, expected):
    assert parse_fragrantica_url(url) == expected


def test_parse_label():
    assert parse_label("Aventus — Creed") == ("Creed", "Aventus")
    assert parse_label("Just A Name") == (None, "Just A Name")
    assert parse_label("  ") == (None, None)


@pytest.mark.django_db
def test_import_creates_matches_and_links(owner, fragrance):
    fragrance.fragrantica_url = "https://www.fragrantica.com/perfume/Maison-Francis-Kurkdjian/Baccarat-Rouge-540-33519.html"
    fragrance.save()
    Fragrance.objects.create(brand="Creed", name="Aventus")

    report = import_rows(owner, [
        {"url": fragrance.fragrantica_url},
        {"url": "https://www.fragrantica.com/perfume/Dior/Sauvage-31861.html", "image": "https://img.test/s.jpg"},
        {"label": "Aventus — Creed"},
        {"url": "https://example.com/nothing"},
    ])

    assert report.received == 4
    assert report.created_fragrances == 1
    assert report.linked_new == 3
    assert report.skipped_unparseable == 1
    assert Fragrance.objects.get(name="Sauvage").image_url == "https://img.test/s.jpg"
    assert UserFragrance.objects.filter(profile=owner).count() == 3

    again = import_rows(owner, [{"label": "Aventus — Creed"}])
    assert again.skipped_existing_link == 1
    assert again.created_fragrances == 0


@pytest.mark.django_db
def test_import_rejects_empty_rows(owner):
    with pytest.raises(ImportRowsError):
        import_rows(owner, [])


@pytest.mark.django_db
def test_import_endpoint_unknown_target(admin_client):
    res = admin_client.post(URL, {"rows": [{"label": "Aventus — Creed"}], "targetUsername": "nobody"},
                            format="json")
    assert res.status_code == 404


@pytest.mark.django_db
def test_import_endpoint_reports_counts(admin_client, owner):
    res = admin_client.post(URL, {"rows": [{"url": "https://www.fragrantica.com/perfume/Dior/Sauvage-31861.html"}]},
                            format="json")
    assert res.status_code == 200
    body = res.json()
    assert body["createdFragrances"] == 1
    assert body["linkedNew"] == 1
    assert "added 1 new" in body["message"]


@pytest.mark.django_db
def test_import_endpoint_requires_admin(shopper_client, owner):
    res = shopper_client.post(URL, {"rows": [{"label": "x"}]}, format="json")
    assert res.status_code == 403
