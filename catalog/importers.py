"""
Bulk import of a pasted Fragrantica "Have" list.

Each row is ``{"url": ..., "image": ..., "label": ...}`` as copied from the
member's collection page. Rows are matched to existing fragrances (by
Fragrantica URL, then by normalized name + brand), created when missing and
appended to the target profile's shelves.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import unquote, urlparse

from django.db import transaction

from .models import Fragrance, Profile, brand_key
from .services import link_to_shelf

logger = logging.getLogger(__name__)

PERFUME_PATH = re.compile(r"/perfume/([^/]+)/([^/]+)\.html", re.IGNORECASE)


class ImportRowsError(Exception):
    pass


def parse_fragrantica_url(url) -> tuple[Optional[str], Optional[str]]:
    """'/perfume/Dior/Sauvage-31861.html' -> ('Dior', 'Sauvage')"""
    if not url:
        return None, None
    try:
        path = urlparse(str(url)).path
    except ValueError:
        return None, None
    m = PERFUME_PATH.search(path)
    if not m:
        return None, None
    brand = unquote(m.group(1)).replace("-", " ").strip()
    name = re.sub(r"-\d+$", "", m.group(2))
    name = unquote(name).replace("-", " ").strip()
    return brand or None, name or None


def parse_label(label) -> tuple[Optional[str], Optional[str]]:
    """'Name — Brand' -> ('Brand', 'Name'); anything else is taken as the name."""
    label = (label or "").strip()
    if not label:
        return None, None
    if " — " in label:
        name, _, brand = label.partition(" — ")
        return brand.strip() or None, name.strip() or None
    return None, label


def _norm(s) -> str:
    return (s or "").strip().lower()


@dataclass
class ImportReport:
    received: int = 0
    created_fragrances: int = 0
    linked_new: int = 0
    skipped_existing_link: int = 0
    skipped_unparseable: int = 0
    fragrance_ids: list = field(default_factory=list)

    @property
    def message(self) -> str:
        return (
            f"Received {self.received}; added {self.created_fragrances} new fragrances; "
            f"linked {self.linked_new}; skipped {self.skipped_existing_link} existing links; "
            f"{self.skipped_unparseable} unparseable."
        )

    def as_dict(self) -> dict:
        return {
            "ok": True,
            "received": self.received,
            "createdFragrances": self.created_fragrances,
            "linkedNew": self.linked_new,
            "skippedExistingLink": self.skipped_existing_link,
            "skippedUnparseable": self.skipped_unparseable,
            "message": self.message,
        }


def _find_existing(url, name, brand) -> Optional[Fragrance]:
    if url:
        hit = Fragrance.objects.filter(fragrantica_url=url).first()
        if hit:
            return hit
    candidates = Fragrance.objects.filter(name__iexact=name.strip(), brand_slug=brand_key(brand))
    for f in candidates:
        if _norm(f.name) == _norm(name) and _norm(f.brand) == _norm(brand):
            return f
    return None


@transaction.atomic
def import_rows(profile: Profile, rows: list) -> ImportReport:
    if not isinstance(rows, list) or not rows:
        raise ImportRowsError("No rows provided")

    report = ImportReport(received=len(rows))
    for row in rows:
        if not isinstance(row, dict):
            report.skipped_unparseable += 1
            continue

        brand, name = parse_fragrantica_url(row.get("url"))
        if not name:
            label_brand, label_name = parse_label(row.get("label"))
            name = name or label_name
            brand = brand or label_brand
        if not name:
            report.skipped_unparseable += 1
            continue

        url = row.get("url") or None
        fragrance = _find_existing(url, name, brand or "")
        if fragrance is None:
            fragrance = Fragrance.objects.create(
                name=name,
                brand=brand or "",
                image_url=row.get("image") or None,
                fragrantica_url=url,
            )
            report.created_fragrances += 1

        _, created = link_to_shelf(profile, fragrance)
        if created:
            report.linked_new += 1
            report.fragrance_ids.append(fragrance.pk)
        else:
            report.skipped_existing_link += 1

    logger.info("fragrantica import for %s: %s", profile.username, report.message)
    return report
