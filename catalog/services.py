# catalog/services.py

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Iterable, Optional

from django.conf import settings
from django.core.files.storage import default_storage
from django.db import transaction
from django.db.models import F, Max, Q, Value
from django.db.models.functions import Greatest

from .models import BrandPosition, Decant, Fragrance, Profile, UserFragrance, brand_key

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    pass


def owner_profile() -> Optional[Profile]:
    return Profile.objects.filter(username=settings.STOREFRONT_OWNER_USERNAME).first()


def as_pk(value) -> Optional[int]:
    try:
        pk = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return pk if pk > 0 else None


# ================== Stock ==================

@dataclass
class StockInfo:
    option_id: int
    remaining: Optional[int]   # None = unlimited
    in_stock: bool


def stock_for_options(option_ids: Iterable) -> dict[int, StockInfo]:
    pks = {pk for pk in (as_pk(o) for o in option_ids) if pk}
    rows = Decant.objects.filter(pk__in=pks).values("id", "quantity", "in_stock")
    return {
        r["id"]: StockInfo(option_id=r["id"], remaining=r["quantity"], in_stock=r["in_stock"])
        for r in rows
    }


def decrement_stock(option_id, qty: int) -> int:
    """
    Single store-side decrement, floored at zero.
    No-op (returns 0) for unlimited stock, out-of-stock or unknown options.
    """
    pk = as_pk(option_id)
    if pk is None or qty <= 0:
        return 0
    return (
        Decant.objects
        .filter(pk=pk, quantity__isnull=False, in_stock=True)
        .update(quantity=Greatest(F("quantity") - int(qty), Value(0)),
                last_modified=int(time.time()))
    )


# ================== Decant listing ==================

def parse_volume_rank(label) -> tuple[int, Optional[float]]:
    """'2mL decant' -> (0, 2.0); named sizes get a rank after measured ones."""
    s = str(label or "").lower()
    m = re.search(r"([\d.]+)\s*ml", s)
    if m:
        try:
            return 0, float(m.group(1))
        except ValueError:
            pass
    if re.search(r"\btravel\b|\bdiscovery\b", s):
        return 3, None
    if re.search(r"\bsample\b|\btester\b", s):
        return 4, None
    if re.search(r"\bfull\b|\bbottle\b", s):
        return 5, None
    return 2, None


def sort_decants(decants: Iterable[Decant]) -> list[Decant]:
    def key(d):
        rank, vol = parse_volume_rank(d.label)
        return (
            (d.fragrance.brand or "").casefold(),
            (d.fragrance.name or "").casefold(),
            rank,
            vol if vol is not None else 0.0,
            (d.label or "").casefold(),
        )
    return sorted(decants, key=key)


# ================== Brand representatives ==================

def choose_rep(fragrances: list[Fragrance]) -> Optional[Fragrance]:
    if not fragrances:
        return None
    with_transparent = [f for f in fragrances if f.image_url_transparent]
    pool = with_transparent or fragrances
    return min(pool, key=lambda f: len(f.name or ""))


def _group_reps(fragrances: Iterable[Fragrance]) -> list[dict]:
    by_brand: dict[str, list[Fragrance]] = {}
    labels: dict[str, str] = {}
    for f in fragrances:
        by_brand.setdefault(f.brand_slug, []).append(f)
        labels.setdefault(f.brand_slug, f.brand or "Unknown")
    reps = [
        {"brand": labels[slug], "brand_key": slug, "fragrance": choose_rep(items)}
        for slug, items in by_brand.items()
    ]
    reps = [r for r in reps if r["fragrance"] is not None]
    reps.sort(key=lambda r: r["brand"].lower())
    return reps


def brand_reps(profile: Optional[Profile]) -> dict:
    """One representative bottle per brand, from the profile's shelf or the whole catalog."""
    mode = "user"
    link_count = 0
    reps: list[dict] = []
    if profile is not None:
        ids = set(
            UserFragrance.objects.filter(profile=profile).values_list("fragrance_id", flat=True)
        )
        link_count = len(ids)
        if ids:
            reps = _group_reps(Fragrance.objects.filter(pk__in=ids))
    if not reps:
        mode = "global"
        reps = _group_reps(Fragrance.objects.all())
    return {"mode": mode, "link_count": link_count, "reps": reps}


# ================== Shelves ==================

COLUMNS = ("left", "center", "right")


def shelf_slot(position: int) -> tuple[int, str]:
    """Fill the bottom shelf left -> center -> right, then wrap upward."""
    bottom = settings.BOUTIQUE_SHELVES - 1
    shelf_index = max(0, bottom - position // len(COLUMNS))
    return shelf_index, COLUMNS[position % len(COLUMNS)]


def link_to_shelf(profile: Profile, fragrance: Fragrance) -> tuple[UserFragrance, bool]:
    existing = UserFragrance.objects.filter(profile=profile, fragrance=fragrance).first()
    if existing:
        return existing, False
    last = UserFragrance.objects.filter(profile=profile).aggregate(mx=Max("position"))["mx"]
    position = 0 if last is None else last + 1
    shelf_index, column_key = shelf_slot(position)
    link = UserFragrance.objects.create(
        profile=profile, fragrance=fragrance, position=position,
        shelf_index=shelf_index, column_key=column_key,
    )
    return link, True


@transaction.atomic
def arrange_shelf(profile: Profile, moves: list[dict]) -> int:
    """Apply drag results: [{id, position, shelf_index?, row_index?, column_key?}, ...]."""
    ids = [m["id"] for m in moves]
    links = {
        link.id: link
        for link in UserFragrance.objects.select_for_update().filter(profile=profile, id__in=ids)
    }
    missing = [i for i in ids if i not in links]
    if missing:
        raise CatalogError(f"Shelf links not found for this profile: {missing}")

    for move in moves:
        link = links[move["id"]]
        fields = ["position"]
        link.position = move["position"]
        for name in ("shelf_index", "row_index", "column_key"):
            if name in move:
                setattr(link, name, move[name])
                fields.append(name)
        link.save(update_fields=fields)
    return len(moves)


# ================== Brand positions ==================

def _clamp_pct(v, default: float) -> float:
    try:
        v = float(v)
    except (TypeError, ValueError):
        return default
    return max(0.0, min(100.0, v))


def save_brand_position(profile: Profile, brand, x_pct, y_pct, *, is_public=None) -> BrandPosition:
    defaults = {"x_pct": _clamp_pct(x_pct, 50.0), "y_pct": _clamp_pct(y_pct, 80.0)}
    if is_public is not None:
        defaults["is_public"] = bool(is_public)
    pos, _ = BrandPosition.objects.update_or_create(
        profile=profile, brand_key=brand_key(brand), defaults=defaults,
    )
    return pos


@transaction.atomic
def publish_layout(profile: Profile, mode: str, layout: Optional[dict] = None) -> int:
    if mode == "from-db-private":
        return BrandPosition.objects.filter(profile=profile).update(
            is_public=True, last_modified=int(time.time())
        )
    if mode == "from-local":
        if not layout:
            raise CatalogError("empty map")
        for key, pos in layout.items():
            pos = pos or {}
            save_brand_position(profile, key, pos.get("x_pct", 50), pos.get("y_pct", 80), is_public=True)
        return len(layout)
    raise CatalogError("unknown mode")


# ================== Fragrance deletion ==================

def storage_name_from_url(url) -> Optional[str]:
    """Map a public storage URL back to the storage name, or None if it lives elsewhere."""
    if not url:
        return None
    base = default_storage.url("")
    if base and url.startswith(base):
        return url[len(base):] or None
    media = settings.MEDIA_URL
    idx = url.find(media)
    if media and idx != -1:
        return url[idx + len(media):] or None
    return None


@transaction.atomic
def delete_fragrance(fragrance: Fragrance, *, delete_storage: bool = True) -> None:
    name = storage_name_from_url(fragrance.image_url_transparent) if delete_storage else None
    UserFragrance.objects.filter(fragrance=fragrance).delete()
    fragrance.delete()
    if name:
        try:
            default_storage.delete(name)
        except OSError:
            # the row is gone either way; an orphaned file is harmless
            logger.warning("could not remove stored image %s", name, exc_info=True)


# ================== Admin stats ==================

def admin_stats(owner: Profile) -> dict:
    missing_src = Fragrance.objects.filter(Q(image_url__isnull=True) | Q(image_url="")).count()
    missing_transparent = Fragrance.objects.filter(
        Q(image_url_transparent__isnull=True) | Q(image_url_transparent="")
    ).count()

    links = UserFragrance.objects.filter(profile=owner).values("shelf_index", "row_index")
    by_shelf_row: dict[int, dict[int, int]] = {}
    total_links = 0
    for r in links:
        total_links += 1
        if r["shelf_index"] is None:
            continue
        row = by_shelf_row.setdefault(r["shelf_index"], {})
        row[r["row_index"] or 0] = row.get(r["row_index"] or 0, 0) + 1

    return {
        "totals": {
            "fragrances": Fragrance.objects.count(),
            "links": total_links,
            "missing_src": missing_src,
            "missing_transparent": missing_transparent,
        },
        "byShelfRow": by_shelf_row,
    }
