import re
import time

from django.conf import settings
from django.db import models


def brand_key(brand) -> str:
    """'Maison Francis Kurkdjian' -> 'maison-francis-kurkdjian'"""
    s = (brand or "unknown").strip().lower().replace("&", "and")
    s = re.sub(r"[^a-z0-9]+", "-", s)
    return s.strip("-") or "unknown"


class TimestampedModel(models.Model):
    date_created = models.BigIntegerField(editable=False, null=True, blank=True)
    last_modified = models.BigIntegerField(editable=False, null=True, blank=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        # always use current UTC time in seconds
        now = int(time.time())
        self.last_modified = now
        if not self.date_created:
            self.date_created = now
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | {"last_modified"}
        super().save(*args, **kwargs)


class Profile(TimestampedModel):
    id = models.BigAutoField(primary_key=True)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        null=True, blank=True, related_name="profile",
    )
    username = models.CharField(max_length=60, unique=True)
    email = models.EmailField(blank=True, null=True)
    is_admin = models.BooleanField(default=False)

    class Meta:
        db_table = "profiles"
        indexes = [
            models.Index(fields=["email"], name="idx_profiles_email"),
        ]

    def __str__(self):
        return self.username

    @property
    def is_owner(self) -> bool:
        return self.username == settings.STOREFRONT_OWNER_USERNAME


class Fragrance(TimestampedModel):
    id = models.BigAutoField(primary_key=True)
    brand = models.CharField(max_length=255, blank=True, default="")
    brand_slug = models.SlugField(max_length=255, editable=False, default="unknown")
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True, null=True, blank=True)

    image_url = models.URLField(max_length=1000, blank=True, null=True)
    image_url_transparent = models.URLField(max_length=1000, blank=True, null=True)
    fragrantica_url = models.URLField(max_length=1000, blank=True, null=True)

    notes = models.TextField(blank=True, default="")
    accords = models.JSONField(default=list, blank=True)  # [{"name": "woody", "strength": 80}, ...]

    class Meta:
        db_table = "fragrances"
        indexes = [
            models.Index(fields=["brand_slug"], name="idx_frag_brand_slug"),
            models.Index(fields=["name"], name="idx_frag_name"),
            models.Index(fields=["fragrantica_url"], name="idx_frag_fragrantica"),
        ]

    def __str__(self):
        return f"{self.brand} {self.name}".strip()

    def save(self, *args, **kwargs):
        self.brand = (self.brand or "").strip()
        self.brand_slug = brand_key(self.brand)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "brand" in update_fields:
            kwargs["update_fields"] = set(update_fields) | {"brand_slug"}
        super().save(*args, **kwargs)


class Decant(TimestampedModel):
    id = models.BigAutoField(primary_key=True)
    fragrance = models.ForeignKey(Fragrance, on_delete=models.CASCADE, related_name="decants")
    label = models.CharField(max_length=120)
    price_cents = models.PositiveIntegerField()
    quantity = models.IntegerField(null=True, blank=True)  # NULL = unlimited
    in_stock = models.BooleanField(default=True)

    class Meta:
        db_table = "decants"
        indexes = [
            models.Index(fields=["fragrance"], name="idx_decant_fragrance"),
            models.Index(fields=["in_stock"], name="idx_decant_in_stock"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gte=0) | models.Q(quantity__isnull=True),
                                   name="ck_decant_qty_nonnegative"),
        ]

    def __str__(self):
        return f"{self.fragrance} — {self.label}"


class UserFragrance(TimestampedModel):
    COLUMN_KEYS = [("left", "left"), ("center", "center"), ("right", "right")]

    id = models.BigAutoField(primary_key=True)
    profile = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name="shelf_links")
    fragrance = models.ForeignKey(Fragrance, on_delete=models.CASCADE, related_name="shelf_links")
    position = models.IntegerField(default=0)
    shelf_index = models.IntegerField(null=True, blank=True)
    row_index = models.IntegerField(default=0)
    column_key = models.CharField(max_length=10, choices=COLUMN_KEYS, blank=True, default="")

    class Meta:
        db_table = "user_fragrances"
        indexes = [
            models.Index(fields=["profile", "position"], name="idx_uf_profile_pos"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["profile", "fragrance"], name="uq_uf_profile_fragrance"),
        ]


class BrandPosition(TimestampedModel):
    id = models.BigAutoField(primary_key=True)
    profile = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name="brand_positions")
    brand_key = models.SlugField(max_length=255)
    x_pct = models.FloatField(default=50)
    y_pct = models.FloatField(default=80)
    is_public = models.BooleanField(default=False)

    class Meta:
        db_table = "brand_positions"
        constraints = [
            models.UniqueConstraint(fields=["profile", "brand_key"], name="uq_bp_profile_brand"),
        ]

    def save(self, *args, **kwargs):
        self.brand_key = brand_key(self.brand_key)
        super().save(*args, **kwargs)
