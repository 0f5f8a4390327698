from django.db import models

from catalog.models import TimestampedModel


class Order(TimestampedModel):
    """
    One row per Stripe Checkout Session. ``stripe_session_id`` is the only
    idempotency boundary between webhook re-deliveries and client "ensure" polls.
    """
    PENDING = "pending"
    UNPAID = "unpaid"
    PAID = "paid"

    id = models.BigAutoField(primary_key=True)
    stripe_session_id = models.CharField(max_length=255, unique=True)
    stripe_payment_intent = models.CharField(max_length=255, blank=True, null=True)
    seller = models.ForeignKey("catalog.Profile", on_delete=models.SET_NULL, null=True, blank=True,
                               related_name="orders")

    amount_total = models.IntegerField(null=True, blank=True)  # minor units
    currency = models.CharField(max_length=10, default="usd")
    items = models.JSONField(default=list, blank=True)          # snapshot of purchased lines
    status = models.CharField(max_length=32, default=PENDING)
    discount_code = models.CharField(max_length=60, blank=True, null=True)
    inventory_applied = models.BooleanField(default=False)

    # buyer
    buyer_email = models.EmailField(blank=True, null=True)
    buyer_name = models.CharField(max_length=255, blank=True, null=True)
    buyer_phone = models.CharField(max_length=50, blank=True, null=True)

    # ship-to
    shipping_name = models.CharField(max_length=255, blank=True, null=True)
    shipping_address1 = models.CharField(max_length=255, blank=True, null=True)
    shipping_address2 = models.CharField(max_length=255, blank=True, null=True)
    shipping_city = models.CharField(max_length=120, blank=True, null=True)
    shipping_state = models.CharField(max_length=120, blank=True, null=True)
    shipping_postal = models.CharField(max_length=30, blank=True, null=True)
    shipping_country = models.CharField(max_length=2, blank=True, null=True)

    # back office
    fulfilled = models.BooleanField(default=False)
    comment = models.TextField(blank=True, default="")

    # notification outcome (best effort)
    email_sent = models.BooleanField(default=False)
    email_error = models.TextField(blank=True, null=True)
    customer_email_sent = models.BooleanField(default=False)
    customer_email_error = models.TextField(blank=True, null=True)

    # shipping label (Shippo)
    shipping_label_url = models.URLField(max_length=1000, blank=True, null=True)
    tracking_number = models.CharField(max_length=120, blank=True, null=True)
    carrier = models.CharField(max_length=60, blank=True, null=True)
    service = models.CharField(max_length=120, blank=True, null=True)
    label_cost_cents = models.IntegerField(null=True, blank=True)
    label_status = models.CharField(max_length=40, blank=True, null=True)

    class Meta:
        db_table = "orders"
        ordering = ["-date_created", "-id"]
        indexes = [
            models.Index(fields=["status"], name="idx_orders_status"),
            models.Index(fields=["fulfilled"], name="idx_orders_fulfilled"),
            models.Index(fields=["tracking_number"], name="idx_orders_tracking"),
            models.Index(fields=["date_created"], name="idx_orders_date"),
        ]

    def __str__(self):
        return f"Order({self.stripe_session_id})<{self.buyer_email or 'unknown-email'}>"

    @property
    def shipping_snapshot(self) -> dict:
        return {
            "shipping_name": self.shipping_name or self.buyer_name,
            "shipping_address1": self.shipping_address1,
            "shipping_address2": self.shipping_address2,
            "shipping_city": self.shipping_city,
            "shipping_state": self.shipping_state,
            "shipping_postal": self.shipping_postal,
            "shipping_country": self.shipping_country,
        }


class DiscountCode(TimestampedModel):
    PERCENT = "percent"
    FIXED = "fixed"
    FREE_SHIPPING = "free_shipping"
    TYPES = [(PERCENT, "percent"), (FIXED, "fixed"), (FREE_SHIPPING, "free shipping")]

    id = models.BigAutoField(primary_key=True)
    code = models.CharField(max_length=60, unique=True)
    type = models.CharField(max_length=20, choices=TYPES, default=PERCENT)
    value = models.IntegerField(null=True, blank=True)  # percent: 0-100, fixed: minor units
    active = models.BooleanField(default=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    min_subtotal_cents = models.IntegerField(default=0)

    class Meta:
        db_table = "discount_codes"

    def __str__(self):
        return self.code

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)
