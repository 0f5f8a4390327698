from django.contrib import admin
from .models import Order, DiscountCode


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "stripe_session_id", "buyer_email", "amount_total", "status",
                    "inventory_applied", "fulfilled", "label_status")
    list_filter = ("status", "fulfilled", "inventory_applied")
    search_fields = ("stripe_session_id", "buyer_email", "buyer_name", "tracking_number")
    readonly_fields = ("stripe_session_id", "stripe_payment_intent", "items", "inventory_applied",
                       "email_sent", "email_error", "customer_email_sent", "customer_email_error")


@admin.register(DiscountCode)
class DiscountCodeAdmin(admin.ModelAdmin):
    list_display = ("code", "type", "value", "active", "expires_at", "min_subtotal_cents")
    list_filter = ("type", "active")
    search_fields = ("code",)
