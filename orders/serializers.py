# orders/serializers.py

from rest_framework import serializers

from .models import Order


# ============ Orders (back office) ============
class OrderSerializer(serializers.ModelSerializer):
    seller = serializers.CharField(source="seller.username", read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            "id", "stripe_session_id", "stripe_payment_intent", "seller",
            "amount_total", "currency", "items", "status", "discount_code", "inventory_applied",
            "buyer_email", "buyer_name", "buyer_phone",
            "shipping_name", "shipping_address1", "shipping_address2", "shipping_city",
            "shipping_state", "shipping_postal", "shipping_country",
            "fulfilled", "comment",
            "email_sent", "email_error", "customer_email_sent", "customer_email_error",
            "shipping_label_url", "tracking_number", "carrier", "service",
            "label_cost_cents", "label_status",
            "date_created", "last_modified",
        ]
        read_only_fields = fields


class FulfillSerializer(serializers.Serializer):
    order_id = serializers.IntegerField(min_value=1)
    fulfilled = serializers.BooleanField()


class CommentSerializer(serializers.Serializer):
    order_id = serializers.IntegerField(min_value=1)
    comment = serializers.CharField(allow_blank=True, max_length=5000)


class CreateLabelSerializer(serializers.Serializer):
    order_id = serializers.IntegerField(min_value=1)
    parcel = serializers.DictField(required=False, allow_null=True)


# ============ Storefront ============
class BuyerSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_blank=True)
    name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=50)
    address1 = serializers.CharField(required=False, allow_blank=True, max_length=255)
    address2 = serializers.CharField(required=False, allow_blank=True, max_length=255)
    city = serializers.CharField(required=False, allow_blank=True, max_length=120)
    state = serializers.CharField(required=False, allow_blank=True, max_length=120)
    postal = serializers.CharField(required=False, allow_blank=True, max_length=30)
    country = serializers.CharField(required=False, allow_blank=True, max_length=2)


class CheckoutSerializer(serializers.Serializer):
    # lines are validated and re-priced by orders.services.price_items
    items = serializers.ListField(child=serializers.DictField(), allow_empty=True)
    buyer = BuyerSerializer(required=False)
    successUrl = serializers.CharField(required=False, allow_blank=True)
    cancelUrl = serializers.CharField(required=False, allow_blank=True)
    discountCode = serializers.CharField(required=False, allow_blank=True, max_length=60)


class ContactSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    message = serializers.CharField(max_length=5000)
