# orders/views.py
# ============================================================
# Imports
# ============================================================
import logging

import stripe
from django.shortcuts import get_object_or_404

from rest_framework import filters, permissions, status, viewsets
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response

from catalog.permissions import IsStoreAdmin
from storefront.exceptions import UpstreamError

from . import payments
from .cart import validate_cart
from .models import Order
from .notifications import send_contact_message
from .reconciler import ReconcileError, SessionNotReady, ensure_order, handle_event
from .serializers import (
    CheckoutSerializer,
    CommentSerializer,
    ContactSerializer,
    CreateLabelSerializer,
    FulfillSerializer,
    OrderSerializer,
)
from .services import CheckoutError, DiscountError, set_comment, set_fulfilled, start_checkout, validate_discount
from .shipping import ShippingError, apply_tracking_update, create_label as buy_label

logger = logging.getLogger(__name__)


def _order_summary(order: Order) -> dict:
    return {
        "id": order.pk,
        "stripe_session_id": order.stripe_session_id,
        "status": order.status,
        "amount_total": order.amount_total,
        "currency": order.currency,
        "items": order.items,
        "buyer_email": order.buyer_email,
    }


# ============================================================
# Checkout
# ============================================================
@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def checkout(request):
    s = CheckoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = s.validated_data
    try:
        session = start_checkout(
            data["items"],
            data.get("buyer") or {},
            discount_code=data.get("discountCode") or None,
            success_url=data.get("successUrl") or None,
            cancel_url=data.get("cancelUrl") or None,
        )
    except (CheckoutError, DiscountError) as exc:
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    except (stripe.StripeError, payments.StripeConfigError) as exc:
        logger.error("checkout session creation failed: %s", exc)
        raise UpstreamError(str(exc) or "Checkout failed.")
    return Response({"url": session["url"], "id": session["id"]})


@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def cart_validate(request):
    raw = (request.data or {}).get("items") if isinstance(request.data, dict) else request.data
    cart, issues = validate_cart(raw)
    return Response({
        "ok": not issues,
        "items": [line.as_dict() for line in cart.lines],
        "subtotalCents": cart.subtotal_cents,
        "issues": issues,
    })


@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def discount_validate(request):
    body = request.data if isinstance(request.data, dict) else {}
    code, subtotal = body.get("code"), body.get("subtotalCents")
    if not code or subtotal in (None, ""):
        return Response({"ok": False, "detail": "Missing code or subtotalCents"},
                        status=status.HTTP_400_BAD_REQUEST)
    try:
        discount = validate_discount(code, subtotal)
    except DiscountError as exc:
        code_status = status.HTTP_404_NOT_FOUND if exc.not_found else status.HTTP_400_BAD_REQUEST
        return Response({"ok": False, "detail": str(exc)}, status=code_status)
    return Response({"ok": True, "discount": discount.as_dict()})


# ============================================================
# Stripe webhook / ensure
# ============================================================
@api_view(["POST"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def stripe_webhook(request):
    # signature is computed over the raw body; never touch request.data here
    payload = request.body
    signature = request.META.get("HTTP_STRIPE_SIGNATURE")
    if not signature:
        return Response({"detail": "Missing Stripe-Signature header"}, status=status.HTTP_400_BAD_REQUEST)
    try:
        event = payments.construct_event(payload, signature)
    except (ValueError, stripe.SignatureVerificationError) as exc:
        logger.warning("rejected webhook: %s", exc)
        return Response({"detail": f"Webhook Error: {exc}"}, status=status.HTTP_400_BAD_REQUEST)
    except payments.StripeConfigError as exc:
        logger.error("webhook secret missing: %s", exc)
        raise UpstreamError(str(exc))

    try:
        result = handle_event(event)
    except ReconcileError as exc:
        logger.error("webhook %s failed: %s", event.get("id"), exc)
        raise UpstreamError(str(exc))
    if result is None:
        return Response({"received": True, "ignored": event.get("type")})
    return Response({"received": True, "created": result.created})


@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def orders_ensure(request):
    session_id = (request.data or {}).get("session_id") if isinstance(request.data, dict) else None
    if not session_id or not isinstance(session_id, str):
        return Response({"detail": "Missing session_id"}, status=status.HTTP_400_BAD_REQUEST)
    try:
        order, state, result = ensure_order(session_id)
    except SessionNotReady as exc:
        logger.info("session %s not retrievable yet: %s", session_id, exc)
        return Response({"ok": False, "status": "pending", "detail": "Order not ready yet, retry shortly."},
                        status=status.HTTP_202_ACCEPTED)
    except ReconcileError as exc:
        raise UpstreamError(str(exc))

    body = {"ok": True, "status": state, "order": _order_summary(order)}
    if result is not None and result.created:
        body["emailOk"] = result.email_ok
        body["emailErr"] = result.email_error
    return Response(body)


# ============================================================
# Back office: orders
# ============================================================
class OrderAdminViewSet(viewsets.ReadOnlyModelViewSet):
    """
    /api/admin/orders/
      - fulfilled=true|false
      - status=paid
      - search=<email|session|tracking>
    """
    permission_classes = [IsStoreAdmin]
    queryset = Order.objects.select_related("seller")
    serializer_class = OrderSerializer

    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["buyer_email", "buyer_name", "stripe_session_id", "tracking_number"]
    ordering_fields = ["date_created", "amount_total", "status"]

    def get_queryset(self):
        qs = super().get_queryset()
        params = self.request.query_params
        fulfilled = params.get("fulfilled")
        if fulfilled in ("true", "false"):
            qs = qs.filter(fulfilled=(fulfilled == "true"))
        if params.get("status"):
            qs = qs.filter(status=params["status"])
        return qs


@api_view(["POST"])
@permission_classes([IsStoreAdmin])
def orders_fulfill(request):
    s = FulfillSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    if not set_fulfilled(s.validated_data["order_id"], s.validated_data["fulfilled"]):
        return Response({"detail": "Order not found"}, status=status.HTTP_404_NOT_FOUND)
    return Response({"ok": True})


@api_view(["POST"])
@permission_classes([IsStoreAdmin])
def orders_comment(request):
    s = CommentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    if not set_comment(s.validated_data["order_id"], s.validated_data["comment"]):
        return Response({"detail": "Order not found"}, status=status.HTTP_404_NOT_FOUND)
    return Response({"ok": True})


# ============================================================
# Shipping
# ============================================================
@api_view(["POST"])
@permission_classes([IsStoreAdmin])
def create_label(request):
    s = CreateLabelSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    order = get_object_or_404(Order, pk=s.validated_data["order_id"])
    try:
        result = buy_label(order, s.validated_data.get("parcel"))
    except ShippingError as exc:
        logger.error("label purchase for order %s failed: %s", order.pk, exc)
        if exc.upstream:
            raise UpstreamError(str(exc))
        body = {"detail": str(exc)}
        if exc.detail:
            body["messages"] = exc.detail
        return Response(body, status=status.HTTP_400_BAD_REQUEST)
    return Response(result)


@api_view(["POST"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def shippo_webhook(request):
    # always 200 so Shippo does not keep retrying
    try:
        updated = apply_tracking_update(request.data)
    except Exception as exc:
        logger.error("shippo webhook failed: %s", exc)
        return Response({"ok": False})
    return Response({"ok": True, "updated": updated})


# ============================================================
# Misc
# ============================================================
@api_view(["GET"])
@permission_classes([IsStoreAdmin])
def stripe_mode(request):
    return Response(payments.key_snapshot())


@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def contact(request):
    s = ContactSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = s.validated_data
    sent = send_contact_message(data["name"], data["email"], data["message"])
    if not sent.ok:
        raise UpstreamError(sent.error or "Could not send message.")
    return Response({"ok": True})
