# orders/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import OrderAdminViewSet, checkout, cart_validate, discount_validate, stripe_webhook, \
    orders_ensure, orders_fulfill, orders_comment, create_label, shippo_webhook, stripe_mode, contact

router = DefaultRouter()
router.register(r'admin/orders', OrderAdminViewSet, basename='admin-order')  # /api/admin/orders/

urlpatterns = [
    path("admin/orders/fulfill", orders_fulfill, name="orders-fulfill"),
    path("admin/orders/comment", orders_comment, name="orders-comment"),
    path('', include(router.urls)),

    path("checkout", checkout, name="checkout"),
    path("cart/validate", cart_validate, name="cart-validate"),
    path("discount/validate", discount_validate, name="discount-validate"),
    path("stripe/webhook", stripe_webhook, name="stripe-webhook"),
    path("orders/ensure", orders_ensure, name="orders-ensure"),

    path("shipping/create-label", create_label, name="create-label"),
    path("shipping/shippo-webhook", shippo_webhook, name="shippo-webhook"),
    path("stripe-mode", stripe_mode, name="stripe-mode"),
    path("contact", contact, name="contact"),
]
