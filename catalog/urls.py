# catalog/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import FragranceViewSet, DecantViewSet, brand_reps, shelf, shelf_arrange, \
    brand_positions, publish_brand_layout, remove_bg, check_image, import_fragrantica, admin_stats

router = DefaultRouter()
router.register(r'fragrances', FragranceViewSet, basename='fragrance')  # /api/fragrances/
router.register(r'decants', DecantViewSet, basename='decant')           # /api/decants/

urlpatterns = [
    path('', include(router.urls)),
    path("brand-reps/", brand_reps, name="brand-reps"),
    path("shelves/<str:username>/", shelf, name="shelf"),
    path("shelves/<str:username>/arrange", shelf_arrange, name="shelf-arrange"),
    path("brand-positions/<str:username>/", brand_positions, name="brand-positions"),
    path("brand-positions/<str:username>/publish", publish_brand_layout, name="brand-positions-publish"),

    path("remove-bg", remove_bg, name="remove-bg"),
    path("check-image", check_image, name="check-image"),
    path("admin/import-fragrantica", import_fragrantica, name="import-fragrantica"),
    path("admin/stats", admin_stats, name="admin-stats"),
]
