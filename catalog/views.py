# catalog/views.py
# ============================================================
# Imports
# ============================================================
import logging

from django.conf import settings
from django.db.models import Q
from django.shortcuts import get_object_or_404

from rest_framework import filters, permissions, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.response import Response

from storefront.exceptions import UpstreamError

from .imaging import ImageError, check_image as probe_image, remove_background
from .importers import ImportRowsError, import_rows
from .models import BrandPosition, Decant, Fragrance, Profile, UserFragrance, brand_key
from .permissions import IsCatalogEditorOrReadOnly, IsStoreAdmin, IsStoreAdminOrReadOnly, can_edit_profile
from .serializers import (
    BrandPositionInSerializer,
    BrandPositionSerializer,
    BrandRepSerializer,
    DecantListingSerializer,
    DecantSerializer,
    FragranceDetailSerializer,
    FragranceSerializer,
    ImportFragranticaSerializer,
    PublishLayoutSerializer,
    RemoveBgSerializer,
    ShelfLinkSerializer,
    ShelfMoveSerializer,
)
from .services import (
    CatalogError,
    admin_stats as collect_admin_stats,
    arrange_shelf,
    as_pk,
    brand_reps as collect_brand_reps,
    delete_fragrance,
    owner_profile,
    publish_layout,
    save_brand_position,
    sort_decants,
)

logger = logging.getLogger(__name__)


def _profile_or_404(username) -> Profile:
    return get_object_or_404(Profile, username=username)


def _require_editor(request, profile):
    if not can_edit_profile(request.user, profile):
        return Response({"detail": "Only the profile owner or an admin may change this layout."},
                        status=status.HTTP_403_FORBIDDEN)
    return None


# ============================================================
# FragranceViewSet
# ============================================================
class FragranceViewSet(viewsets.ModelViewSet):
    """
    /api/fragrances/
      - q=oud               name/brand contains
      - brand=tom-ford      normalized brand slug (or raw brand name)
      - ordering=name|brand|last_modified
      - page=1
    """
    permission_classes = [IsCatalogEditorOrReadOnly]
    queryset = Fragrance.objects.order_by("brand_slug", "name")
    serializer_class = FragranceSerializer

    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["name", "brand", "notes"]
    ordering_fields = ["name", "brand", "last_modified"]

    def get_serializer_class(self):
        if self.action in ("retrieve", "by_slug"):
            return FragranceDetailSerializer
        return FragranceSerializer

    def get_queryset(self):
        qs = super().get_queryset()
        params = self.request.query_params

        brand = params.get("brand")
        if brand:
            qs = qs.filter(brand_slug=brand_key(brand))

        q = params.get("q")
        if q:
            qs = qs.filter(Q(name__icontains=q) | Q(brand__icontains=q))
        return qs

    def perform_destroy(self, instance):
        keep = self.request.query_params.get("delete_storage") == "false"
        delete_fragrance(instance, delete_storage=not keep)

    @action(detail=False, methods=["GET"], url_path=r"by-slug/(?P<slug>[-\w]+)")
    def by_slug(self, request, slug=None):
        fragrance = get_object_or_404(Fragrance, slug=slug)
        return Response(FragranceDetailSerializer(fragrance).data)


# ============================================================
# DecantViewSet
# ============================================================
class DecantViewSet(viewsets.ModelViewSet):
    """
    /api/decants/              in-stock decants, brand -> name -> size
    /api/decants/?all=true     every decant (admin only)
    """
    permission_classes = [IsStoreAdminOrReadOnly]
    queryset = Decant.objects.select_related("fragrance")
    serializer_class = DecantSerializer
    filter_backends = []

    def get_queryset(self):
        qs = super().get_queryset()
        # admins see every decant on detail routes, and on the listing with ?all=true
        widen = self.action != "list" or self.request.query_params.get("all") == "true"
        if not (widen and IsStoreAdmin().has_permission(self.request, self)):
            qs = qs.filter(in_stock=True)
        fragrance = self.request.query_params.get("fragrance")
        if fragrance:
            qs = qs.filter(fragrance_id=as_pk(fragrance))
        return qs

    def list(self, request, *args, **kwargs):
        rows = sort_decants(self.get_queryset())
        page = self.paginate_queryset(rows)
        if page is not None:
            return self.get_paginated_response(DecantListingSerializer(page, many=True).data)
        return Response(DecantListingSerializer(rows, many=True).data)


# ============================================================
# Brand reps / shelves / brand positions
# ============================================================
@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def brand_reps(request):
    username = request.query_params.get("user") or settings.STOREFRONT_OWNER_USERNAME
    profile = Profile.objects.filter(username=username).first()
    result = collect_brand_reps(profile)
    reps = BrandRepSerializer(result["reps"], many=True).data
    return Response({
        "ok": True,
        "mode": result["mode"],
        "linkCount": result["link_count"],
        "brandCount": len(reps),
        "reps": reps,
    })


@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def shelf(request, username):
    profile = _profile_or_404(username)
    links = (
        UserFragrance.objects
        .filter(profile=profile)
        .select_related("fragrance")
        .order_by("position", "id")
    )
    return Response({"username": profile.username, "links": ShelfLinkSerializer(links, many=True).data})


@api_view(["POST"])
def shelf_arrange(request, username):
    profile = _profile_or_404(username)
    denied = _require_editor(request, profile)
    if denied:
        return denied

    moves = request.data.get("moves") if isinstance(request.data, dict) else None
    if not isinstance(moves, list):
        return Response({"detail": "moves must be a list"}, status=status.HTTP_400_BAD_REQUEST)
    s = ShelfMoveSerializer(data=moves, many=True)
    s.is_valid(raise_exception=True)
    try:
        updated = arrange_shelf(profile, s.validated_data)
    except CatalogError as exc:
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    return Response({"ok": True, "updated": updated})


@api_view(["GET", "POST"])
@permission_classes([permissions.AllowAny])
def brand_positions(request, username):
    profile = _profile_or_404(username)

    if request.method == "GET":
        qs = BrandPosition.objects.filter(profile=profile).order_by("brand_key")
        if not can_edit_profile(request.user, profile):
            qs = qs.filter(is_public=True)
        return Response({"username": profile.username,
                         "positions": BrandPositionSerializer(qs, many=True).data})

    denied = _require_editor(request, profile)
    if denied:
        return denied
    s = BrandPositionInSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = s.validated_data
    pos = save_brand_position(profile, data["brand_key"], data["x_pct"], data["y_pct"])
    return Response(BrandPositionSerializer(pos).data)


@api_view(["POST"])
def publish_brand_layout(request, username):
    profile = _profile_or_404(username)
    denied = _require_editor(request, profile)
    if denied:
        return denied

    s = PublishLayoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        updated = publish_layout(profile, s.validated_data["mode"], s.validated_data.get("map"))
    except CatalogError as exc:
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if not updated:
        return Response({"ok": True, "updated": 0, "message": "No positions found for this user."})
    return Response({"ok": True, "updated": updated})


# ============================================================
# Admin utilities
# ============================================================
@api_view(["POST"])
@permission_classes([IsStoreAdmin])
def remove_bg(request):
    s = RemoveBgSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    fragrance = get_object_or_404(Fragrance, pk=s.validated_data["fragranceId"])

    owner = owner_profile()
    folder = owner.pk if owner else "shared"
    try:
        url = remove_background(fragrance, s.validated_data["imageUrl"], folder=str(folder))
    except ImageError as exc:
        logger.error("background removal failed for fragrance %s: %s", fragrance.pk, exc)
        if exc.upstream:
            raise UpstreamError(str(exc))
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    return Response({"ok": True, "url": url})


@api_view(["POST"])
@permission_classes([IsStoreAdmin])
def check_image(request):
    try:
        result = probe_image((request.data or {}).get("url"))
    except ImageError as exc:
        return Response({"ok": False, "detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(result)


@api_view(["POST"])
@permission_classes([IsStoreAdmin])
def import_fragrantica(request):
    s = ImportFragranticaSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data.get("targetUsername") or settings.STOREFRONT_OWNER_USERNAME
    profile = Profile.objects.filter(username=username).first()
    if profile is None:
        return Response({"detail": f"Profile not found for username={username}"},
                        status=status.HTTP_404_NOT_FOUND)
    try:
        report = import_rows(profile, s.validated_data["rows"])
    except ImportRowsError as exc:
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(report.as_dict())


@api_view(["GET"])
@permission_classes([IsStoreAdmin])
def admin_stats(request):
    owner = owner_profile()
    if owner is None:
        return Response({"detail": "Owner profile not found"}, status=status.HTTP_404_NOT_FOUND)
    return Response({"ok": True, **collect_admin_stats(owner)})
