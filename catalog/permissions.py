from rest_framework import permissions

from .models import Profile


def profile_for(user):
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    try:
        return user.profile
    except Profile.DoesNotExist:
        return None


def is_store_admin(user) -> bool:
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    if user.is_staff or user.is_superuser:
        return True
    prof = profile_for(user)
    return bool(prof and prof.is_admin)


def can_edit_profile(user, profile: Profile) -> bool:
    """The profile's own user, or an admin."""
    if is_store_admin(user):
        return True
    prof = profile_for(user)
    return bool(prof and profile and prof.pk == profile.pk)


def can_edit_catalog(user) -> bool:
    """Fragrance metadata belongs to the storefront owner's catalog."""
    if is_store_admin(user):
        return True
    prof = profile_for(user)
    return bool(prof and prof.is_owner)


class IsStoreAdmin(permissions.BasePermission):
    message = "Admin privilege required."

    def has_permission(self, request, view):
        return is_store_admin(request.user)


class IsCatalogEditorOrReadOnly(permissions.BasePermission):
    message = "Only the storefront owner or an admin may edit the catalog."

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return can_edit_catalog(request.user)


class IsStoreAdminOrReadOnly(permissions.BasePermission):
    message = "Admin privilege required."

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return is_store_admin(request.user)
