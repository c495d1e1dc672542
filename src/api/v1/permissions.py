"""Custom DRF permissions for the campaign dashboard."""
from rest_framework.permissions import SAFE_METHODS, BasePermission


class IsAdminOrManager(BasePermission):
    """Superusers, admins and store managers."""

    message = "Action reservee aux administrateurs et gerants."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if user.is_superuser:
            return True
        return bool(getattr(user, "can_manage_campaigns", False))


class IsManagerOrReadOnly(IsAdminOrManager):
    """Any authenticated user may read; writes need :class:`IsAdminOrManager`."""

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return bool(request.user and request.user.is_authenticated)
        return super().has_permission(request, view)
