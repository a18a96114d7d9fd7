from rest_framework.permissions import BasePermission


class IsClient(BasePermission):
    """
    Allows access only to users with user_type == 'client'.
    Keeps role check logic centralized.
    """
    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return getattr(user, "user_type", None) == "client"


class IsPartner(BasePermission):
    """Allows access only to partners (vehicle owners / drivers)."""
    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return getattr(user, "user_type", None) == "partner"
