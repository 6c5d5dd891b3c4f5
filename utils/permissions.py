from rest_framework import permissions


class IsAdmin(permissions.BasePermission):
    """
    Permission for staff administrators only
    """
    def has_permission(self, request, view):
        return bool(
            request.user and
            request.user.is_authenticated and
            request.user.is_staff
        )


class IsTutor(permissions.BasePermission):
    """
    Permission for users linked to a tutor profile
    """
    def has_permission(self, request, view):
        return bool(
            request.user and
            request.user.is_authenticated and
            getattr(request.user, "tutor_profile", None) is not None
        )


class IsAdminOrReadOnly(permissions.BasePermission):
    """
    Read-only for everyone, write for admins only
    """
    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True

        return bool(
            request.user and
            request.user.is_authenticated and
            request.user.is_staff
        )
