from rest_framework.permissions import BasePermission


def is_admin_user(user):
    """True for authenticated users carrying the admin role"""
    return bool(user and user.is_authenticated and getattr(user, 'role', None) == 'admin')


class IsAdminRole(BasePermission):
    """Allows access only to users with the admin role"""
    message = 'Admin role required.'

    def has_permission(self, request, view):
        return is_admin_user(request.user)
