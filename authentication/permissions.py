"""
Custom permissions for CleanCity Backend.

Implements role-based access control:
- Admin: report management and analytics
- Driver: work on assigned reports
- Citizen: report submission, status viewing

All permissions check that the account is active.
"""

from rest_framework import permissions


class IsAdmin(permissions.BasePermission):
    """
    Permission for administrators only.

    Admins have:
    - Report assignment and rejection
    - Analytics dashboards
    - Cache maintenance
    """

    message = "This action requires administrator access."

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False

        if not request.user.is_active:
            return False

        return request.user.is_admin


class IsAdminOrDriver(permissions.BasePermission):
    """
    Permission for workflow staff (admins and drivers).
    """

    message = "This action requires staff access."

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False

        if not request.user.is_active:
            return False

        return request.user.is_admin or request.user.is_driver
