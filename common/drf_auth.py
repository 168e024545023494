"""
Django REST Framework authentication and permission classes for JWT-based CareDesk authentication.

This module provides DRF-compatible authentication and permission classes that work with
the JWT middleware to provide consistent authentication across all API endpoints.
"""

from rest_framework import authentication, permissions
from django.contrib.auth.models import AnonymousUser
import logging

logger = logging.getLogger(__name__)

# Roles carried in the token's "role" claim
ADMIN = 'ADMIN'
DOCTOR = 'DOCTOR'
NURSE = 'NURSE'
RECEPTIONIST = 'RECEPTIONIST'
PATIENT = 'PATIENT'
LAB = 'LAB'
PHARMACY = 'PHARMACY'

ROLES = [ADMIN, DOCTOR, NURSE, RECEPTIONIST, PATIENT, LAB, PHARMACY]

# Commonly used role groups
STAFF_ROLES = [ADMIN, DOCTOR, NURSE, RECEPTIONIST]
CLINICAL_ROLES = [ADMIN, DOCTOR, NURSE]
FRONT_DESK_ROLES = [ADMIN, RECEPTIONIST]


class JWTAuthentication(authentication.BaseAuthentication):
    """
    DRF authentication class that uses the TokenUser set by JWTAuthenticationMiddleware.

    The actual JWT validation is done by the middleware. This class simply returns
    that user, making it compatible with DRF's permission system.
    """

    def authenticate(self, request):
        # Access the underlying Django request (not DRF's wrapped request)
        # to avoid recursion when accessing request.user
        django_request = request._request if hasattr(request, '_request') else request

        user = getattr(django_request, 'user', None)
        if user is not None and not isinstance(user, AnonymousUser):
            return (user, None)

        return None

    def authenticate_header(self, request):
        """
        Return a string to be used as the value of the `WWW-Authenticate`
        header in a `401 Unauthenticated` response.
        """
        return 'Bearer realm="api"'


class IsAuthenticated(permissions.BasePermission):
    """
    Simple permission class that only checks if user is authenticated via JWT.
    Use this when a view doesn't need role checks.
    """

    def has_permission(self, request, view):
        """Check if user is authenticated."""
        if not request.user or isinstance(request.user, AnonymousUser):
            return False

        return bool(getattr(request.user, 'is_authenticated', False))


class RolePermission(IsAuthenticated):
    """
    Permission class that checks the caller's role against the view's
    ``role_permissions`` mapping.

    Usage in views:

        role_permissions = {
            'list': STAFF_ROLES,
            'create': FRONT_DESK_ROLES,
            '*': [ADMIN],           # fallback for unlisted actions
        }

    ADMIN is always allowed. Actions missing from the mapping (and without a
    '*' fallback) are denied.
    """

    # Default action to permission mapping for non-ViewSet views
    method_action_map = {
        'get': 'list',
        'post': 'create',
        'put': 'update',
        'patch': 'partial_update',
        'delete': 'destroy',
    }

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False

        role = getattr(request.user, 'role', None)
        if role == ADMIN:
            return True

        action = getattr(view, 'action', None) or self.method_action_map.get(request.method.lower())
        allowed = self.get_allowed_roles(view, action)

        if role not in allowed:
            logger.warning(
                f"Role '{role}' denied for {view.__class__.__name__}.{action} "
                f"(user: {getattr(request.user, 'email', None)})"
            )
            return False
        return True

    def get_allowed_roles(self, view, action):
        mapping = getattr(view, 'role_permissions', None) or {}
        if action in mapping:
            return mapping[action]
        return mapping.get('*', [])

