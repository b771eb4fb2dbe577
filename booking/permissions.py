# booking/permissions.py
#
# Purpose:
# - Tenant scoping for authenticated dashboard endpoints.
#
# Notes:
# - Authentication itself is Django's (session / basic). We only trust the
#   resulting request.user and map it to its Professional.
#
from rest_framework.permissions import BasePermission

from .exceptions import AuthorizationError
from .models import Professional


def current_professional(request):
    """
    The Professional behind request.user. Raises AuthorizationError for
    authenticated users without a business account (e.g. plain admins).
    """
    try:
        return request.user.professional
    except (AttributeError, Professional.DoesNotExist):
        raise AuthorizationError("No professional account for this user")


class IsProfessional(BasePermission):
    """
    Authenticated users that own a Professional account.
    Anonymous users fall through to DRF's NotAuthenticated (401).
    """
    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        current_professional(request)
        return True
