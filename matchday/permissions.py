from django.conf import settings
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .exceptions import PermissionDeniedError


def can_manage(actor) -> bool:
    """Staff users and coaches may change tournament data"""
    if actor is None or not actor.is_authenticated:
        return False
    if actor.is_staff:
        return True
    return actor.groups.filter(name=settings.MATCHDAY_COACH_GROUP).exists()


def ensure_can_manage(actor):
    if not can_manage(actor):
        raise PermissionDeniedError("Only administrators and coaches can do this")


class IsAdminOrCoachOrReadOnly(BasePermission):
    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return bool(request.user and request.user.is_authenticated)
        return can_manage(request.user)
