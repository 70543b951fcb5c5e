"""
Role-Based Permissions for the moderation API.

Maps UserProfile.role to DRF permission classes.

Roles:
- user: submits content and person suggestions
- moderator: reviews submissions and person suggestions
- admin: everything a moderator can do, plus publishing persons

Usage:
    from apps.core.permissions import IsModerator, IsAdmin

    class MyView(APIView):
        permission_classes = [IsAuthenticated, IsModerator]
"""

import logging

from rest_framework.permissions import BasePermission

from apps.core.middleware import bind_request_user

logger = logging.getLogger(__name__)

ROLE_LEVELS = {
    'user': 1,
    'moderator': 2,
    'admin': 3,
}


def get_user_role(user):
    """
    Helper function to get user's role.

    Returns: 'user', 'moderator', 'admin', or None for anonymous users
    """
    if not user or not user.is_authenticated:
        return None

    if user.is_superuser:
        return 'admin'

    from apps.core.models import UserProfile
    try:
        return UserProfile.objects.only('role').get(user=user).role
    except UserProfile.DoesNotExist:
        return 'user'


def has_role(user, required_role):
    """
    Check if user has at least the required role level.

    Role hierarchy: admin > moderator > user
    """
    user_role = get_user_role(user)
    if not user_role:
        return False

    return ROLE_LEVELS.get(user_role, 0) >= ROLE_LEVELS.get(required_role, 0)


class RolePermission(BasePermission):
    """Base class for role-based permissions."""

    # Override in subclasses
    required_role = 'admin'

    def has_permission(self, request, view):
        bind_request_user(request.user)
        allowed = has_role(request.user, self.required_role)
        if not allowed and request.user and request.user.is_authenticated:
            logger.info(
                "User %s denied %s access to %s",
                request.user.pk, self.required_role, request.path,
            )
        return allowed


class IsModerator(RolePermission):
    """Reviewing submissions and person suggestions."""
    required_role = 'moderator'
    message = "Moderator access required."


class IsAdmin(RolePermission):
    """Previewing slugs and publishing person suggestions."""
    required_role = 'admin'
    message = "Admin access required."
