"""Permission classes for group endpoints."""

from rest_framework.permissions import BasePermission


class IsGroupMember(BasePermission):
    """Only members may read or write a group."""

    message = "You are not a member of this group."

    def has_object_permission(self, request, view, obj):
        return obj.is_member(request.user)
