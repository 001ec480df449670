from rest_framework.permissions import BasePermission


class IsOwner(BasePermission):
    """
    Permission class that ensures users can only access their own board.
    Objects expose the owning user as 'owner'.
    """

    def has_object_permission(self, request, view, obj):
        owner_id = getattr(obj, 'owner_id', None)
        if owner_id is None:
            return False
        return owner_id == request.user.id
