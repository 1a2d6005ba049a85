from rest_framework import permissions


class AllowCreateOrAuthenticated(permissions.BasePermission):
    """
    Anyone may create (respondents are anonymous); reading and changing
    require an authenticated operator.
    """

    def has_permission(self, request, view):
        if getattr(view, "action", None) == "create":
            return True
        return bool(request.user and request.user.is_authenticated)
