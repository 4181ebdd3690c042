from rest_framework.permissions import BasePermission

from core.exceptions import AuthorizationException, NotFoundException


def get_instructor(user):
    """Instructor profile of a user, or None."""
    return getattr(user, "instructor", None) if user and user.is_authenticated else None


class IsInstructor(BasePermission):
    """Allows access only to users with an instructor profile."""

    message = "Only instructors can perform this action."

    def has_permission(self, request, view):
        return get_instructor(request.user) is not None


def get_owned_object(queryset, pk, instructor, resource: str):
    """
    Load an object owned by ``instructor``.

    Raises:
        NotFoundException: The object does not exist
        AuthorizationException: The object belongs to another instructor
    """
    obj = queryset.filter(pk=pk).first()
    if obj is None:
        raise NotFoundException(f"No {resource} found with that ID", resource=resource)
    if obj.instructor_id != instructor.pk:
        raise AuthorizationException(f"You do not own this {resource}.")
    return obj
