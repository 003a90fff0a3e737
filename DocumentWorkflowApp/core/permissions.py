"""Custom DRF permission classes gating endpoints by role."""

from typing import Any

from rest_framework.permissions import BasePermission
from rest_framework.request import Request

from DocumentWorkflowApp.core.access import has_role
from DocumentWorkflowApp.core.choices import UserRole


class RoleRequired(BasePermission):
    """Allow access if the principal's role is listed in ``allowed_roles``."""
    allowed_roles: frozenset[str] = frozenset()

    def has_permission(self, request: Request, view: Any) -> bool:
        return has_role(request.user, self.allowed_roles)


class IsStudent(RoleRequired):
    allowed_roles = frozenset({UserRole.STUDENT})


class IsCurator(RoleRequired):
    """Curator-only endpoints (role management, finalization)."""
    allowed_roles = frozenset({UserRole.CURATOR})


class IsTeacherOrCurator(RoleRequired):
    """Document authors: teachers and curators may create, review and download."""
    allowed_roles = frozenset({UserRole.TEACHER, UserRole.CURATOR})

