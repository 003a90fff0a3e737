"""Role & object access helpers."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from rest_framework.exceptions import PermissionDenied

from DocumentWorkflowApp.core.choices import UserRole


@dataclass(frozen=True)
class Principal:
    """Authenticated identity attached to a request, built from token claims only.

    Claims are frozen at login: a role change by a curator takes effect on the
    affected user's next login.
    """
    id: int
    email: str
    name: str
    role: str

    is_authenticated = True
    is_anonymous = False

    @property
    def pk(self) -> int:
        return self.id

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"


def has_role(principal: Any, roles: Iterable[str]) -> bool:
    """Plain set membership: no role implies another."""
    if principal is None or not getattr(principal, "is_authenticated", False):
        return False
    return getattr(principal, "role", None) in set(roles)


def authorize(principal: Any, roles: Iterable[str]) -> None:
    """Raise PermissionDenied unless the principal holds one of ``roles``."""
    roles = set(roles)
    if not has_role(principal, roles):
        labels = ", ".join(sorted(UserRole(r).label for r in roles))
        raise PermissionDenied(f"Role required: {labels}")

