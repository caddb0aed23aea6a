# tracking_core/services/directory.py
"""
Django-backed lookups for the collaborators the tracking workflow borrows:
actor credential check, department directory, role directory.

The workflow service receives these as constructor arguments, so tests and
alternative deployments can pass their own objects with the same methods.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from django.contrib.auth import get_user_model

from tracking_core.exceptions import NotFound, Unauthorized
from tracking_core.models import Department, Role, RoleStatus, StaffProfile


USER_NOT_FOUND = "User not found"
DEPARTMENT_NOT_FOUND = "Department not found"


class ActorVerifier:
    """verify(user_id, password) -> User, or NotFound / Unauthorized."""

    def verify(self, user_id, password: Optional[str]):
        User = get_user_model()
        try:
            user = User.objects.get(pk=user_id, is_active=True)
        except (User.DoesNotExist, ValueError, TypeError):
            raise NotFound(USER_NOT_FOUND)

        if not password or not user.check_password(password):
            raise Unauthorized()
        return user


class DepartmentDirectory:
    def get(self, department_id, *, message: str = DEPARTMENT_NOT_FOUND) -> Department:
        try:
            return Department.objects.get(pk=department_id, is_active=True)
        except (Department.DoesNotExist, ValueError, TypeError):
            raise NotFound(message)


class RoleDirectory:
    def by_ids(self, ids: Iterable) -> List[Role]:
        clean = []
        for value in ids:
            try:
                clean.append(int(value))
            except (TypeError, ValueError):
                continue
        return list(Role.objects.filter(pk__in=clean))

    def by_names(self, names: Iterable[str]) -> List[Role]:
        return list(Role.objects.filter(name__in=list(names)))

    def role_for_user(self, user) -> Optional[Role]:
        profile = (
            StaffProfile.objects.select_related("role")
            .filter(user_id=getattr(user, "pk", None))
            .first()
        )
        return profile.role if profile else None

    def allowed_statuses(self, role: Optional[Role]) -> List[str]:
        """
        Active sub-statuses assigned to the role. Empty list = unrestricted.
        """
        if role is None:
            return []
        return list(
            RoleStatus.objects.filter(role=role, is_active=True)
            .order_by("display_order", "status")
            .values_list("status", flat=True)
        )
