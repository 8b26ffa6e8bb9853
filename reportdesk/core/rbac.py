from __future__ import annotations

from typing import Dict, Iterable

from fastapi import HTTPException, status

from reportdesk.models.enums import Role


ROLE_CAPABILITIES: dict[Role, Dict[str, bool]] = {
    Role.ADMIN: {
        "manage_users": True,
        "assign_students": False,
        "review_reports": False,
        "submit_reports": False,
        "view_department": False,
        "view_activity": True,
    },
    Role.HOD: {
        "manage_users": False,
        "assign_students": False,
        "review_reports": False,
        "submit_reports": False,
        "view_department": True,
        "view_activity": False,
    },
    Role.LEVEL_COORDINATOR: {
        "manage_users": False,
        "assign_students": True,
        "review_reports": False,
        "submit_reports": False,
        "view_department": False,
        "view_activity": False,
    },
    Role.SUPERVISOR: {
        "manage_users": False,
        "assign_students": False,
        "review_reports": True,
        "submit_reports": False,
        "view_department": False,
        "view_activity": False,
    },
    Role.STUDENT: {
        "manage_users": False,
        "assign_students": False,
        "review_reports": False,
        "submit_reports": True,
        "view_department": False,
        "view_activity": False,
    },
}


def get_capabilities(role: Role) -> Dict[str, bool]:
    return dict(ROLE_CAPABILITIES.get(role, {}))


def get_capabilities_for_user(user) -> Dict[str, bool]:
    return get_capabilities(user.role)


def user_has_any_role(user, roles: Iterable[Role]) -> bool:
    return user.role in set(roles)


def require_roles(user, required_roles: Iterable[Role]) -> None:
    """
    Require that the user has at least one of the specified roles.
    Raises HTTPException with 403 status if user doesn't have required roles.
    """
    required_roles = list(required_roles)
    if not user_has_any_role(user, required_roles):
        role_names = ", ".join(role.value for role in required_roles)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. Required roles: {role_names}",
        )
