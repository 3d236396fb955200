"""
Authorization guards.

All guards are thin wrappers around :func:`evaluate`, which checks a resolved
principal against a :class:`Requirement` and returns either ``Authorized`` or
``Denied``. A denial is a value, never an exception; only the FastAPI
dependency produced by :func:`authorize` turns it into an HTTP error, keeping
the guard's message and status unchanged.
"""

import logging
from dataclasses import dataclass
from typing import Annotated, FrozenSet, Optional, Union
from fastapi import Depends

from campus_backend.api.exceptions import exception_for_status
from campus_backend.permissions.auth import get_current_principal
from campus_backend.permissions.matrix import Capability, Role, has_permission
from campus_backend.permissions.principal import Principal

logger = logging.getLogger(__name__)

UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class Authorized:
    role: Role
    principal: Principal


@dataclass(frozen=True)
class Denied:
    error: str
    status: int


AuthResult = Union[Authorized, Denied]


@dataclass(frozen=True)
class Requirement:
    """Roles and/or capability an authenticated principal must satisfy."""

    roles: Optional[FrozenSet[Role]] = None
    capability: Optional[Union[Capability, str]] = None
    error: str = "forbidden"


AUTHENTICATED = Requirement()
ADMIN_ONLY = Requirement(roles=frozenset({Role.ADMIN}), error="admin access required")
ADMIN_OR_TEACHER = Requirement(roles=frozenset({Role.ADMIN, Role.TEACHER}), error="admin or teacher access required")


def permission(capability: Union[Capability, str]) -> Requirement:
    name = capability.value if isinstance(capability, Capability) else capability
    return Requirement(capability=capability, error=f"permission denied: {name}")


def evaluate(principal: Optional[Principal], requirement: Requirement) -> AuthResult:
    if principal is None:
        return Denied(UNAUTHORIZED, 401)

    role = Role.parse(principal.role)

    if requirement.roles is not None and role not in requirement.roles:
        return Denied(requirement.error, 403)

    if requirement.capability is not None and not has_permission(role, requirement.capability):
        return Denied(requirement.error, 403)

    return Authorized(role=role, principal=principal)


def require_auth(principal: Optional[Principal]) -> AuthResult:
    return evaluate(principal, AUTHENTICATED)


def require_admin(principal: Optional[Principal]) -> AuthResult:
    return evaluate(principal, ADMIN_ONLY)


def require_admin_or_teacher(principal: Optional[Principal]) -> AuthResult:
    return evaluate(principal, ADMIN_OR_TEACHER)


def require_permission(principal: Optional[Principal], capability: Union[Capability, str]) -> AuthResult:
    return evaluate(principal, permission(capability))


def authorize(requirement: Requirement):
    """Build a FastAPI dependency enforcing ``requirement``."""

    async def dependency(principal: Annotated[Optional[Principal], Depends(get_current_principal)]) -> Authorized:
        result = evaluate(principal, requirement)

        if isinstance(result, Denied):
            logger.info(f"Request denied ({result.status}): {result.error}")
            raise exception_for_status(result.status, result.error)

        return result

    return dependency


RequireAuth = Annotated[Authorized, Depends(authorize(AUTHENTICATED))]
RequireAdmin = Annotated[Authorized, Depends(authorize(ADMIN_ONLY))]
RequireAdminOrTeacher = Annotated[Authorized, Depends(authorize(ADMIN_OR_TEACHER))]


def RequirePermission(capability: Capability):
    return Annotated[Authorized, Depends(authorize(permission(capability)))]


def effective_grade_edit_permission(role: Union[Role, str], teacher=None) -> bool:
    """Role grant for grade edits, widened by the per teacher override flag."""
    role_grant = has_permission(role, Capability.EDIT_GRADES)
    override = bool(teacher is not None and getattr(teacher, "can_edit_grades", False))
    return role_grant or override
