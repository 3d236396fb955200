"""
Role based access control.

- matrix: roles, capabilities, permission and route tables
- principal: the authenticated actor
- auth: session store and principal resolution
- guards: authorization checks and FastAPI dependencies
- scoping: per role query restriction
- routes: page navigation decisions
"""

from campus_backend.permissions.matrix import (
    Capability,
    Role,
    ROLE_PERMISSIONS,
    ROLE_ROUTES,
    can_access_route,
    get_permissions,
    has_permission,
    is_admin,
    is_student,
    is_teacher,
)
from campus_backend.permissions.principal import Principal
from campus_backend.permissions.auth import SessionStore, get_current_principal
from campus_backend.permissions.guards import (
    Authorized,
    Denied,
    Requirement,
    authorize,
    effective_grade_edit_permission,
    evaluate,
    require_admin,
    require_admin_or_teacher,
    require_auth,
    require_permission,
)

__all__ = [
    'Capability',
    'Role',
    'ROLE_PERMISSIONS',
    'ROLE_ROUTES',
    'can_access_route',
    'get_permissions',
    'has_permission',
    'is_admin',
    'is_student',
    'is_teacher',
    'Principal',
    'SessionStore',
    'get_current_principal',
    'Authorized',
    'Denied',
    'Requirement',
    'authorize',
    'effective_grade_edit_permission',
    'evaluate',
    'require_admin',
    'require_admin_or_teacher',
    'require_auth',
    'require_permission',
]
