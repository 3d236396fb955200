"""
Page navigation gate.

``evaluate_navigation`` is the decision the route middleware takes for a
single page request: pass paths outside the protected sections through,
send visitors without a session to the landing page, and send principals
whose role does not own the section back to the application root.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from campus_backend.permissions.matrix import ROOT_PATH, Role, can_access_route, is_protected_path
from campus_backend.permissions.principal import Principal


class Navigation(str, Enum):
    BYPASS = "bypass"
    ALLOW = "allow"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class RouteDecision:
    outcome: Navigation
    redirect_to: Optional[str] = None
    role: Optional[Role] = None

    @property
    def allowed(self) -> bool:
        return self.outcome != Navigation.REDIRECT


def evaluate_navigation(path: str, principal: Optional[Principal], landing_path: str) -> RouteDecision:
    if not is_protected_path(path):
        return RouteDecision(Navigation.BYPASS)

    if principal is None:
        return RouteDecision(Navigation.REDIRECT, redirect_to=landing_path)

    role = Role.parse(principal.role)

    if not can_access_route(role, path):
        return RouteDecision(Navigation.REDIRECT, redirect_to=ROOT_PATH, role=role)

    return RouteDecision(Navigation.ALLOW, role=role)
