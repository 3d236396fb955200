import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from campus_backend.permissions.auth import resolve_principal
from campus_backend.permissions.matrix import is_protected_path
from campus_backend.permissions.routes import Navigation, evaluate_navigation
from campus_backend.settings import settings

logger = logging.getLogger(__name__)


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """Redirects page navigations the session's role may not make."""

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if request.method not in ("GET", "HEAD") or not is_protected_path(path):
            return await call_next(request)

        principal = await resolve_principal(request)
        decision = evaluate_navigation(path, principal, settings.LANDING_PATH)

        if decision.outcome == Navigation.REDIRECT:
            role = decision.role.value if decision.role else "anonymous"
            logger.info(f"Navigation to {path} redirected to {decision.redirect_to} ({role})")
            return RedirectResponse(url=decision.redirect_to, status_code=307)

        request.state.principal = principal

        return await call_next(request)
