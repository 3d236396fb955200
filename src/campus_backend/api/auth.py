import logging
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from campus_backend.api.responses import ok
from campus_backend.database import get_db
from campus_backend.interface.auth import LoginRequest, LoginResponse, SessionInfo, SessionPrincipal
from campus_backend.permissions.auth import AuthenticationService, SessionStore, get_session_store, parse_session_token
from campus_backend.permissions.guards import RequireAuth
from campus_backend.settings import settings

auth_router = APIRouter()
logger = logging.getLogger(__name__)


@auth_router.post("/login")
async def login(credentials: LoginRequest, response: Response,
                store: Annotated[SessionStore, Depends(get_session_store)],
                db: Session = Depends(get_db)):

    principal = AuthenticationService.authenticate_password(credentials.email, credentials.password, db)

    token = await store.create(principal)

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=store.ttl,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )

    logger.info(f"User {principal.user_id} signed in as {principal.role.value}")

    return ok(LoginResponse(token=token, principal=SessionPrincipal(**principal.model_dump())))


@auth_router.post("/logout")
async def logout(request: Request, response: Response,
                 store: Annotated[SessionStore, Depends(get_session_store)]):

    token: Optional[str] = parse_session_token(request)
    await store.revoke(token)

    response.delete_cookie(settings.SESSION_COOKIE_NAME)

    return ok(message="Signed out")


@auth_router.get("/session")
def current_session(auth: RequireAuth):
    return ok(SessionInfo(
        principal=SessionPrincipal(**auth.principal.model_dump()),
        permissions=dict(auth.principal.permissions),
    ))
