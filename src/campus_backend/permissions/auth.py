"""
Session based principal resolution.

Sessions are opaque tokens stored in the session cache. Browsers carry the
token in a cookie, API clients send it as a bearer token. A missing, unknown or
expired token is a normal outcome and resolves to ``None``; failures of the
cache itself propagate to the caller.
"""

import json
import logging
import secrets
from typing import Optional
from aiocache import BaseCache
from fastapi import Depends, Request
from fastapi.security.utils import get_authorization_scheme_param
from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.orm import Session

from campus_backend.api.exceptions import InvalidCredentialsException
from campus_backend.interface.tokens import decrypt_password
from campus_backend.model.auth import User
from campus_backend.permissions.principal import Principal
from campus_backend.redis_cache import get_redis_client
from campus_backend.settings import settings

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session"


def session_cache_key(token: str) -> str:
    return f"{SESSION_KEY_PREFIX}:{token}"


class SessionStore:
    """Issues, resolves and revokes session tokens."""

    def __init__(self, cache: BaseCache, ttl: Optional[int] = None):
        self.cache = cache
        self.ttl = ttl if ttl is not None else settings.SESSION_TTL

    async def create(self, principal: Principal) -> str:
        token = secrets.token_urlsafe(32)
        await self.cache.set(session_cache_key(token), principal.model_dump_json(), ttl=self.ttl)
        return token

    async def get(self, token: Optional[str]) -> Optional[Principal]:
        if not token:
            return None

        payload = await self.cache.get(session_cache_key(token))

        if payload is None:
            return None

        try:
            data = json.loads(payload) if isinstance(payload, (str, bytes)) else payload
            return Principal.model_validate(data)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Discarding malformed session payload: {e}")
            return None

    async def revoke(self, token: Optional[str]) -> bool:
        if not token:
            return False
        return bool(await self.cache.delete(session_cache_key(token)))


class AuthenticationService:

    @staticmethod
    def authenticate_password(email: str, password: str, db: Session) -> Principal:
        user = db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

        if user is None:
            raise InvalidCredentialsException()

        if password != decrypt_password(user.password):
            raise InvalidCredentialsException()

        return Principal(
            user_id=user.id,
            role=user.role,
            related_id=user.related_id,
            name=user.name,
            email=user.email,
        )


def parse_session_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, falling back to the session cookie."""
    authorization = request.headers.get("Authorization")

    if authorization:
        scheme, param = get_authorization_scheme_param(authorization)
        if scheme.lower() == "bearer" and param:
            return param

    return request.cookies.get(settings.SESSION_COOKIE_NAME) or None


async def resolve_principal(request: Request, cache: Optional[BaseCache] = None) -> Optional[Principal]:
    if cache is None:
        cache = await get_redis_client()
    return await SessionStore(cache).get(parse_session_token(request))


async def get_current_principal(
    request: Request,
    cache: BaseCache = Depends(get_redis_client)
) -> Optional[Principal]:
    """FastAPI dependency resolving the session's principal, or None without a session."""
    return await resolve_principal(request, cache)


async def get_session_store(cache: BaseCache = Depends(get_redis_client)) -> SessionStore:
    return SessionStore(cache)
