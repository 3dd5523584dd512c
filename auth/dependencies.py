"""
FastAPI dependencies for authentication.

``get_current_user`` is the guard used by every protected route: it pulls
the token from the ``Authorization: Bearer`` header (preferred) or the
session cookie, verifies it and attaches the claims to ``request.state``.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import AuthError
from auth.jwt import TokenClaims, TokenError, TokenExpiredError
from auth.service import AuthService
from database.session import get_db_session

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)

_TOKEN_MESSAGES = {
    "TOKEN_EXPIRED": "Token expired. Please login again.",
    "INVALID_TOKEN": "Invalid token. Please login again.",
}


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


def extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    cookie_name = request.app.state.settings.cookie_name
    return request.cookies.get(cookie_name) or None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> TokenClaims:
    """
    Extract and verify the session token, returning its claims.

    Raises ``AuthError`` with code ``NO_TOKEN``, ``TOKEN_EXPIRED``,
    ``INVALID_TOKEN`` or ``TOKEN_REVOKED``.
    """
    token = extract_token(request, credentials)
    if token is None:
        raise AuthError("NO_TOKEN", "No token provided. Please login first.")

    state = request.app.state
    try:
        claims = state.token_issuer.verify(token)
    except TokenError as exc:
        level = logging.INFO if isinstance(exc, TokenExpiredError) else logging.WARNING
        logger.log(level, "Rejected token on %s: %s", request.url.path, exc)
        raise AuthError(exc.code, _TOKEN_MESSAGES[exc.code]) from None

    if await state.session_registry.is_revoked(token):
        logger.info("Revoked token used by user %s", claims.user_id)
        raise AuthError("TOKEN_REVOKED", "Token has been revoked. Please login again.")

    request.state.user = claims
    request.state.token = token
    return claims


async def get_current_token(
    request: Request,
    claims: TokenClaims = Depends(get_current_user),
) -> str:
    """Raw token of the authenticated request (needed to revoke it)."""
    return request.state.token


async def get_auth_service(
    request: Request,
    session: AsyncSession = Depends(db_session),
) -> AuthService:
    state = request.app.state
    return AuthService(
        session,
        hasher=state.password_hasher,
        issuer=state.token_issuer,
        registry=state.session_registry,
        policy=state.auth_policy,
    )
