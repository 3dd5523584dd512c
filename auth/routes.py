"""
Auth API routes: register, login, logout.

Route prefix: /auth
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status

from auth.dependencies import get_auth_service, get_current_token, get_current_user
from auth.jwt import TokenClaims
from auth.schemas import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
)
from auth.service import AuthService

router = APIRouter(tags=["auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    req: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    """Register a new Customer."""
    user_id = await service.register(req)
    return RegisterResponse(user_id=user_id)


@router.post("/login", response_model=LoginResponse)
async def login(
    req: LoginRequest,
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Login and receive a token, both in the body and as an HttpOnly cookie."""
    result = await service.login(req)

    settings = request.app.state.settings
    response.set_cookie(
        key=settings.cookie_name,
        value=result.token,
        expires=result.expires_at,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return LoginResponse(token=result.token, user=result.user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    claims: TokenClaims = Depends(get_current_user),
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Revoke the current token and clear the session cookie."""
    await service.logout(claims, token)

    settings = request.app.state.settings
    response.delete_cookie(
        key=settings.cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return MessageResponse(message="Logout successful!")
