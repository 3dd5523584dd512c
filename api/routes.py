"""
User API routes: balance and profile for the authenticated user.

Route prefix: /user
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import NotFoundError
from auth.dependencies import db_session, get_current_user
from auth.jwt import TokenClaims
from auth.schemas import BalanceResponse, ProfileResponse, UserProfile
from database.models import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["user"])


async def _load_user(session: AsyncSession, user_id: int) -> User:
    result = await session.execute(select(User).where(User.user_id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        # Valid token for a user that no longer exists
        logger.warning("Token for unknown user %s", user_id)
        raise NotFoundError("USER_NOT_FOUND", "User not found.")
    return user


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    claims: TokenClaims = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> BalanceResponse:
    result = await session.execute(
        select(User.balance).where(User.user_id == claims.user_id)
    )
    balance = result.scalar_one_or_none()
    if balance is None:
        raise NotFoundError("USER_NOT_FOUND", "User not found.")
    return BalanceResponse(username=claims.username, balance=float(balance))


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    claims: TokenClaims = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> ProfileResponse:
    user = await _load_user(session, claims.user_id)
    return ProfileResponse(
        user=UserProfile(
            id=user.user_id,
            username=user.username,
            email=user.email,
            phone=user.phone,
            name=user.name,
            role=user.role,
            balance=float(user.balance),
            created_at=user.created_at,
        )
    )
