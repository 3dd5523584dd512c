"""
Session registry: audit rows for issued tokens and logout revocation.

Rows are keyed by the token's SHA-256 digest.  Every operation runs in its
own short-lived session so a registry failure never rolls back the
caller's transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from auth.jwt import token_digest
from database.models import UserToken

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record(self, user_id: int, token: str, expires_at: datetime) -> None:
        """Insert an audit row for a freshly issued token."""
        async with self._session_factory() as session:
            session.add(
                UserToken(
                    token_digest=token_digest(token),
                    user_id=user_id,
                    expires_at=expires_at,
                )
            )
            await session.commit()

    async def _find(self, session: AsyncSession, digest: str) -> Optional[UserToken]:
        result = await session.execute(
            select(UserToken).where(UserToken.token_digest == digest)
        )
        return result.scalar_one_or_none()

    async def revoke(self, user_id: int, token: str, expires_at: datetime) -> None:
        """
        Mark a token revoked.

        If the token never got an audit row (its ``record`` failed), a
        revoked row is inserted instead.
        """
        digest = token_digest(token)
        now = datetime.now(timezone.utc)
        async with self._session_factory() as session:
            row = await self._find(session, digest)
            if row is None:
                session.add(
                    UserToken(
                        token_digest=digest,
                        user_id=user_id,
                        expires_at=expires_at,
                        revoked_at=now,
                    )
                )
            elif row.revoked_at is None:
                row.revoked_at = now
            try:
                await session.commit()
            except IntegrityError:
                # A concurrent logout inserted the row first
                await session.rollback()
                await session.execute(
                    update(UserToken)
                    .where(UserToken.token_digest == digest, UserToken.revoked_at.is_(None))
                    .values(revoked_at=now)
                )
                await session.commit()
        logger.info("Revoked token for user %s", user_id)

    async def is_revoked(self, token: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserToken.revoked_at).where(
                    UserToken.token_digest == token_digest(token)
                )
            )
            revoked_at = result.scalar_one_or_none()
        return revoked_at is not None
