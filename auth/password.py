"""
Password hashing and verification.

Uses bcrypt for password hashing with automatic
salting and configurable work factor.
"""

from __future__ import annotations

import asyncio
import secrets

import bcrypt

BCRYPT_ROUNDS = 10
# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a password with bcrypt (auto-salted, work factor 10 by default)."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except (ValueError, TypeError):
        return False


class PasswordHasher:
    """
    Async front for the bcrypt helpers.

    Hashing is CPU bound, so both calls run in a worker thread.  The decoy
    hash lets a login for an unknown user pay the same bcrypt cost as a
    wrong password.
    """

    def __init__(self, rounds: int = BCRYPT_ROUNDS) -> None:
        self.rounds = rounds
        self._decoy_hash = hash_password(secrets.token_urlsafe(16), rounds)

    async def hash(self, password: str) -> str:
        return await asyncio.to_thread(hash_password, password, self.rounds)

    async def verify(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(verify_password, password, password_hash)

    async def verify_decoy(self, password: str) -> bool:
        await self.verify(password, self._decoy_hash)
        return False
