"""
Auth service: registration, login and logout.

One ``AuthService`` is built per request around that request's DB session;
it keeps no state between requests.  Which natural keys are unique and
which one is used to log in is described by ``AuthPolicy``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import AuthError, ConflictError, ValidationError
from auth.jwt import TokenClaims, TokenIssuer
from auth.password import MAX_PASSWORD_BYTES, PasswordHasher
from auth.schemas import LoginRequest, RegisterRequest, UserSummary
from auth.sessions import SessionRegistry
from config.settings import Settings
from database.models import CUSTOMER_ROLE, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthPolicy:
    unique_fields: Tuple[str, ...] = ("username", "email")
    login_field: str = "username"
    required_fields: Tuple[str, ...] = ("username", "email", "password")
    starting_balance: int = 100000

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthPolicy":
        return cls(
            login_field=settings.login_field,
            starting_balance=settings.starting_balance,
        )


@dataclass(frozen=True)
class LoginResult:
    token: str
    expires_at: datetime
    user: UserSummary


def _missing(*values: Optional[str]) -> bool:
    return any(value is None or not value.strip() for value in values)


def _check_password_length(password: str) -> None:
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            "PASSWORD_TOO_LONG",
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes.",
        )


class AuthService:
    def __init__(
        self,
        session: AsyncSession,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
        registry: SessionRegistry,
        policy: AuthPolicy,
    ) -> None:
        self._session = session
        self._hasher = hasher
        self._issuer = issuer
        self._registry = registry
        self._policy = policy

    async def register(self, req: RegisterRequest) -> int:
        """Create a Customer account and return its ``user_id``."""
        required = [getattr(req, field) for field in self._policy.required_fields]
        if _missing(*required):
            raise ValidationError("MISSING_FIELDS", "Please provide all required fields.")
        if req.role is not None and req.role != CUSTOMER_ROLE:
            raise ValidationError("INVALID_ROLE", "Only Customer role is allowed.")
        _check_password_length(req.password)

        username = req.username.strip()
        email = req.email.strip().lower()
        values = {"username": username, "email": email}

        clauses = [getattr(User, field) == values[field] for field in self._policy.unique_fields]
        result = await self._session.execute(select(User.user_id).where(or_(*clauses)).limit(1))
        if result.scalar_one_or_none() is not None:
            raise ConflictError("USER_EXISTS", "Username or email already exists.")

        user = User(
            username=username,
            email=email,
            password_hash=await self._hasher.hash(req.password),
            phone=req.phone or None,
            name=req.name or None,
            role=CUSTOMER_ROLE,
            balance=self._policy.starting_balance,
        )
        self._session.add(user)
        try:
            await self._session.flush()
            # Commit before the 201 goes out; dependency teardown may run after the response
            await self._session.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same key
            await self._session.rollback()
            logger.info("Duplicate registration for %s caught at insert", username)
            raise ConflictError("USER_EXISTS", "Username or email already exists.") from None

        logger.info("Registered user %s (%s)", username, user.user_id)
        return user.user_id

    async def login(self, req: LoginRequest) -> LoginResult:
        """Check credentials and issue a session token."""
        login_field = self._policy.login_field
        identifier = getattr(req, login_field)
        if _missing(identifier, req.password):
            raise ValidationError(
                "MISSING_FIELDS", f"Please provide {login_field} and password."
            )
        identifier = identifier.strip()
        if login_field == "email":
            identifier = identifier.lower()

        result = await self._session.execute(
            select(User).where(getattr(User, login_field) == identifier)
        )
        user = result.scalar_one_or_none()

        if user is None:
            await self._hasher.verify_decoy(req.password)
            verified = False
        else:
            verified = await self._hasher.verify(req.password, user.password_hash)
        if not verified:
            logger.info("Failed login for %s=%s", login_field, identifier)
            raise AuthError("INVALID_CREDENTIALS", "Invalid username or password.")

        token, claims = self._issuer.mint(user.user_id, user.username, user.role)
        expires_at = datetime.fromtimestamp(claims.expires_at, tz=timezone.utc)

        try:
            await self._registry.record(user.user_id, token, expires_at)
        except SQLAlchemyError:
            # The token is self-verifying; a missing audit row does not invalidate it
            logger.warning("Could not record token for user %s", user.user_id, exc_info=True)

        logger.info("Login: %s (%s)", user.username, user.user_id)
        return LoginResult(
            token=token,
            expires_at=expires_at,
            user=UserSummary(
                id=user.user_id,
                username=user.username,
                email=user.email,
                role=user.role,
                balance=float(user.balance),
            ),
        )

    async def logout(self, claims: TokenClaims, token: str) -> None:
        """Revoke ``token`` so the guard rejects it before its natural expiry."""
        expires_at = datetime.fromtimestamp(claims.expires_at, tz=timezone.utc)
        await self._registry.revoke(claims.user_id, token, expires_at)
        logger.info("Logout: %s (%s)", claims.username, claims.user_id)
