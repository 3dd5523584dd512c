"""
SQLAlchemy ORM models for users and issued session tokens.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import DeclarativeBase, relationship

CUSTOMER_ROLE = "Customer"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(20))
    name = Column(String(100))
    role = Column(String(20), nullable=False, default=CUSTOMER_ROLE)
    balance = Column(Numeric(12, 2), nullable=False, default=100000)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    tokens = relationship("UserToken", back_populates="user", cascade="all, delete-orphan")


class UserToken(Base):
    """Audit record of an issued token; ``revoked_at`` is set on logout."""

    __tablename__ = "user_tokens"

    token_id = Column(Integer, primary_key=True, autoincrement=True)
    token_digest = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="tokens")
