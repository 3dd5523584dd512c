"""
Request / response schemas for the auth and user routes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ── Requests ───────────────────────────────────────────────────────────
# Required fields are Optional here so the service can answer with a
# MISSING_FIELDS error instead of a generic body validation error.


class RegisterRequest(BaseModel):
    username: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=100)
    password: Optional[str] = Field(None, max_length=128)
    phone: Optional[str] = Field(None, max_length=20)
    name: Optional[str] = Field(None, max_length=100)
    role: Optional[str] = Field(None, max_length=20)


class LoginRequest(BaseModel):
    username: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=100)
    password: Optional[str] = Field(None, max_length=128)


# ── Responses ──────────────────────────────────────────────────────────


class UserSummary(BaseModel):
    id: int
    username: str
    email: str
    role: str
    balance: float


class UserProfile(UserSummary):
    model_config = ConfigDict(populate_by_name=True)

    phone: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class RegisterResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Registration successful! Please login."
    user_id: int = Field(..., alias="userId")


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful!"
    token: str
    user: UserSummary


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class BalanceResponse(BaseModel):
    success: bool = True
    message: str = "Balance fetched successfully!"
    username: str
    balance: float


class ProfileResponse(BaseModel):
    success: bool = True
    user: UserProfile
