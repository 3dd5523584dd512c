"""
JWT token creation and verification.

Tokens use the compact JWT form (``header.payload.signature``, base64url)
signed with HMAC-SHA256.  They are self-contained: verification needs only
the secret and the clock.  The secret comes from ``Settings.jwt_secret``
(env var: ``JWT_SECRET``) and is mandatory.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple

_HEADER = {"alg": "HS256", "typ": "JWT"}
DEFAULT_EXPIRY_SECONDS = 24 * 60 * 60


class TokenError(Exception):
    code = "INVALID_TOKEN"


class InvalidTokenError(TokenError):
    """Bad signature, unexpected algorithm or structurally broken token."""

    code = "INVALID_TOKEN"


class TokenExpiredError(TokenError):
    """Signature is valid but the token is past its ``exp``."""

    code = "TOKEN_EXPIRED"


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    username: str
    role: str
    issued_at: int = 0
    expires_at: int = 0
    token_id: str = ""


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(segment: str) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def token_digest(token: str) -> str:
    """SHA-256 hex digest used to reference a token without storing it."""
    return hashlib.sha256(token.encode()).hexdigest()


class TokenIssuer:
    """Issues and verifies signed, time-limited session tokens."""

    def __init__(
        self,
        secret: str,
        expiry_seconds: int = DEFAULT_EXPIRY_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret.encode()
        self.expiry_seconds = expiry_seconds
        self._clock = clock

    def _sign(self, signing_input: bytes) -> str:
        return _b64encode(hmac.new(self._secret, signing_input, hashlib.sha256).digest())

    def mint(self, user_id: int, username: str, role: str) -> Tuple[str, TokenClaims]:
        """Create a signed token and return it together with its claims."""
        now = int(self._clock())
        claims = TokenClaims(
            user_id=user_id,
            username=username,
            role=role,
            issued_at=now,
            expires_at=now + self.expiry_seconds,
            token_id=uuid.uuid4().hex,
        )
        payload = {
            "uid": claims.user_id,
            "username": claims.username,
            "role": claims.role,
            "iat": claims.issued_at,
            "exp": claims.expires_at,
            "jti": claims.token_id,
        }
        header_seg = _b64encode(json.dumps(_HEADER, separators=(",", ":")).encode())
        payload_seg = _b64encode(json.dumps(payload, separators=(",", ":")).encode())
        signing_input = f"{header_seg}.{payload_seg}".encode("ascii")
        return f"{header_seg}.{payload_seg}.{self._sign(signing_input)}", claims

    def issue(self, user_id: int, username: str, role: str) -> str:
        """Create a signed token for the given identity, valid for ``expiry_seconds``."""
        token, _ = self.mint(user_id, username, role)
        return token

    def verify(self, token: str) -> TokenClaims:
        """
        Verify ``token`` and return its claims.

        Raises ``InvalidTokenError`` when the token is malformed or its
        signature does not match, and ``TokenExpiredError`` when it is
        correctly signed but expired.
        """
        parts = token.split(".")
        if len(parts) != 3:
            raise InvalidTokenError("token must have three segments")
        header_seg, payload_seg, signature = parts

        try:
            signing_input = f"{header_seg}.{payload_seg}".encode("ascii")
        except UnicodeEncodeError:
            raise InvalidTokenError("token is not ascii") from None
        if not hmac.compare_digest(signature.encode(), self._sign(signing_input).encode()):
            raise InvalidTokenError("signature mismatch")

        try:
            header = json.loads(_b64decode(header_seg))
            payload: Dict[str, Any] = json.loads(_b64decode(payload_seg))
        except (binascii.Error, ValueError) as exc:
            raise InvalidTokenError(f"undecodable token: {exc}") from None
        if not isinstance(header, dict) or header.get("alg") != _HEADER["alg"]:
            raise InvalidTokenError("unsupported algorithm")
        if not isinstance(payload, dict):
            raise InvalidTokenError("payload is not an object")

        exp = payload.get("exp")
        user_id = payload.get("uid")
        if not isinstance(exp, int) or not isinstance(user_id, int):
            raise InvalidTokenError("missing required claims")
        if self._clock() >= exp:
            raise TokenExpiredError("token expired")

        return TokenClaims(
            user_id=user_id,
            username=str(payload.get("username", "")),
            role=str(payload.get("role", "")),
            issued_at=int(payload.get("iat", 0)),
            expires_at=exp,
            token_id=str(payload.get("jti", "")),
        )
