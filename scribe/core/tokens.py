"""
Session token lifecycle: access/refresh JWT issuance, verification and renewal.

Access and refresh tokens are signed with different secrets and carry a
``type`` claim. A token is only accepted where its type is expected, so a
leaked refresh token cannot be replayed as an access token and vice versa.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

import jwt
from pydantic import BaseModel, Field

from scribe.core.errors import (
    ConfigurationError,
    InvalidTokenError,
    TokenExpiredError,
    TokenMalformedError,
    TokenSignatureError,
    TokenTypeMismatchError,
)

if TYPE_CHECKING:
    from scribe.core.config import Settings

BEARER_PREFIX = "Bearer "

REQUIRED_CLAIMS = ("sub", "type", "iat", "exp", "iss", "aud")


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenSubject(Protocol):
    """Anything with the identity claims a token is minted from."""

    id: Any
    email: str
    role: Any


@dataclass(frozen=True)
class TokenConfig:
    """Immutable token settings, built once at startup and injected into TokenService."""

    access_secret: str
    refresh_secret: str
    access_ttl_seconds: int = 15 * 60
    refresh_ttl_seconds: int = 7 * 24 * 60 * 60
    algorithm: str = "HS256"
    issuer: str = "scribe-api"
    audience: str = "scribe-users"

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenConfig:
        return cls(
            access_secret=settings.JWT_ACCESS_SECRET.get_secret_value(),
            refresh_secret=settings.JWT_REFRESH_SECRET.get_secret_value(),
            access_ttl_seconds=settings.JWT_ACCESS_EXPIRE_SECONDS,
            refresh_ttl_seconds=settings.JWT_REFRESH_EXPIRE_SECONDS,
            algorithm=settings.JWT_ALGORITHM,
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
        )


class TokenPayload(BaseModel):
    """Decoded, verified token claims."""

    principal_id: str
    email: str
    role: str
    token_type: TokenType
    issued_at: int
    expires_at: int


class TokenPair(BaseModel):
    """Access and refresh token pair returned at login."""

    access_token: str
    refresh_token: str
    access_expires_in_ms: int = Field(..., description="Access token lifetime in milliseconds")


class AccessToken(BaseModel):
    """A freshly issued access token (refresh flow)."""

    access_token: str
    access_expires_in_ms: int


def extract_bearer_token(header_value: str | None) -> str | None:
    """Return the token after a case-sensitive 'Bearer ' prefix, or None."""
    if not header_value or not header_value.startswith(BEARER_PREFIX):
        return None
    token = header_value[len(BEARER_PREFIX):].strip()
    return token or None


def _role_value(role: Any) -> str:
    return role.value if isinstance(role, Enum) else str(role)


class TokenService:
    """Issue, verify and renew signed session tokens."""

    def __init__(
        self,
        config: TokenConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not config.access_secret or not config.access_secret.strip():
            raise ConfigurationError("JWT access token secret is not configured")
        if not config.refresh_secret or not config.refresh_secret.strip():
            raise ConfigurationError("JWT refresh token secret is not configured")
        self.config = config
        self._clock = clock or (lambda: datetime.now(UTC))

    def _secret_for(self, token_type: TokenType) -> str:
        if token_type is TokenType.ACCESS:
            return self.config.access_secret
        return self.config.refresh_secret

    def _ttl_for(self, token_type: TokenType) -> int:
        if token_type is TokenType.ACCESS:
            return self.config.access_ttl_seconds
        return self.config.refresh_ttl_seconds

    def _sign(
        self,
        token_type: TokenType,
        principal_id: str,
        email: str,
        role: str,
        issued_at: int,
    ) -> str:
        payload: dict[str, Any] = {
            "sub": principal_id,
            "email": email,
            "role": role,
            "type": token_type.value,
            "iat": issued_at,
            "exp": issued_at + self._ttl_for(token_type),
            "iss": self.config.issuer,
            "aud": self.config.audience,
        }
        return jwt.encode(
            payload,
            self._secret_for(token_type),
            algorithm=self.config.algorithm,
        )

    def _now(self) -> int:
        return int(self._clock().timestamp())

    def issue_token_pair(self, principal: TokenSubject) -> TokenPair:
        """Issue an access/refresh pair for a principal (id, email, role)."""
        issued_at = self._now()
        principal_id = str(principal.id)
        role = _role_value(principal.role)
        return TokenPair(
            access_token=self._sign(TokenType.ACCESS, principal_id, principal.email, role, issued_at),
            refresh_token=self._sign(TokenType.REFRESH, principal_id, principal.email, role, issued_at),
            access_expires_in_ms=self.config.access_ttl_seconds * 1000,
        )

    def verify(self, token: str, expected_type: TokenType | str) -> TokenPayload:
        """
        Decode and validate a token of the expected type.

        Raises TokenMalformedError, TokenTypeMismatchError, TokenSignatureError,
        TokenExpiredError, or InvalidTokenError for claim failures (issuer,
        audience, missing claims).
        """
        expected = TokenType(expected_type)

        # The type claim is read before the signature check: the two token
        # types use different secrets, so a signature failure would hide a
        # refresh token presented as an access token.
        try:
            unverified = jwt.decode(token, options={"verify_signature": False})
        except jwt.DecodeError as e:
            raise TokenMalformedError("Invalid token format") from e
        if not isinstance(unverified, dict):
            raise TokenMalformedError("Invalid token format")
        if unverified.get("type") != expected.value:
            raise TokenTypeMismatchError("Invalid token type")

        try:
            claims = jwt.decode(
                token,
                self._secret_for(expected),
                algorithms=[self.config.algorithm],
                issuer=self.config.issuer,
                audience=self.config.audience,
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token expired") from e
        except jwt.InvalidSignatureError as e:
            raise TokenSignatureError("Invalid signature") from e
        except jwt.DecodeError as e:
            raise TokenMalformedError("Invalid token format") from e
        except jwt.PyJWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        if claims.get("type") != expected.value:
            raise TokenTypeMismatchError("Invalid token type")
        try:
            return TokenPayload(
                principal_id=str(claims["sub"]),
                email=claims.get("email") or "",
                role=claims.get("role") or "",
                token_type=TokenType(claims["type"]),
                issued_at=int(claims["iat"]),
                expires_at=int(claims["exp"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TokenMalformedError("Invalid token payload") from e

    def renew_access_token(self, refresh_token: str) -> AccessToken:
        """
        Verify a refresh token and issue a new access token from its claims.

        Does not check that the principal still exists; the next authenticated
        request does.
        """
        payload = self.verify(refresh_token, TokenType.REFRESH)
        access_token = self._sign(
            TokenType.ACCESS,
            payload.principal_id,
            payload.email,
            payload.role,
            self._now(),
        )
        return AccessToken(
            access_token=access_token,
            access_expires_in_ms=self.config.access_ttl_seconds * 1000,
        )
