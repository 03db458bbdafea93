"""HS256 JWT session tokens backed by python-jose."""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from pydantic import ValidationError

from app.adapters.auth.base import ExpiredTokenError, InvalidTokenError, TokenService
from app.schemas.auth import AuthPrincipal

_REQUIRED_CLAIMS = ("sub", "email", "role", "exp")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class JwtTokenService(TokenService):
    """Issues and verifies signed session tokens.

    Expiry is checked against the injected clock rather than inside ``jose`` so
    that a token is rejected exactly when ``now >= exp``.
    """

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        expires_in: timedelta = timedelta(days=1),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._expires_in = expires_in
        self._clock = clock

    def issue_token(self, principal: AuthPrincipal) -> str:
        issued_at = self._clock()
        # Whole-second claims; exp rounds up so the full TTL is always honoured.
        claims = {
            "sub": principal.user_id,
            "email": principal.email,
            "role": principal.role.value,
            "iat": math.floor(issued_at.timestamp()),
            "exp": math.ceil((issued_at + self._expires_in).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify_token(self, token: str) -> AuthPrincipal:
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_aud": False},
            )
        except JWTError as exc:
            raise InvalidTokenError("Invalid bearer token") from exc

        missing = [name for name in _REQUIRED_CLAIMS if name not in claims]
        if missing:
            raise InvalidTokenError("Bearer token missing required claims")

        try:
            expires_at = int(claims["exp"])
        except (TypeError, ValueError) as exc:
            raise InvalidTokenError("Invalid bearer token expiry") from exc
        if self._clock().timestamp() >= expires_at:
            raise ExpiredTokenError("Bearer token has expired")

        try:
            return AuthPrincipal(user_id=str(claims["sub"]), email=str(claims["email"]), role=claims["role"])
        except ValidationError as exc:
            raise InvalidTokenError("Bearer token carries an invalid identity") from exc


__all__ = ["JwtTokenService"]
