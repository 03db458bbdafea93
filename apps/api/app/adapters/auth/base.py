"""Authentication provider interfaces."""

from abc import ABC, abstractmethod

from app.schemas.auth import AuthPrincipal


class AuthVerificationError(Exception):
    """Raised when a token cannot be verified or normalized."""


class InvalidTokenError(AuthVerificationError):
    """Signature mismatch, malformed token or missing claims."""


class ExpiredTokenError(AuthVerificationError):
    """Token was valid but its expiry has passed."""


class TokenService(ABC):
    """Provider-neutral session token interface."""

    @abstractmethod
    def issue_token(self, principal: AuthPrincipal) -> str:
        """Sign a token carrying the principal's id, email and role."""

    @abstractmethod
    def verify_token(self, token: str) -> AuthPrincipal:
        """Verify token and return normalized principal."""


class PasswordHasher(ABC):
    @abstractmethod
    def hash_password(self, plaintext: str) -> str:
        """Return a salted one-way hash."""

    @abstractmethod
    def verify_password(self, plaintext: str, hashed: str) -> bool:
        """Return whether ``plaintext`` matches ``hashed``."""


__all__ = [
    "AuthVerificationError",
    "ExpiredTokenError",
    "InvalidTokenError",
    "PasswordHasher",
    "TokenService",
]
