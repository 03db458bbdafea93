"""Credential and token adapters."""

from .base import AuthVerificationError, ExpiredTokenError, InvalidTokenError, PasswordHasher, TokenService
from .jwt_auth import JwtTokenService
from .passwords import BcryptPasswordHasher

__all__ = [
    "AuthVerificationError",
    "BcryptPasswordHasher",
    "ExpiredTokenError",
    "InvalidTokenError",
    "JwtTokenService",
    "PasswordHasher",
    "TokenService",
]
