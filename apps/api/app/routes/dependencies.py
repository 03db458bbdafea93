"""Dependency wiring for routes."""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.adapters.auth import (
    AuthVerificationError,
    ExpiredTokenError,
    PasswordHasher,
    TokenService,
)
from app.core.logging_safety import safe_log_identifier
from app.errors import ApiError, auth_error
from app.repositories.base import ArticleRepository, UserRepository
from app.schemas.auth import AuthPrincipal
from app.services.auth import AuthService
from app.services.news import NewsService

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
logger = logging.getLogger(__name__)


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def get_user_repository(request: Request) -> UserRepository:
    return request.app.state.store


def get_article_repository(request: Request) -> ArticleRepository:
    return request.app.state.store


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_auth_service(
    users: Annotated[UserRepository, Depends(get_user_repository)],
    passwords: Annotated[PasswordHasher, Depends(get_password_hasher)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> AuthService:
    return AuthService(users, passwords, tokens)


def get_news_service(
    articles: Annotated[ArticleRepository, Depends(get_article_repository)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
) -> NewsService:
    return NewsService(articles, users)


def _reject(request: Request, correlation_id: str, reason: str, error: ApiError) -> ApiError:
    logger.warning(
        "auth.rejected correlation_id=%s method=%s path=%s reason=%s",
        safe_log_identifier(correlation_id, prefix="cid"),
        request.method,
        request.url.path,
        reason,
    )
    return error


async def get_authenticated_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthPrincipal:
    """Validate bearer token, re-check account liveness and attach the principal to the request."""
    correlation_id = _request_correlation_id(request)
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise _reject(request, correlation_id, "invalid_or_missing_bearer", auth_error())

    try:
        claims = tokens.verify_token(credentials.credentials)
    except ExpiredTokenError as exc:
        raise _reject(
            request,
            correlation_id,
            "token_expired",
            auth_error(str(exc), code="TOKEN_EXPIRED"),
        ) from exc
    except AuthVerificationError as exc:
        raise _reject(
            request,
            correlation_id,
            "token_verification_failed",
            auth_error(str(exc) or "Invalid bearer token"),
        ) from exc

    try:
        principal = await service.resolve_principal(claims)
    except ApiError as exc:
        raise _reject(request, correlation_id, "user_missing_or_inactive", exc) from exc

    logger.info(
        "auth.accepted correlation_id=%s method=%s path=%s principal_id=%s role=%s",
        safe_log_identifier(correlation_id, prefix="cid"),
        request.method,
        request.url.path,
        safe_log_identifier(principal.user_id, prefix="pid"),
        principal.role.value,
    )
    request.state.auth_principal = principal
    return principal
