"""Authentication and account routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.routes.dependencies import get_auth_service, get_authenticated_principal
from app.schemas.auth import (
    AuthPrincipal,
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
    UpdateProfileRequest,
    UserList,
)
from app.schemas.common import MessageResponse
from app.schemas.error import ErrorResponse, ValidationErrorResponse
from app.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    # 400 covers both malformed payloads and an email that is already registered.
    responses={400: {"model": ErrorResponse}},
)
async def register(
    payload: RegisterRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    return await service.register(payload)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={400: {"model": ValidationErrorResponse}, 401: {"model": ErrorResponse}},
)
async def login(
    payload: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    return await service.login(payload)


@router.get(
    "/profile",
    response_model=ProfileResponse,
    responses={401: {"model": ErrorResponse}},
)
async def get_profile(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> ProfileResponse:
    return await service.get_profile(principal)


@router.put(
    "/profile",
    response_model=ProfileResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
    },
)
async def update_profile(
    payload: UpdateProfileRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> ProfileResponse:
    return await service.update_profile(principal, payload)


@router.put(
    "/change-password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def change_password(
    payload: ChangePasswordRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    return await service.change_password(principal, payload)


@router.get(
    "/users",
    response_model=UserList,
    responses={
        400: {"model": ValidationErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
)
async def list_users(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> UserList:
    return await service.list_users(principal, page=page, limit=limit)
