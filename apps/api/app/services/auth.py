"""Account and session service layer."""

from __future__ import annotations

import logging

from fastapi.concurrency import run_in_threadpool

from app.adapters.auth.base import PasswordHasher, TokenService
from app.core.logging_safety import safe_log_identifier
from app.domain.policy import REGISTRATION_ROLE, ensure_can_list_users
from app.errors import ApiError, auth_error, conflict_error, not_found_error
from app.repositories.base import DuplicateKeyError, UserRecord, UserRepository
from app.schemas.auth import (
    AuthPrincipal,
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
    UpdateProfileRequest,
    User,
    UserList,
)
from app.schemas.common import MessageResponse, Pagination

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, users: UserRepository, passwords: PasswordHasher, tokens: TokenService) -> None:
        self._users = users
        self._passwords = passwords
        self._tokens = tokens

    async def register(self, payload: RegisterRequest) -> AuthResponse:
        if await self._users.find_user_by_email(payload.email) is not None:
            raise self._duplicate_email()

        password_hash = await run_in_threadpool(self._passwords.hash_password, payload.password)
        try:
            record = await self._users.create_user(
                name=payload.name,
                email=payload.email,
                password_hash=password_hash,
                role=REGISTRATION_ROLE,
            )
        except DuplicateKeyError as exc:
            # A concurrent registration won the race for this email.
            raise self._duplicate_email() from exc

        logger.info("auth.registered user_id=%s", safe_log_identifier(record.id, prefix="pid"))
        return AuthResponse(user=self._to_user(record), token=self._issue(record))

    async def login(self, payload: LoginRequest) -> AuthResponse:
        record = await self._users.find_user_by_email(payload.email)
        safe_email = safe_log_identifier(payload.email, prefix="email")
        if record is None:
            logger.warning("auth.login_rejected email=%s reason=unknown_email", safe_email)
            raise auth_error("Invalid credentials", code="INVALID_CREDENTIALS")

        matches = await run_in_threadpool(self._passwords.verify_password, payload.password, record.password_hash)
        if not matches:
            logger.warning("auth.login_rejected email=%s reason=password_mismatch", safe_email)
            raise auth_error("Invalid credentials", code="INVALID_CREDENTIALS")
        if not record.active:
            logger.warning("auth.login_rejected email=%s reason=user_deactivated", safe_email)
            raise auth_error("User deactivated", code="USER_DEACTIVATED")

        logger.info("auth.login user_id=%s", safe_log_identifier(record.id, prefix="pid"))
        return AuthResponse(user=self._to_user(record), token=self._issue(record))

    async def resolve_principal(self, claims: AuthPrincipal) -> AuthPrincipal:
        """Re-check a verified token subject against the directory.

        Role and email come from the stored account, not from the token, so a
        demotion or email change takes effect without waiting for expiry.
        """
        record = await self._users.find_user_by_id(claims.user_id)
        if record is None or not record.active:
            raise auth_error("User not found or inactive")
        return AuthPrincipal(user_id=record.id, email=record.email, role=record.role)

    async def get_profile(self, principal: AuthPrincipal) -> ProfileResponse:
        record = await self._users.find_user_by_id(principal.user_id)
        if record is None:
            raise not_found_error()
        return ProfileResponse(user=self._to_user(record))

    async def update_profile(self, principal: AuthPrincipal, payload: UpdateProfileRequest) -> ProfileResponse:
        fields = payload.model_dump(exclude_unset=True, exclude_none=True)
        try:
            record = await self._users.update_user(principal.user_id, fields)
        except DuplicateKeyError as exc:
            raise self._duplicate_email() from exc
        if record is None:
            raise not_found_error()
        return ProfileResponse(user=self._to_user(record))

    async def change_password(self, principal: AuthPrincipal, payload: ChangePasswordRequest) -> MessageResponse:
        record = await self._users.find_user_by_id(principal.user_id)
        if record is None:
            raise not_found_error()

        matches = await run_in_threadpool(
            self._passwords.verify_password,
            payload.current_password,
            record.password_hash,
        )
        if not matches:
            raise ApiError(status_code=400, code="INVALID_CURRENT_PASSWORD", message="Current password is incorrect")

        new_hash = await run_in_threadpool(self._passwords.hash_password, payload.new_password)
        await self._users.set_user_password_hash(record.id, new_hash)
        logger.info("auth.password_changed user_id=%s", safe_log_identifier(record.id, prefix="pid"))
        return MessageResponse(message="Password updated successfully")

    async def list_users(self, principal: AuthPrincipal, *, page: int, limit: int) -> UserList:
        ensure_can_list_users(principal)
        records, total = await self._users.list_users(page=page, limit=limit)
        return UserList(
            users=[self._to_user(record) for record in records],
            pagination=Pagination.build(total=total, page=page, limit=limit),
        )

    def _issue(self, record: UserRecord) -> str:
        return self._tokens.issue_token(AuthPrincipal(user_id=record.id, email=record.email, role=record.role))

    @staticmethod
    def _duplicate_email() -> ApiError:
        return conflict_error("Email already registered")

    @staticmethod
    def _to_user(record: UserRecord) -> User:
        return User(
            id=record.id,
            name=record.name,
            email=record.email,
            role=record.role,
            active=record.active,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
