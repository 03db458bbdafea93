"""Application exception types."""

from app.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(self, status_code: int, code: str, message: str, details: dict | None = None) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(code=code, message=message, details=details)
        super().__init__(message)


def auth_error(message: str = "Invalid or missing bearer token", code: str = "UNAUTHORIZED") -> ApiError:
    return ApiError(status_code=401, code=code, message=message)


def forbidden_error(message: str = "Insufficient privileges") -> ApiError:
    return ApiError(status_code=403, code="FORBIDDEN", message=message)


def not_found_error() -> ApiError:
    return ApiError(status_code=404, code="RESOURCE_NOT_FOUND", message="Resource not found")


def conflict_error(message: str, code: str = "EMAIL_ALREADY_REGISTERED", details: dict | None = None) -> ApiError:
    # Unique-key conflicts share the 400 status with malformed input.
    return ApiError(status_code=400, code=code, message=message, details=details)


__all__ = [
    "ApiError",
    "auth_error",
    "conflict_error",
    "forbidden_error",
    "not_found_error",
]
