"""API error response schemas."""

from typing import Any
from typing import Literal

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class FieldIssue(BaseModel):
    field: str
    message: str


class ValidationErrorDetails(BaseModel):
    errors: list[FieldIssue]


class ValidationErrorResponse(BaseModel):
    code: Literal["VALIDATION_ERROR"]
    message: str
    details: ValidationErrorDetails


class NoLeakNotFoundError(BaseModel):
    code: Literal["RESOURCE_NOT_FOUND"]
    message: str
