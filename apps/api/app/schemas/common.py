"""Shared API schema building blocks."""

from math import ceil

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model that speaks camelCase on the wire and accepts snake_case input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Pagination(ApiModel):
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, *, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, limit=limit, total_pages=ceil(total / limit) if limit else 0)


class MessageResponse(BaseModel):
    message: str
