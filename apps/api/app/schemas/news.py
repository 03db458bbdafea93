"""News article API schemas."""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import Field, HttpUrl, StringConstraints, field_validator

from app.schemas.common import ApiModel, Pagination

# Surrounding whitespace is dropped before the length rule applies.
TitleText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3)]


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _clean_tags(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    return [tag.strip() for tag in value if tag.strip()]


class CreateArticleRequest(ApiModel):
    """Article creation payload; any client-supplied author is ignored."""

    title: TitleText
    content: str = Field(min_length=10)
    summary: str = Field(min_length=5)
    image_url: HttpUrl | None = None
    published: bool = True
    publish_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("publish_date")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str]) -> list[str]:
        return _clean_tags(value) or []


class UpdateArticleRequest(ApiModel):
    title: TitleText | None = None
    content: str | None = Field(default=None, min_length=10)
    summary: str | None = Field(default=None, min_length=5)
    image_url: HttpUrl | None = None
    published: bool | None = None
    publish_date: datetime | None = None
    tags: list[str] | None = None

    @field_validator("publish_date")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str] | None) -> list[str] | None:
        return _clean_tags(value)


class Article(ApiModel):
    id: str
    title: str
    content: str
    summary: str
    image_url: str | None = None
    published: bool
    publish_date: datetime
    tags: list[str]
    author: str
    author_name: str | None = None
    created_at: datetime
    updated_at: datetime


class ArticleList(ApiModel):
    news: list[Article]
    pagination: Pagination
