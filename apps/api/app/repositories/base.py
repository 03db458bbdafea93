"""Store contracts for users and articles."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from app.domain.policy import ArticleFilter
from app.schemas.auth import Role

ArticleSortKey = Literal["publish_date", "created_at"]

# Fields a partial update may touch; password hashes and authors are excluded.
USER_MUTABLE_FIELDS = frozenset({"name", "email", "role", "active"})
ARTICLE_MUTABLE_FIELDS = frozenset({"title", "content", "summary", "image_url", "published", "publish_date", "tags"})


class DuplicateKeyError(Exception):
    """Raised by a store when a unique field already holds the submitted value."""

    def __init__(self, field_name: str, value: str) -> None:
        self.field_name = field_name
        self.value = value
        super().__init__(f"Duplicate value for unique field '{field_name}'")


@dataclass(slots=True)
class UserRecord:
    id: str
    name: str
    email: str
    password_hash: str
    role: Role
    active: bool
    created_at: datetime
    updated_at: datetime
    sequence: int = 0


@dataclass(slots=True)
class ArticleRecord:
    id: str
    title: str
    content: str
    summary: str
    author_id: str
    published: bool
    publish_date: datetime
    created_at: datetime
    updated_at: datetime
    image_url: str | None = None
    tags: list[str] = field(default_factory=list)
    sequence: int = 0


class UserRepository(ABC):
    @abstractmethod
    async def find_user_by_email(self, email: str) -> UserRecord | None: ...

    @abstractmethod
    async def find_user_by_id(self, user_id: str) -> UserRecord | None: ...

    @abstractmethod
    async def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        active: bool = True,
    ) -> UserRecord:
        """Insert a user; raise ``DuplicateKeyError`` when the email is taken."""

    @abstractmethod
    async def update_user(self, user_id: str, fields: dict[str, Any]) -> UserRecord | None:
        """Apply a partial update; password fields are dropped silently."""

    @abstractmethod
    async def set_user_password_hash(self, user_id: str, password_hash: str) -> bool: ...

    @abstractmethod
    async def list_users(self, *, page: int, limit: int) -> tuple[list[UserRecord], int]:
        """Return one page of users, newest first, and the total count."""


class ArticleRepository(ABC):
    @abstractmethod
    async def create_article(self, fields: dict[str, Any], *, author_id: str) -> ArticleRecord: ...

    @abstractmethod
    async def update_article(self, article_id: str, fields: dict[str, Any]) -> ArticleRecord | None: ...

    @abstractmethod
    async def delete_article(self, article_id: str) -> bool: ...

    @abstractmethod
    async def find_article_by_id(self, article_id: str) -> ArticleRecord | None: ...

    @abstractmethod
    async def list_articles(
        self,
        article_filter: ArticleFilter,
        *,
        page: int,
        limit: int,
        sort_key: ArticleSortKey,
    ) -> tuple[list[ArticleRecord], int]:
        """Return one page of matching articles, sorted descending, and the total count."""

    @abstractmethod
    async def count_articles(self) -> int: ...


__all__ = [
    "ARTICLE_MUTABLE_FIELDS",
    "USER_MUTABLE_FIELDS",
    "ArticleRecord",
    "ArticleRepository",
    "ArticleSortKey",
    "DuplicateKeyError",
    "UserRecord",
    "UserRepository",
]
