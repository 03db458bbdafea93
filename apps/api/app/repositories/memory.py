"""In-memory repositories used by the API scaffold and tests."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from itertools import count
from typing import Any
from uuid import uuid4

from app.domain.policy import ArticleFilter
from app.repositories.base import (
    ARTICLE_MUTABLE_FIELDS,
    USER_MUTABLE_FIELDS,
    ArticleRecord,
    ArticleRepository,
    ArticleSortKey,
    DuplicateKeyError,
    UserRecord,
    UserRepository,
)
from app.schemas.auth import Role


def _offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit


def _matches_search(record: ArticleRecord, search: str) -> bool:
    terms = [term.casefold() for term in search.split() if term]
    if not terms:
        return True
    haystack = " ".join((record.title, record.content, record.summary)).casefold()
    return any(term in haystack for term in terms)


def _matches(record: ArticleRecord, article_filter: ArticleFilter) -> bool:
    if article_filter.published is not None and record.published != article_filter.published:
        return False
    if article_filter.author_id is not None and record.author_id != article_filter.author_id:
        return False
    if article_filter.tag is not None and article_filter.tag not in record.tags:
        return False
    if article_filter.search is not None and not _matches_search(record, article_filter.search):
        return False
    return True


# Callers get copies so that mutating a returned record never bypasses the store.
def _copy_user(record: UserRecord) -> UserRecord:
    return replace(record)


def _copy_article(record: ArticleRecord) -> ArticleRecord:
    return replace(record, tags=list(record.tags))


@dataclass(slots=True)
class InMemoryStore(UserRepository, ArticleRepository):
    """Simple, deterministic persistence layer for scaffolding and tests.

    No method awaits between reading and writing its dictionaries, so each call
    is atomic with respect to other requests on the same event loop.
    """

    users: dict[str, UserRecord] = field(default_factory=dict)
    user_ids_by_email: dict[str, str] = field(default_factory=dict)
    articles: dict[str, ArticleRecord] = field(default_factory=dict)
    user_write_count: int = 0
    article_write_count: int = 0
    _sequence: Any = field(default_factory=lambda: count(1))

    async def find_user_by_email(self, email: str) -> UserRecord | None:
        user_id = self.user_ids_by_email.get(email.strip().lower())
        user = self.users.get(user_id) if user_id is not None else None
        return _copy_user(user) if user is not None else None

    async def find_user_by_id(self, user_id: str) -> UserRecord | None:
        user = self.users.get(user_id)
        return _copy_user(user) if user is not None else None

    async def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        active: bool = True,
    ) -> UserRecord:
        email_key = email.strip().lower()
        if email_key in self.user_ids_by_email:
            raise DuplicateKeyError("email", email_key)

        now = datetime.now(UTC)
        user = UserRecord(
            id=str(uuid4()),
            name=name,
            email=email_key,
            password_hash=password_hash,
            role=role,
            active=active,
            created_at=now,
            updated_at=now,
            sequence=next(self._sequence),
        )
        self.users[user.id] = user
        self.user_ids_by_email[email_key] = user.id
        self.user_write_count += 1
        return _copy_user(user)

    async def update_user(self, user_id: str, fields: dict[str, Any]) -> UserRecord | None:
        user = self.users.get(user_id)
        if user is None:
            return None

        updates = {key: value for key, value in fields.items() if key in USER_MUTABLE_FIELDS}
        if "email" in updates:
            email_key = str(updates["email"]).strip().lower()
            owner_id = self.user_ids_by_email.get(email_key)
            if owner_id is not None and owner_id != user_id:
                raise DuplicateKeyError("email", email_key)
            updates["email"] = email_key

        if "email" in updates and updates["email"] != user.email:
            del self.user_ids_by_email[user.email]
            self.user_ids_by_email[updates["email"]] = user_id
        for key, value in updates.items():
            setattr(user, key, value)
        user.updated_at = datetime.now(UTC)
        self.user_write_count += 1
        return _copy_user(user)

    async def set_user_password_hash(self, user_id: str, password_hash: str) -> bool:
        user = self.users.get(user_id)
        if user is None:
            return False
        user.password_hash = password_hash
        user.updated_at = datetime.now(UTC)
        self.user_write_count += 1
        return True

    async def list_users(self, *, page: int, limit: int) -> tuple[list[UserRecord], int]:
        ordered = sorted(self.users.values(), key=lambda record: (record.created_at, record.sequence), reverse=True)
        offset = _offset(page, limit)
        return [_copy_user(user) for user in ordered[offset : offset + limit]], len(ordered)

    async def create_article(self, fields: dict[str, Any], *, author_id: str) -> ArticleRecord:
        now = datetime.now(UTC)
        values = {key: value for key, value in fields.items() if key in ARTICLE_MUTABLE_FIELDS}
        article = ArticleRecord(
            id=str(uuid4()),
            title=values["title"],
            content=values["content"],
            summary=values["summary"],
            author_id=author_id,
            published=values.get("published", True),
            publish_date=values.get("publish_date") or now,
            created_at=now,
            updated_at=now,
            image_url=values.get("image_url"),
            tags=list(values.get("tags") or []),
            sequence=next(self._sequence),
        )
        self.articles[article.id] = article
        self.article_write_count += 1
        return _copy_article(article)

    async def update_article(self, article_id: str, fields: dict[str, Any]) -> ArticleRecord | None:
        article = self.articles.get(article_id)
        if article is None:
            return None

        for key, value in fields.items():
            if key not in ARTICLE_MUTABLE_FIELDS:
                continue
            setattr(article, key, list(value) if key == "tags" else value)
        article.updated_at = datetime.now(UTC)
        self.article_write_count += 1
        return _copy_article(article)

    async def delete_article(self, article_id: str) -> bool:
        removed = self.articles.pop(article_id, None)
        if removed is None:
            return False
        self.article_write_count += 1
        return True

    async def find_article_by_id(self, article_id: str) -> ArticleRecord | None:
        article = self.articles.get(article_id)
        return _copy_article(article) if article is not None else None

    async def list_articles(
        self,
        article_filter: ArticleFilter,
        *,
        page: int,
        limit: int,
        sort_key: ArticleSortKey,
    ) -> tuple[list[ArticleRecord], int]:
        matching = [record for record in self.articles.values() if _matches(record, article_filter)]
        matching.sort(key=lambda record: (getattr(record, sort_key), record.sequence), reverse=True)
        offset = _offset(page, limit)
        return [_copy_article(record) for record in matching[offset : offset + limit]], len(matching)

    async def count_articles(self) -> int:
        return len(self.articles)
