"""News article service layer."""

from __future__ import annotations

import logging
from typing import Any

from app.core.logging_safety import safe_log_identifier
from app.domain.policy import (
    ArticleAction,
    ArticleFilter,
    ensure_can_mutate_article,
    ensure_publicly_visible,
    own_article_filter,
    public_article_filter,
)
from app.errors import not_found_error
from app.repositories.base import ArticleRecord, ArticleRepository, ArticleSortKey, UserRepository
from app.schemas.auth import AuthPrincipal
from app.schemas.common import MessageResponse, Pagination
from app.schemas.news import Article, ArticleList, CreateArticleRequest, UpdateArticleRequest

logger = logging.getLogger(__name__)

# Fields that may be cleared by sending null; everything else treats null as "leave unchanged".
_NULLABLE_FIELDS = frozenset({"image_url"})


class NewsService:
    def __init__(self, articles: ArticleRepository, users: UserRepository) -> None:
        self._articles = articles
        self._users = users

    async def create_article(self, principal: AuthPrincipal, payload: CreateArticleRequest) -> Article:
        fields = payload.model_dump()
        fields["image_url"] = str(payload.image_url) if payload.image_url is not None else None
        record = await self._articles.create_article(fields, author_id=principal.user_id)
        logger.info(
            "news.created article_id=%s author_id=%s published=%s",
            record.id,
            safe_log_identifier(principal.user_id, prefix="pid"),
            record.published,
        )
        return await self._to_article(record)

    async def update_article(
        self,
        principal: AuthPrincipal,
        *,
        article_id: str,
        payload: UpdateArticleRequest,
    ) -> Article:
        current = await self._articles.find_article_by_id(article_id)
        if current is None:
            raise not_found_error()
        ensure_can_mutate_article(principal, ArticleAction.UPDATE, author_id=current.author_id)

        updated = await self._articles.update_article(article_id, self._update_fields(payload))
        if updated is None:
            raise not_found_error()
        logger.info(
            "news.updated article_id=%s actor_id=%s",
            article_id,
            safe_log_identifier(principal.user_id, prefix="pid"),
        )
        return await self._to_article(updated)

    async def delete_article(self, principal: AuthPrincipal, *, article_id: str) -> MessageResponse:
        current = await self._articles.find_article_by_id(article_id)
        if current is None:
            raise not_found_error()
        ensure_can_mutate_article(principal, ArticleAction.DELETE, author_id=current.author_id)

        if not await self._articles.delete_article(article_id):
            raise not_found_error()
        logger.info(
            "news.deleted article_id=%s actor_id=%s",
            article_id,
            safe_log_identifier(principal.user_id, prefix="pid"),
        )
        return MessageResponse(message="Article deleted successfully")

    async def get_published_article(self, *, article_id: str) -> Article:
        record = await self._articles.find_article_by_id(article_id)
        if record is None:
            raise not_found_error()
        ensure_publicly_visible(record.published)
        return await self._to_article(record)

    async def list_published_articles(
        self,
        *,
        page: int,
        limit: int,
        tag: str | None = None,
        search: str | None = None,
    ) -> ArticleList:
        return await self._list(
            public_article_filter(tag=tag, search=search),
            page=page,
            limit=limit,
            sort_key="publish_date",
        )

    async def list_own_articles(
        self,
        principal: AuthPrincipal,
        *,
        page: int,
        limit: int,
        tag: str | None = None,
        search: str | None = None,
    ) -> ArticleList:
        return await self._list(
            own_article_filter(principal, tag=tag, search=search),
            page=page,
            limit=limit,
            sort_key="created_at",
        )

    async def _list(
        self,
        article_filter: ArticleFilter,
        *,
        page: int,
        limit: int,
        sort_key: ArticleSortKey,
    ) -> ArticleList:
        records, total = await self._articles.list_articles(article_filter, page=page, limit=limit, sort_key=sort_key)
        authors = await self._author_names({record.author_id for record in records})
        return ArticleList(
            news=[self._build_article(record, authors.get(record.author_id)) for record in records],
            pagination=Pagination.build(total=total, page=page, limit=limit),
        )

    @staticmethod
    def _update_fields(payload: UpdateArticleRequest) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for key, value in payload.model_dump(exclude_unset=True).items():
            if value is None and key not in _NULLABLE_FIELDS:
                continue
            fields[key] = value
        if fields.get("image_url") is not None:
            fields["image_url"] = str(payload.image_url)
        return fields

    async def _author_names(self, author_ids: set[str]) -> dict[str, str]:
        names: dict[str, str] = {}
        for author_id in author_ids:
            user = await self._users.find_user_by_id(author_id)
            if user is not None:
                names[author_id] = user.name
        return names

    async def _to_article(self, record: ArticleRecord) -> Article:
        authors = await self._author_names({record.author_id})
        return self._build_article(record, authors.get(record.author_id))

    @staticmethod
    def _build_article(record: ArticleRecord, author_name: str | None) -> Article:
        return Article(
            id=record.id,
            title=record.title,
            content=record.content,
            summary=record.summary,
            image_url=record.image_url,
            published=record.published,
            publish_date=record.publish_date,
            tags=list(record.tags),
            author=record.author_id,
            author_name=author_name,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
