"""MongoDB repositories built on Beanie documents."""

from datetime import UTC, datetime
from typing import Any

from beanie import Document, Indexed, PydanticObjectId, init_beanie
from pydantic import Field
from pymongo import DESCENDING, TEXT, AsyncMongoClient, IndexModel
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

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


class UserDocument(Document):
    name: str
    email: Indexed(str, unique=True)
    password_hash: str
    role: Role = Role.EDITOR
    active: bool = True
    created_at: datetime
    updated_at: datetime

    class Settings:
        name = "users"


class ArticleDocument(Document):
    title: str
    content: str
    summary: str
    image_url: str | None = None
    published: bool = True
    publish_date: datetime
    tags: list[str] = Field(default_factory=list)
    author_id: Indexed(str)
    created_at: datetime
    updated_at: datetime

    class Settings:
        name = "news"
        indexes = [
            IndexModel(
                [("title", TEXT), ("content", TEXT), ("summary", TEXT)],
                name="news_text",
                default_language="portuguese",
            ),
            IndexModel([("published", DESCENDING), ("publish_date", DESCENDING)], name="news_published_date"),
        ]


def object_id(value: str) -> PydanticObjectId | None:
    """Parse a path id; malformed ids resolve to "not found" rather than an error."""
    if not PydanticObjectId.is_valid(value):
        return None
    return PydanticObjectId(value)


def article_query(article_filter: ArticleFilter) -> dict[str, Any]:
    """Translate an article filter into a Mongo query document.

    Search terms are OR-ed through the ``news_text`` index, so matching is by
    whole (stemmed) words, case and diacritic insensitive.
    """
    query: dict[str, Any] = {}
    if article_filter.published is not None:
        query["published"] = article_filter.published
    if article_filter.author_id is not None:
        query["author_id"] = article_filter.author_id
    if article_filter.tag is not None:
        query["tags"] = article_filter.tag
    if article_filter.search is not None:
        terms = article_filter.search.split()
        if terms:
            query["$text"] = {"$search": " ".join(terms)}
    return query


def _sort_spec(field_name: str) -> list[tuple[str, int]]:
    # _id breaks ties in insertion order.
    return [(field_name, DESCENDING), ("_id", DESCENDING)]


def _offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit


def _user_record(document: UserDocument) -> UserRecord:
    return UserRecord(
        id=str(document.id),
        name=document.name,
        email=document.email,
        password_hash=document.password_hash,
        role=document.role,
        active=document.active,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


def _article_record(document: ArticleDocument) -> ArticleRecord:
    return ArticleRecord(
        id=str(document.id),
        title=document.title,
        content=document.content,
        summary=document.summary,
        author_id=document.author_id,
        published=document.published,
        publish_date=document.publish_date,
        created_at=document.created_at,
        updated_at=document.updated_at,
        image_url=document.image_url,
        tags=list(document.tags),
    )


class MongoStore(UserRepository, ArticleRepository):
    """Document-database store; uniqueness of emails is enforced by a unique index."""

    def __init__(self, client: AsyncMongoClient) -> None:
        self._client = client

    async def close(self) -> None:
        await self._client.close()

    async def _user_document(self, user_id: str) -> UserDocument | None:
        document_id = object_id(user_id)
        return await UserDocument.get(document_id) if document_id is not None else None

    async def _article_document(self, article_id: str) -> ArticleDocument | None:
        document_id = object_id(article_id)
        return await ArticleDocument.get(document_id) if document_id is not None else None

    async def find_user_by_email(self, email: str) -> UserRecord | None:
        document = await UserDocument.find_one(UserDocument.email == email.strip().lower())
        return _user_record(document) if document is not None else None

    async def find_user_by_id(self, user_id: str) -> UserRecord | None:
        document = await self._user_document(user_id)
        return _user_record(document) if document is not None else None

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
        now = datetime.now(UTC)
        document = UserDocument(
            name=name,
            email=email_key,
            password_hash=password_hash,
            role=role,
            active=active,
            created_at=now,
            updated_at=now,
        )
        try:
            await document.insert()
        except MongoDuplicateKeyError as exc:
            raise DuplicateKeyError("email", email_key) from exc
        return _user_record(document)

    async def update_user(self, user_id: str, fields: dict[str, Any]) -> UserRecord | None:
        document = await self._user_document(user_id)
        if document is None:
            return None

        for key, value in fields.items():
            if key not in USER_MUTABLE_FIELDS:
                continue
            setattr(document, key, str(value).strip().lower() if key == "email" else value)
        document.updated_at = datetime.now(UTC)
        try:
            await document.save()
        except MongoDuplicateKeyError as exc:
            raise DuplicateKeyError("email", document.email) from exc
        return _user_record(document)

    async def set_user_password_hash(self, user_id: str, password_hash: str) -> bool:
        document = await self._user_document(user_id)
        if document is None:
            return False
        document.password_hash = password_hash
        document.updated_at = datetime.now(UTC)
        await document.save()
        return True

    async def list_users(self, *, page: int, limit: int) -> tuple[list[UserRecord], int]:
        total = await UserDocument.find_all().count()
        documents = (
            await UserDocument.find_all()
            .sort(_sort_spec("created_at"))
            .skip(_offset(page, limit))
            .limit(limit)
            .to_list()
        )
        return [_user_record(document) for document in documents], total

    async def create_article(self, fields: dict[str, Any], *, author_id: str) -> ArticleRecord:
        now = datetime.now(UTC)
        values = {key: value for key, value in fields.items() if key in ARTICLE_MUTABLE_FIELDS}
        document = ArticleDocument(
            title=values["title"],
            content=values["content"],
            summary=values["summary"],
            image_url=values.get("image_url"),
            published=values.get("published", True),
            publish_date=values.get("publish_date") or now,
            tags=list(values.get("tags") or []),
            author_id=author_id,
            created_at=now,
            updated_at=now,
        )
        await document.insert()
        return _article_record(document)

    async def update_article(self, article_id: str, fields: dict[str, Any]) -> ArticleRecord | None:
        document = await self._article_document(article_id)
        if document is None:
            return None

        for key, value in fields.items():
            if key in ARTICLE_MUTABLE_FIELDS:
                setattr(document, key, value)
        document.updated_at = datetime.now(UTC)
        await document.save()
        return _article_record(document)

    async def delete_article(self, article_id: str) -> bool:
        document = await self._article_document(article_id)
        if document is None:
            return False
        await document.delete()
        return True

    async def find_article_by_id(self, article_id: str) -> ArticleRecord | None:
        document = await self._article_document(article_id)
        return _article_record(document) if document is not None else None

    async def list_articles(
        self,
        article_filter: ArticleFilter,
        *,
        page: int,
        limit: int,
        sort_key: ArticleSortKey,
    ) -> tuple[list[ArticleRecord], int]:
        query = article_query(article_filter)
        total = await ArticleDocument.find(query).count()
        documents = (
            await ArticleDocument.find(query)
            .sort(_sort_spec(sort_key))
            .skip(_offset(page, limit))
            .limit(limit)
            .to_list()
        )
        return [_article_record(document) for document in documents], total

    async def count_articles(self) -> int:
        return await ArticleDocument.find_all().count()


async def open_mongo_store(uri: str, database: str) -> MongoStore:
    """Connect, register the document models and build their indexes.

    A database named in ``uri`` takes precedence over ``database``.
    """
    client: AsyncMongoClient = AsyncMongoClient(uri, tz_aware=True)
    await init_beanie(
        database=client.get_default_database(default=database),
        document_models=[UserDocument, ArticleDocument],
    )
    return MongoStore(client)


__all__ = ["ArticleDocument", "MongoStore", "UserDocument", "article_query", "object_id", "open_mongo_store"]
