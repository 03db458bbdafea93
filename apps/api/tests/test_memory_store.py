"""In-memory store contract tests."""

from __future__ import annotations

import unittest
from datetime import UTC, datetime, timedelta
from math import ceil

from app.domain.policy import ArticleFilter
from app.repositories.base import DuplicateKeyError
from app.repositories.memory import InMemoryStore
from app.schemas.auth import Role


def _article(index: int, **overrides: object) -> dict:
    fields = {
        "title": f"Article {index}",
        "content": f"Content body number {index}",
        "summary": f"Summary {index}",
        "publish_date": datetime(2026, 1, 1, tzinfo=UTC) + timedelta(hours=index),
    }
    fields.update(overrides)
    return fields


class UserStoreTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.store = InMemoryStore()

    async def test_duplicate_email_raises_typed_error_without_write(self) -> None:
        await self.store.create_user(name="Ana", email="ana@x.com", password_hash="h", role=Role.EDITOR)
        writes = self.store.user_write_count

        with self.assertRaises(DuplicateKeyError) as context:
            await self.store.create_user(name="Ana 2", email="ANA@x.com ", password_hash="h2", role=Role.EDITOR)

        self.assertEqual(context.exception.field_name, "email")
        self.assertEqual(self.store.user_write_count, writes)
        self.assertEqual(len(self.store.users), 1)

    async def test_update_strips_password_fields(self) -> None:
        user = await self.store.create_user(name="Ana", email="ana@x.com", password_hash="original", role=Role.EDITOR)

        updated = await self.store.update_user(
            user.id,
            {"name": "Ana Maria", "password": "new", "password_hash": "forged"},
        )

        assert updated is not None
        self.assertEqual(updated.name, "Ana Maria")
        self.assertEqual(updated.password_hash, "original")

    async def test_email_change_reindexes_and_rejects_taken_email(self) -> None:
        ana = await self.store.create_user(name="Ana", email="ana@x.com", password_hash="h", role=Role.EDITOR)
        await self.store.create_user(name="Bia", email="bia@x.com", password_hash="h", role=Role.EDITOR)

        with self.assertRaises(DuplicateKeyError):
            await self.store.update_user(ana.id, {"email": "bia@x.com"})

        await self.store.update_user(ana.id, {"email": "ana.maria@x.com"})
        self.assertIsNone(await self.store.find_user_by_email("ana@x.com"))
        found = await self.store.find_user_by_email("Ana.Maria@x.com")
        assert found is not None
        self.assertEqual(found.id, ana.id)

    async def test_returned_users_are_detached_copies(self) -> None:
        created = await self.store.create_user(name="Ana", email="ana@x.com", password_hash="h", role=Role.EDITOR)
        found = await self.store.find_user_by_id(created.id)
        assert found is not None
        writes = self.store.user_write_count

        created.role = Role.ADMIN
        found.active = False
        found.password_hash = "tampered"

        stored = await self.store.find_user_by_email("ana@x.com")
        assert stored is not None
        self.assertIs(stored.role, Role.EDITOR)
        self.assertTrue(stored.active)
        self.assertEqual(stored.password_hash, "h")
        self.assertEqual(self.store.user_write_count, writes)

    async def test_update_missing_user_returns_none(self) -> None:
        self.assertIsNone(await self.store.update_user("missing", {"name": "Nobody"}))
        self.assertFalse(await self.store.set_user_password_hash("missing", "h"))

    async def test_list_users_newest_first_with_total(self) -> None:
        created = []
        for index in range(5):
            created.append(
                await self.store.create_user(
                    name=f"User {index}",
                    email=f"user{index}@x.com",
                    password_hash="h",
                    role=Role.EDITOR,
                )
            )

        page, total = await self.store.list_users(page=1, limit=2)

        self.assertEqual(total, 5)
        self.assertEqual([user.id for user in page], [created[4].id, created[3].id])


class ArticleStoreTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.store = InMemoryStore()

    async def test_pagination_window_and_total_pages(self) -> None:
        for index in range(23):
            await self.store.create_article(_article(index), author_id="author-1")

        everything, total = await self.store.list_articles(
            ArticleFilter(), page=1, limit=100, sort_key="publish_date"
        )
        self.assertEqual(total, 23)

        limit = 5
        for page in range(1, ceil(total / limit) + 2):
            with self.subTest(page=page):
                window, window_total = await self.store.list_articles(
                    ArticleFilter(), page=page, limit=limit, sort_key="publish_date"
                )
                self.assertEqual(window_total, total)
                self.assertEqual(
                    [record.id for record in window],
                    [record.id for record in everything[(page - 1) * limit : page * limit]],
                )

    async def test_publish_date_sort_is_descending(self) -> None:
        for index in (2, 0, 1):
            await self.store.create_article(_article(index), author_id="author-1")

        records, _ = await self.store.list_articles(ArticleFilter(), page=1, limit=10, sort_key="publish_date")

        self.assertEqual([record.title for record in records], ["Article 2", "Article 1", "Article 0"])

    async def test_filters_combine_published_author_tag_and_search(self) -> None:
        await self.store.create_article(_article(1, tags=["Saúde"], title="Vacinação na sede"), author_id="a")
        await self.store.create_article(_article(2, tags=["Saúde"], published=False), author_id="a")
        await self.store.create_article(_article(3, tags=["Cursos"]), author_id="b")

        published, total = await self.store.list_articles(
            ArticleFilter(published=True, tag="Saúde"), page=1, limit=10, sort_key="publish_date"
        )
        self.assertEqual(total, 1)
        self.assertEqual(published[0].title, "Vacinação na sede")

        by_author, total = await self.store.list_articles(
            ArticleFilter(author_id="a"), page=1, limit=10, sort_key="created_at"
        )
        self.assertEqual(total, 2)
        self.assertEqual({record.author_id for record in by_author}, {"a"})

        searched, total = await self.store.list_articles(
            ArticleFilter(search="VACINAÇÃO inexistente"), page=1, limit=10, sort_key="publish_date"
        )
        self.assertEqual(total, 1)
        self.assertEqual(searched[0].title, "Vacinação na sede")

    async def test_search_covers_content_and_summary(self) -> None:
        await self.store.create_article(_article(1, content="Negociações salariais em pauta"), author_id="a")
        await self.store.create_article(_article(2, summary="Resumo sobre guindastes"), author_id="a")

        for term, expected in (("salariais", "Article 1"), ("guindastes", "Article 2")):
            with self.subTest(term=term):
                records, total = await self.store.list_articles(
                    ArticleFilter(search=term), page=1, limit=10, sort_key="publish_date"
                )
                self.assertEqual(total, 1)
                self.assertEqual(records[0].title, expected)

    async def test_defaults_on_create(self) -> None:
        record = await self.store.create_article(
            {"title": "Sem data", "content": "Conteúdo suficiente", "summary": "Resumo"},
            author_id="a",
        )

        self.assertTrue(record.published)
        self.assertEqual(record.publish_date, record.created_at)
        self.assertEqual(record.tags, [])
        self.assertIsNone(record.image_url)

    async def test_update_never_changes_author(self) -> None:
        record = await self.store.create_article(_article(1), author_id="a")

        updated = await self.store.update_article(record.id, {"author_id": "b", "title": "Novo título"})

        assert updated is not None
        self.assertEqual(updated.author_id, "a")
        self.assertEqual(updated.title, "Novo título")

    async def test_returned_articles_are_detached_copies(self) -> None:
        record = await self.store.create_article(_article(1, tags=["Saúde"]), author_id="a")
        listed, _ = await self.store.list_articles(ArticleFilter(), page=1, limit=10, sort_key="created_at")

        record.author_id = "b"
        listed[0].published = False
        listed[0].tags.append("Forjada")

        stored = await self.store.find_article_by_id(record.id)
        assert stored is not None
        self.assertEqual(stored.author_id, "a")
        self.assertTrue(stored.published)
        self.assertEqual(stored.tags, ["Saúde"])

    async def test_delete_reports_whether_article_existed(self) -> None:
        record = await self.store.create_article(_article(1), author_id="a")

        self.assertTrue(await self.store.delete_article(record.id))
        self.assertFalse(await self.store.delete_article(record.id))
        self.assertIsNone(await self.store.find_article_by_id(record.id))
        self.assertEqual(await self.store.count_articles(), 0)
