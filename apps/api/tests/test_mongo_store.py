"""Document-store query translation tests."""

from __future__ import annotations

import unittest

from app.domain.policy import ArticleFilter
from app.repositories.mongo import ArticleDocument, UserDocument, article_query, object_id


class ArticleQueryTests(unittest.TestCase):
    def test_empty_filter_matches_everything(self) -> None:
        self.assertEqual(article_query(ArticleFilter()), {})

    def test_filters_combine_into_one_query(self) -> None:
        query = article_query(ArticleFilter(published=True, author_id="author-1", tag="Saúde", search="vacina  gripe"))

        self.assertEqual(
            query,
            {
                "published": True,
                "author_id": "author-1",
                "tags": "Saúde",
                "$text": {"$search": "vacina gripe"},
            },
        )

    def test_unpublished_filter_is_kept(self) -> None:
        self.assertEqual(article_query(ArticleFilter(published=False)), {"published": False})

    def test_whitespace_search_adds_no_text_clause(self) -> None:
        self.assertNotIn("$text", article_query(ArticleFilter(search="   ")))


class DocumentIdTests(unittest.TestCase):
    def test_malformed_ids_resolve_to_none(self) -> None:
        for value in ("", "missing-id", "42"):
            with self.subTest(value=value):
                self.assertIsNone(object_id(value))

    def test_hex_object_id_is_parsed(self) -> None:
        self.assertEqual(str(object_id("65f1c2a4b7e4d3a1c2b3d4e5")), "65f1c2a4b7e4d3a1c2b3d4e5")


class DocumentIndexTests(unittest.TestCase):
    def test_collections_and_text_index(self) -> None:
        self.assertEqual(UserDocument.Settings.name, "users")
        self.assertEqual(ArticleDocument.Settings.name, "news")

        text_index = next(index for index in ArticleDocument.Settings.indexes if index.document["name"] == "news_text")
        self.assertEqual(
            dict(text_index.document["key"]),
            {"title": "text", "content": "text", "summary": "text"},
        )
