"""Application wiring, documentation, error redaction and seeding tests."""

from __future__ import annotations

import unittest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from app.adapters.auth import BcryptPasswordHasher
from app.core.config import Settings
from app.main import create_app
from app.repositories.memory import InMemoryStore
from app.routes.dependencies import get_news_service
from app.schemas.auth import Role
from app.services.seed import ensure_admin_user, seed_sample_articles, seed_store


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "jwt_secret": "test-jwt-secret",
        "bcrypt_rounds": 4,
        "seed_admin_email": None,
        "seed_admin_password": None,
        "seed_sample_news": False,
        "mongodb_uri": None,
    }
    values.update(overrides)
    return Settings(**values)


class _ExplodingNewsService:
    async def list_published_articles(self, **_: object) -> None:
        raise RuntimeError("store offline")


class AppWiringTests(unittest.TestCase):
    def test_health_and_documentation_are_served(self) -> None:
        client = TestClient(create_app(_settings()))

        self.assertEqual(client.get("/health").json(), {"status": "ok"})
        self.assertEqual(client.get("/documentation").status_code, 200)

    def test_openapi_documents_routes_and_bearer_scheme(self) -> None:
        schema = TestClient(create_app(_settings())).get("/openapi.json").json()

        self.assertIn("bearerAuth", schema["components"]["securitySchemes"])
        self.assertEqual(set(schema["paths"]["/api/news/{newsId}"]["delete"]["responses"]), {"200", "401", "403", "404"})
        self.assertEqual(set(schema["paths"]["/api/auth/register"]["post"]["responses"]), {"201", "400"})
        self.assertNotIn("422", schema["paths"]["/api/news"]["get"]["responses"])
        self.assertNotIn("/news", schema["paths"])
        self.assertNotIn("/auth/register", schema["paths"])

    def test_cors_headers_on_cross_origin_request(self) -> None:
        client = TestClient(create_app(_settings()))

        response = client.get("/api/news", headers={"Origin": "https://sindicato.example.org"})

        self.assertEqual(response.status_code, 200)
        self.assertIn("access-control-allow-origin", response.headers)

    def test_unexpected_errors_are_redacted_in_production(self) -> None:
        for environment, expected in (
            ("production", "Internal server error"),
            ("development", "RuntimeError: store offline"),
        ):
            with self.subTest(environment=environment):
                app = create_app(_settings(environment=environment))
                app.dependency_overrides[get_news_service] = _ExplodingNewsService
                client = TestClient(app, raise_server_exceptions=False)

                response = client.get("/api/news")

                self.assertEqual(response.status_code, 500)
                self.assertEqual(response.json(), {"code": "INTERNAL_ERROR", "message": expected})

    def test_startup_seeds_admin_and_sample_news(self) -> None:
        settings = _settings(
            seed_admin_email="admin@union.org",
            seed_admin_password="admin123",
            seed_sample_news=True,
        )
        with TestClient(create_app(settings)) as client:
            news = client.get("/api/news").json()
            login = client.post("/api/auth/login", json={"email": "admin@union.org", "password": "admin123"})

        self.assertEqual(news["pagination"]["total"], 3)
        self.assertEqual(login.status_code, 200)
        self.assertEqual(login.json()["user"]["role"], "admin")
        self.assertEqual({article["authorName"] for article in news["news"]}, {"Administrador"})


class StoreSelectionTests(unittest.TestCase):
    def test_in_memory_store_without_mongodb_uri(self) -> None:
        app = create_app(_settings())

        self.assertIsInstance(app.state.store, InMemoryStore)

    def test_mongodb_uri_opens_document_store_for_app_lifetime(self) -> None:
        settings = _settings(mongodb_uri="mongodb://db.internal:27017/sindicato", mongodb_database="union_news")
        document_store = AsyncMock()

        with patch("app.main.open_mongo_store", new=AsyncMock(return_value=document_store)) as opener:
            app = create_app(settings)
            self.assertIsNone(app.state.store)
            with TestClient(app):
                self.assertIs(app.state.store, document_store)

        opener.assert_awaited_once_with("mongodb://db.internal:27017/sindicato", "union_news")
        document_store.close.assert_awaited_once()
        self.assertIsNone(app.state.store)


class SeedTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.store = InMemoryStore()
        self.hasher = BcryptPasswordHasher(rounds=4)

    async def test_admin_creation_is_idempotent(self) -> None:
        first = await ensure_admin_user(
            self.store, self.hasher, name="Administrador", email="admin@union.org", password="admin123"
        )
        second = await ensure_admin_user(
            self.store, self.hasher, name="Outro", email="ADMIN@union.org", password="other123"
        )

        self.assertEqual(first.id, second.id)
        self.assertIs(first.role, Role.ADMIN)
        self.assertEqual(len(self.store.users), 1)
        self.assertTrue(self.hasher.verify_password("admin123", second.password_hash))

    async def test_sample_articles_only_fill_an_empty_store(self) -> None:
        self.assertEqual(await seed_sample_articles(self.store, author_id="admin-1"), 3)
        self.assertEqual(await seed_sample_articles(self.store, author_id="admin-1"), 0)
        self.assertEqual(await self.store.count_articles(), 3)

    async def test_seeding_is_skipped_without_admin_credentials(self) -> None:
        await seed_store(
            users=self.store,
            articles=self.store,
            passwords=self.hasher,
            settings=_settings(seed_admin_email="admin@union.org", seed_sample_news=True),
        )

        self.assertEqual(self.store.users, {})
        self.assertEqual(self.store.articles, {})
