"""Startup provisioning of the administrator account and sample articles."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from fastapi.concurrency import run_in_threadpool

from app.adapters.auth.base import PasswordHasher
from app.core.config import Settings
from app.core.logging_safety import safe_log_identifier
from app.repositories.base import ArticleRepository, UserRecord, UserRepository
from app.schemas.auth import Role

logger = logging.getLogger(__name__)


def _sample_articles(now: datetime) -> list[dict]:
    return [
        {
            "title": "Assembleia Geral será realizada no próximo mês",
            "content": (
                "<p>O Sindicato convoca todos os associados para a Assembleia Geral que será realizada "
                "no dia 15 do próximo mês, às 19h, na sede do sindicato.</p>"
                "<p>Na pauta estão as negociações salariais, benefícios e condições de trabalho.</p>"
            ),
            "summary": "Reunião discutirá negociações salariais e condições de trabalho da categoria.",
            "image_url": "https://images.unsplash.com/photo-1573497620053-ea5300f94f21",
            "published": True,
            "publish_date": now,
            "tags": ["Assembleia", "Comunicados"],
        },
        {
            "title": "Novos cursos de capacitação disponíveis para associados",
            "content": (
                "<p>Em parceria com o SENAI, o sindicato oferece novos cursos de capacitação profissional "
                "para associados e dependentes, como Operação de Guindastes e NR-35.</p>"
            ),
            "summary": "Parceria com SENAI traz novas oportunidades de qualificação profissional.",
            "image_url": "https://images.unsplash.com/photo-1501516069922-a9982bd6f3bd",
            "published": True,
            "publish_date": now - timedelta(days=5),
            "tags": ["Educação", "Cursos", "Benefícios"],
        },
        {
            "title": "Campanha de vacinação contra a gripe começa na próxima semana",
            "content": (
                "<p>A partir da próxima segunda-feira a sede do sindicato recebe a campanha de vacinação "
                "contra a gripe, das 9h às 17h, durante duas semanas.</p>"
            ),
            "summary": "Vacinas gratuitas para associados e dependentes na sede do sindicato.",
            "image_url": "https://images.unsplash.com/photo-1584515979956-d9f6e5d09982",
            "published": True,
            "publish_date": now - timedelta(days=2),
            "tags": ["Saúde", "Benefícios"],
        },
    ]


async def ensure_admin_user(
    users: UserRepository,
    passwords: PasswordHasher,
    *,
    name: str,
    email: str,
    password: str,
) -> UserRecord:
    """Return the admin account for ``email``, creating it when absent."""
    existing = await users.find_user_by_email(email)
    if existing is not None:
        logger.info("seed.admin_exists email=%s", safe_log_identifier(email, prefix="email"))
        return existing

    password_hash = await run_in_threadpool(passwords.hash_password, password)
    admin = await users.create_user(name=name, email=email, password_hash=password_hash, role=Role.ADMIN)
    logger.info("seed.admin_created user_id=%s", safe_log_identifier(admin.id, prefix="pid"))
    return admin


async def seed_sample_articles(articles: ArticleRepository, *, author_id: str) -> int:
    """Insert the sample articles into an empty store; return how many were written."""
    if await articles.count_articles() > 0:
        logger.info("seed.articles_skipped reason=store_not_empty")
        return 0

    samples = _sample_articles(datetime.now(UTC))
    for fields in samples:
        await articles.create_article(fields, author_id=author_id)
    logger.info("seed.articles_created count=%d", len(samples))
    return len(samples)


async def seed_store(
    *,
    users: UserRepository,
    articles: ArticleRepository,
    passwords: PasswordHasher,
    settings: Settings,
) -> None:
    if not settings.seed_admin_email or not settings.seed_admin_password:
        return

    admin = await ensure_admin_user(
        users,
        passwords,
        name=settings.seed_admin_name,
        email=settings.seed_admin_email,
        password=settings.seed_admin_password,
    )
    if settings.seed_sample_news:
        await seed_sample_articles(articles, author_id=admin.id)
