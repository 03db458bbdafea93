"""News article routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from app.routes.dependencies import get_authenticated_principal, get_news_service
from app.schemas.auth import AuthPrincipal
from app.schemas.common import MessageResponse
from app.schemas.error import ErrorResponse, NoLeakNotFoundError, ValidationErrorResponse
from app.schemas.news import Article, ArticleList, CreateArticleRequest, UpdateArticleRequest
from app.services.news import NewsService

router = APIRouter(prefix="/news", tags=["News"])

PageQuery = Annotated[int, Query(ge=1)]
LimitQuery = Annotated[int, Query(ge=1, le=100)]


@router.get(
    "",
    response_model=ArticleList,
    responses={400: {"model": ValidationErrorResponse}},
)
async def list_news(
    service: Annotated[NewsService, Depends(get_news_service)],
    page: PageQuery = 1,
    limit: LimitQuery = 10,
    tag: str | None = None,
    search: str | None = None,
) -> ArticleList:
    return await service.list_published_articles(page=page, limit=limit, tag=tag, search=search)


@router.get(
    "/my",
    response_model=ArticleList,
    responses={400: {"model": ValidationErrorResponse}, 401: {"model": ErrorResponse}},
)
async def list_my_news(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[NewsService, Depends(get_news_service)],
    page: PageQuery = 1,
    limit: LimitQuery = 10,
    tag: str | None = None,
    search: str | None = None,
) -> ArticleList:
    return await service.list_own_articles(principal, page=page, limit=limit, tag=tag, search=search)


@router.get(
    "/{newsId}",
    response_model=Article,
    responses={404: {"model": NoLeakNotFoundError}},
)
async def get_news(
    article_id: Annotated[str, Path(alias="newsId")],
    service: Annotated[NewsService, Depends(get_news_service)],
) -> Article:
    return await service.get_published_article(article_id=article_id)


@router.post(
    "",
    response_model=Article,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ValidationErrorResponse}, 401: {"model": ErrorResponse}},
)
async def create_news(
    payload: CreateArticleRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[NewsService, Depends(get_news_service)],
) -> Article:
    return await service.create_article(principal, payload)


@router.put(
    "/{newsId}",
    response_model=Article,
    responses={
        400: {"model": ValidationErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": NoLeakNotFoundError},
    },
)
async def update_news(
    article_id: Annotated[str, Path(alias="newsId")],
    payload: UpdateArticleRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[NewsService, Depends(get_news_service)],
) -> Article:
    return await service.update_article(principal, article_id=article_id, payload=payload)


@router.delete(
    "/{newsId}",
    response_model=MessageResponse,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": NoLeakNotFoundError},
    },
)
async def delete_news(
    article_id: Annotated[str, Path(alias="newsId")],
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[NewsService, Depends(get_news_service)],
) -> MessageResponse:
    return await service.delete_article(principal, article_id=article_id)
