"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

from app.adapters.auth import BcryptPasswordHasher, JwtTokenService, PasswordHasher, TokenService
from app.core.config import Settings, get_settings
from app.core.logging_safety import configure_logging
from app.errors import ApiError
from app.repositories.memory import InMemoryStore
from app.repositories.mongo import MongoStore, open_mongo_store
from app.routes import auth_router, health_router, news_router
from app.schemas.error import ErrorResponse, FieldIssue, ValidationErrorDetails, ValidationErrorResponse
from app.services.seed import seed_store

logger = logging.getLogger(__name__)

API_PREFIX = "/api"

_OPENAPI_RESPONSE_CODES: dict[str, dict[str, set[str]]] = {
    "/api/auth/register": {"post": {"201", "400"}},
    "/api/auth/login": {"post": {"200", "400", "401"}},
    "/api/auth/profile": {"get": {"200", "401"}, "put": {"200", "400", "401"}},
    "/api/auth/change-password": {"put": {"200", "400", "401"}},
    "/api/auth/users": {"get": {"200", "400", "401", "403"}},
    "/api/news": {"get": {"200", "400"}, "post": {"201", "400", "401"}},
    "/api/news/my": {"get": {"200", "400", "401"}},
    "/api/news/{newsId}": {
        "get": {"200", "404"},
        "put": {"200", "400", "401", "403", "404"},
        "delete": {"200", "401", "403", "404"},
    },
    "/health": {"get": {"200"}},
}

# Parameter locations FastAPI prefixes to validation error paths.
_LOCATION_PREFIXES = frozenset({"body", "query", "path", "header", "cookie"})


def _apply_contract_response_codes(schema: dict) -> None:
    """Limit documented response codes to the ones each route can actually return."""
    for path, methods in _OPENAPI_RESPONSE_CODES.items():
        path_item = schema.get("paths", {}).get(path)
        if not path_item:
            continue

        for method, allowed_codes in methods.items():
            operation = path_item.get(method)
            if not operation:
                continue

            responses = operation.setdefault("responses", {})
            for status_code in list(responses.keys()):
                if status_code not in allowed_codes:
                    responses.pop(status_code, None)

            for status_code in sorted(allowed_codes):
                responses.setdefault(status_code, {"description": "See API contract"})


def _field_issues(exc: RequestValidationError) -> list[FieldIssue]:
    issues: list[FieldIssue] = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ())]
        if location and location[0] in _LOCATION_PREFIXES:
            location = location[1:]
        issues.append(FieldIssue(field=".".join(location) or "body", message=str(error.get("msg", "Invalid value"))))
    return issues


def create_app(
    settings: Settings | None = None,
    *,
    store: InMemoryStore | MongoStore | None = None,
    token_service: TokenService | None = None,
    password_hasher: PasswordHasher | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        mongo_store = None
        if app.state.store is None:
            mongo_store = await open_mongo_store(settings.mongodb_uri, settings.mongodb_database)
            app.state.store = mongo_store
            logger.info("store.connected backend=mongodb database=%s", settings.mongodb_database)
        await seed_store(
            users=app.state.store,
            articles=app.state.store,
            passwords=app.state.password_hasher,
            settings=settings,
        )
        logger.info("app.started environment=%s", settings.environment)
        yield
        if mongo_store is not None:
            await mongo_store.close()
            app.state.store = None
        logger.info("app.stopped")

    app = FastAPI(
        title="Union News API",
        description="News and member accounts for the union website.",
        version="1.0.0",
        docs_url="/documentation",
        lifespan=lifespan,
    )
    app.state.settings = settings
    if store is None and not settings.mongodb_uri:
        store = InMemoryStore()
    # A MongoDB store is opened by the lifespan handler.
    app.state.store = store
    app.state.token_service = token_service or JwtTokenService(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_in=settings.jwt_expires_in,
    )
    app.state.password_hasher = password_hasher or BcryptPasswordHasher(rounds=settings.bcrypt_rounds)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json", exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        payload = ValidationErrorResponse(
            code="VALIDATION_ERROR",
            message="Invalid request payload",
            details=ValidationErrorDetails(errors=_field_issues(exc)),
        )
        logger.info(
            "request.invalid method=%s path=%s fields=%s",
            request.method,
            request.url.path,
            ",".join(issue.field for issue in payload.details.errors),
        )
        return JSONResponse(status_code=400, content=payload.model_dump(mode="json"))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("request.failed method=%s path=%s", request.method, request.url.path)
        message = "Internal server error" if settings.is_production else f"{type(exc).__name__}: {exc}"
        payload = ErrorResponse(code="INTERNAL_ERROR", message=message)
        return JSONResponse(status_code=500, content=payload.model_dump(exclude_none=True))

    app.include_router(health_router)
    for prefix, documented in ((API_PREFIX, True), ("", False)):
        # Unprefixed paths are served as aliases of the documented /api routes.
        app.include_router(auth_router, prefix=prefix, include_in_schema=documented)
        app.include_router(news_router, prefix=prefix, include_in_schema=documented)

    def custom_openapi() -> dict:
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        _apply_contract_response_codes(schema)
        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi

    return app


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Starting Union News API on %s:%s (%s)", settings.host, settings.port, settings.environment)
    uvicorn.run("app.main:create_app", factory=True, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
