"""
FastAPI application entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from classsite.config import Settings, get_settings
from classsite.dependencies import AppContext, build_context
from classsite.errors import ContentError
from classsite.routes import router
from classsite.seed import seed_defaults

logger = logging.getLogger(__name__)


def bootstrap(context: AppContext) -> None:
    """Idempotent startup work: admin account, then default content."""
    settings = context.settings
    if settings.admin_username and settings.admin_password:
        context.credentials.bootstrap(settings.admin_username, settings.admin_password)
    else:
        logger.warning("ADMIN_USERNAME/ADMIN_PASSWORD not set; no admin bootstrapped")
    if settings.seed_defaults:
        seed_defaults(context.backend)


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return f"{location}: {message}" if location else message


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ContentError)
    async def content_error_handler(request: Request, exc: ContentError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400, content={"error": _first_validation_message(exc)}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # No route for this method and path, including wrong-method hits.
        if exc.status_code == 405 or (
            exc.status_code == 404 and exc.detail == "Not Found"
        ):
            return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Server error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    context = build_context(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        bootstrap(context)
        try:
            yield
        finally:
            context.close()

    app = FastAPI(title="Class Site Content API", version="0.1.0", lifespan=lifespan)
    app.state.context = context
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)
    app.mount(
        settings.static_url_path,
        StaticFiles(directory=str(context.assets.upload_dir)),
        name="gallery-images",
    )
    return app
