"""
FastAPI application entrypoint for the Instagram Business connection service.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Any, AsyncIterator, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from ig_connect.api.auth_routes import router as auth_router
from ig_connect.api.routes import router as api_router
from ig_connect.core.config import AppSettings, get_settings
from ig_connect.core.logging import configure_logging
from ig_connect.dependencies import get_oauth_state_registry
from ig_connect.services import StateSweeper
from ig_connect.utils.http import GraphAPIError

logger = logging.getLogger(__name__)


def _error_body(
    settings: AppSettings, message: str, exc: Exception, status_code: int
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": message, "success": False}
    if settings.is_development:
        body["debug"] = {
            "statusCode": status_code,
            "name": type(exc).__name__,
            "detail": str(exc),
        }
    return body


def _register_exception_handlers(app: FastAPI, settings: AppSettings) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == HTTPStatus.NOT_FOUND and exc.detail == "Not Found":
            logger.info("404 Not Found: %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "error": "Route not found",
                    "success": False,
                    "path": request.url.path,
                    "method": request.method,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail, "success": False},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(GraphAPIError)
    async def graph_api_error_handler(request: Request, exc: GraphAPIError) -> JSONResponse:
        logger.error("Graph API call failed for %s: %s", request.url.path, exc)
        status_code = HTTPStatus.BAD_GATEWAY
        return JSONResponse(
            status_code=status_code,
            content=_error_body(
                settings, "Instagram Graph API request failed", exc, status_code
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error for %s %s", request.method, request.url.path)
        status_code = HTTPStatus.INTERNAL_SERVER_ERROR
        return JSONResponse(
            status_code=status_code,
            content=_error_body(
                settings, "An unexpected error occurred", exc, status_code
            ),
        )


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        sweeper = StateSweeper(
            get_oauth_state_registry(),
            interval_seconds=settings.oauth.state_sweep_interval_seconds,
        )
        sweeper.start()
        logger.info(
            "Instagram OAuth service started (environment=%s, redirect_uri=%s)",
            settings.environment,
            settings.instagram.redirect_uri,
        )
        try:
            yield
        finally:
            await sweeper.stop()

    app = FastAPI(
        title="Instagram Business Connect",
        version="0.1.0",
        description="Facebook Login OAuth flow and Instagram Graph API relay.",
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_exception_handlers(app, settings)
    app.include_router(auth_router, prefix="/auth")
    app.include_router(api_router, prefix="/api")

    static_dir = settings.frontend_static_dir
    if static_dir is not None and static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="frontend")
        logger.info("Serving static files from: %s", static_dir)
    return app


app = create_app()

__all__ = ["app", "create_app"]
