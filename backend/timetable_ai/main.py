"""ASGI entry-point for the FastAPI application.

This module
1. instantiates the :class:`fastapi.FastAPI` application;
2. wires the API routers located in ``timetable_ai.api``;
3. registers global exception handlers and CORS middleware; and
4. validates configuration and builds the completion service at start-up.

The completion service is stored on ``app.state`` and handed to request
handlers through :func:`timetable_ai.dependencies.get_completion_service`;
there is no module-level service instance.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from timetable_ai import __version__
from timetable_ai.api import api_router
from timetable_ai.config import Settings, settings as default_settings, validate_settings
from timetable_ai.exceptions import AppBaseException, ConfigurationError
from timetable_ai.logging_config import setup_logging
from timetable_ai.services.llm import CompletionService

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    completion_service: Optional[CompletionService] = None,
) -> FastAPI:
    """Wire and return the FastAPI application instance."""

    settings = settings or default_settings

    # Logging must be configured as soon as possible so that any errors during
    # start-up are captured.
    setup_logging(settings.LOG_DIR, settings.LOG_LEVEL)

    app = FastAPI(
        title="Timetable AI API",
        version=__version__,
        docs_url="/api/docs",
    )
    app.state.settings = settings
    app.state.completion_service = completion_service

    # ------------------------------------------------------------------
    # Start-up: a ConfigurationError here aborts the server.
    # ------------------------------------------------------------------

    @app.on_event("startup")
    async def _startup() -> None:
        if app.state.completion_service is not None:
            return
        logger.info("Validating configuration (%s environment) …", settings.NODE_ENV)
        validate_settings(settings)
        app.state.completion_service = CompletionService.from_settings(settings)
        logger.info("Completion service ready (model=%s).", app.state.completion_service.model)

    # ------------------------------------------------------------------
    # Exception handlers
    # ------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        logger.error("Request validation error: %s", exc.errors())
        return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error_handler(
        _request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        logger.error("HTTP exception %s: %s", exc.status_code, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(AppBaseException)
    async def _app_error_handler(
        _request: Request,
        exc: AppBaseException,
    ) -> JSONResponse:
        # Upstream detail was already logged where the error was raised.
        logger.error("Application exception: %s", exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(Exception)
    async def _generic_error_handler(
        _request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    # ------------------------------------------------------------------
    # Middleware
    # ------------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CORS_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------
    # Routers
    # ------------------------------------------------------------------

    app.include_router(api_router, prefix="/api")

    @app.get("/api/health")
    async def _health() -> dict[str, str]:
        return {"status": "ok", "environment": settings.NODE_ENV}

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    # ``ctx`` may hold raw exception objects and ``input`` may hold NaN; JSONResponse encodes neither.
    return [{k: v for k, v in err.items() if k not in ("ctx", "input")} for err in exc.errors()]


# Instantiate at import time so `uvicorn timetable_ai.main:app` works.
app: FastAPI = create_app()


def run() -> None:
    """Console entry-point: validate configuration, then serve with uvicorn."""

    try:
        validate_settings(default_settings)
    except ConfigurationError as exc:
        logger.critical("Refusing to start: %s", exc.detail)
        sys.exit(1)

    uvicorn.run(
        "timetable_ai.main:app",
        host="0.0.0.0",
        port=default_settings.PORT,
        reload=default_settings.NODE_ENV == "development",
    )


if __name__ == "__main__":
    run()
