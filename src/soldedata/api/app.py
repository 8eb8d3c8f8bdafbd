"""FastAPI app for soldedata — thin REST layer over the extraction pipeline."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from soldedata import __version__
from soldedata.api.routes import router
from soldedata.log_config import configure_logging
from soldedata.settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    settings = get_settings()
    logger.info("Scraping server started on port %d", settings.api.port)
    logger.info("Environment: %s", settings.env)
    yield
    logger.info("Shutdown signal received, stopping server")


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": "Endpoint not found", "path": request.url.path},
        )
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": str(exc.detail)})


async def _validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": f"{field}: {message}" if field else message},
    )


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Server error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "message": str(exc)},
    )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    settings = get_settings()

    application = FastAPI(
        title="soldedata",
        description="Mobile-data balance extraction from the MTN CI self-care portal.",
        version=__version__,
        lifespan=_lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    application.add_exception_handler(StarletteHTTPException, _http_error_handler)
    application.add_exception_handler(RequestValidationError, _validation_handler)
    application.add_exception_handler(Exception, _unhandled_handler)

    application.include_router(router)
    return application


app = create_app()
