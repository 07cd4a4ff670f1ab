"""
Second Brain FastAPI Application Entry Point.

Run with: uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from logging.config import dictConfig
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.api.routes import (
    admin,
    items,
    search,
    tags,
    webhook,
)
from app.db.session import AsyncSessionLocal
from app.services import build_services

settings = get_settings()

dictConfig(
    {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "default"},
        },
        "loggers": {
            "app": {"handlers": ["console"], "level": settings.log_level.upper(), "propagate": False},
        },
    }
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown."""
    # Startup: one HTTP client shared by the LINE API and link previews
    http_client = httpx.AsyncClient()
    services = build_services(http_client, AsyncSessionLocal)
    app.state.services = services
    if not services.summarizer.is_available():
        logger.warning("ANTHROPIC_API_KEY not set, AI enrichment is disabled")
    logger.info("%s started (%s)", settings.app_name, settings.environment)

    yield

    # Shutdown: let in-flight webhook and enrichment tasks finish first
    await services.tasks.drain()
    await http_client.aclose()


app = FastAPI(
    title=settings.app_name,
    description="LINE capture backend for personal notes, images and links",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Errors are returned as {"error": "..."} to match what the LIFF front end reads
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Invalid input is a plain 400. Only field names are exposed."""
    logger.warning("Validation error on %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request",
            "invalidFields": [str(err["loc"][-1]) for err in exc.errors()],
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal error"},
    )


# Include routers
app.include_router(webhook.router)
app.include_router(items.router)
app.include_router(search.router)
app.include_router(tags.router)
app.include_router(admin.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
