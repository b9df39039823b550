"""FastAPI application for the novelcrawl REST API.

Provides endpoints for probing a table-of-contents URL, crawling a whole
novel, and health monitoring. Crawl failures map to 502 and request
validation failures to 400, both with a localized ``{error, kind, locale}``
body.

Example:
    uvicorn novelcrawl.api.app:app --host 0.0.0.0 --port 8000
"""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, Security, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from pydantic import ValidationError

from novelcrawl.api.locale import VALIDATION_MESSAGES, error_message, select_locale
from novelcrawl.api.models.responses import ErrorResponse
from novelcrawl.api.routes.crawl import router as crawl_router
from novelcrawl.api.routes.health import router as health_router
from novelcrawl.core.config import Settings
from novelcrawl.core.errors import CrawlError
from novelcrawl.core.logger import get_logger

logger = logging.getLogger(__name__)

# API key authentication
API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: str | None = Security(API_KEY_HEADER)) -> str:
    """Verify API key from request header.

    Args:
        api_key: API key from X-API-Key header

    Returns:
        Validated API key

    Raises:
        HTTPException: 401 if API key is missing or invalid
    """
    expected_key = os.getenv("NOVELCRAWL_API_KEY")

    # Allow unauthenticated access if no API key is configured
    if not expected_key:
        return ""

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key != expected_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging on startup."""
    settings = Settings()
    get_logger("novelcrawl", settings.log_level, settings.log_file)
    yield


app = FastAPI(
    title="novelcrawl API",
    description="REST API for downloading web novels chapter by chapter",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(CrawlError)
async def crawl_error_handler(request: Request, exc: CrawlError) -> JSONResponse:
    """Map a classified crawl failure to a localized 502 response."""
    locale = select_locale(request.headers.get("accept-language"))
    logger.error(
        f"Request to {request.url.path} failed: {exc}",
        extra={"kind": exc.kind.value, "cause": exc.cause, "url": exc.url},
    )
    body = ErrorResponse(
        error=error_message(exc.kind, locale), kind=exc.kind.value, locale=locale
    )
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=body.model_dump())


@app.exception_handler(RequestValidationError)
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map request and job validation failures to a localized 400 response."""
    locale = select_locale(request.headers.get("accept-language"))
    body = ErrorResponse(
        error=VALIDATION_MESSAGES[locale], kind="validation", locale=locale
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


# Health endpoint is public; probe and crawl honour NOVELCRAWL_API_KEY
app.include_router(health_router)
app.include_router(crawl_router, dependencies=[Depends(verify_api_key)])
