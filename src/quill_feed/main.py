# src/quill_feed/main.py
"""Main entry point for the Quill Feed application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from quill_feed.api.v1 import auth_router, likes_router, posts_router
from quill_feed.core.errors import ERROR_MESSAGES, FeedError
from quill_feed.core.settings import settings
from quill_feed.schemas.common import ErrorResponse

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Quill Feed API",
    description="Micro-blogging feed with cursor pagination and likes",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(likes_router, prefix="/api/v1")


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(FeedError)
async def handle_feed_error(request: Request, exc: FeedError) -> JSONResponse:
    """Render domain errors as structured failure bodies."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(
        exc.status_code,
        ErrorResponse(error_kind=exc.kind, detail=exc.message, field=exc.field),
    )


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report the first invalid field inline, like other validation failures."""
    errors = exc.errors()
    detail = ERROR_MESSAGES["INVALID_INPUT"]
    field: str | None = None
    if errors:
        first = errors[0]
        loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
        field = loc[-1] if loc else None
        detail = str(first.get("msg", detail)).removeprefix("Value error, ")
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorResponse(error_kind="ValidationFailed", detail=detail, field=field),
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and hide their detail from the caller."""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(error_kind="MutationFailed", detail=ERROR_MESSAGES["UNKNOWN_ERROR"]),
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("quill_feed.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
