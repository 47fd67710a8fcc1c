"""FastAPI application factory."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from pipeline.errors import InvalidInput, PipelineError
from pipeline.response_mapper import map_error
from server.middleware import RequestIDMiddleware
from server.routes import health, website_import
from server.utils import error_response, redact_sensitive_headers
from utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup/shutdown logic."""
    logger.info("FastAPI server starting up")

    if not os.getenv("API_KEYS") and not os.getenv("DATABASE_URL"):
        logger.warning("Neither API_KEYS nor DATABASE_URL is set; every request will be unauthorized")

    yield

    logger.info("FastAPI server shutting down")


async def _pipeline_error_handler(request: Request, exc: PipelineError):
    """Errors raised by request dependencies (auth, rate limit, body) before a route runs."""
    mapped = map_error(exc)
    request_id = getattr(request.state, "request_id", None)
    logger.warning(
        "Request rejected",
        extra={
            "extra_fields": {
                "request_id": request_id,
                "path": request.url.path,
                "code": mapped.kind.value,
                "status_code": mapped.status_code,
                "detail": exc.detail,
                "headers": redact_sensitive_headers(dict(request.headers)),
            }
        },
    )
    return error_response(mapped, request_id)


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(
        "Rejected malformed request body",
        extra={"extra_fields": {"errors": exc.errors()}},
    )
    mapped = map_error(InvalidInput("request body failed validation"))
    return error_response(mapped, getattr(request.state, "request_id", None))


def create_app() -> FastAPI:
    """Factory function to create FastAPI application."""
    app = FastAPI(
        title="Website Deal Import API",
        description="Turns a vendor's website into suggested marketplace deals",
        version=health.VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PipelineError, _pipeline_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(health.router)
    app.include_router(website_import.router)

    return app
