"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.analysis import router as analysis_router
from src.api.auth import router as auth_router
from src.api.middleware import CorrelationIdMiddleware
from src.api.rewards import router as rewards_router
from src.api.routes import router
from src.config import get_settings
from src.errors import EcoWearError
from src.services.logging_service import configure_logging, get_logger
from src.services.offer_service import get_catalog
from src.store import get_store

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("main")

    # Build the catalog now so offer expiry dates are relative to startup
    catalog = get_catalog()
    get_store()

    logger.info(
        "application_started",
        log_level=settings.log_level,
        offers=len(catalog),
        inference_enabled=bool(settings.inference_api_url),
    )

    yield

    logger.info("application_shutdown")


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or str(uuid4())


def _error_response(
    request: Request, status_code: int, content: dict
) -> JSONResponse:
    correlation_id = _correlation_id(request)
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={"X-Correlation-Id": correlation_id},
    )


app = FastAPI(
    title="EcoWear API",
    description="Clothing carbon-footprint estimates, eco-points and offer redemption",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(EcoWearError)
async def ecowear_exception_handler(request: Request, exc: EcoWearError) -> JSONResponse:
    """Render domain errors as ``{error, type, ...}`` bodies."""
    logger = structlog.get_logger()
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "request_failed",
        path=request.url.path,
        status_code=exc.status_code,
        error_type=exc.error_type,
        error=exc.message,
    )
    return _error_response(request, exc.status_code, exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render framework HTTP errors (404 routes, 405 methods) as ``{error}``."""
    response = _error_response(request, exc.status_code, {"error": str(exc.detail)})
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with user-friendly messages.

    Returns 400 Bad Request naming the first offending field.
    """
    logger = structlog.get_logger()

    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]) if loc != "body")
        message = first_error.get("msg", "Validation failed")
        detail = f"Field '{field}': {message}" if field else message
    else:
        detail = "Request validation failed"

    logger.warning(
        "validation_error",
        path=request.url.path,
        detail=detail,
    )

    return _error_response(
        request,
        400,
        {"error": detail, "type": "validation"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    structlog.get_logger().exception("unhandled_error", path=request.url.path)
    return _error_response(request, 500, {"error": "Internal server error"})


settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Correlation ID middleware for request tracking and observability
app.add_middleware(CorrelationIdMiddleware)

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(analysis_router, prefix=API_PREFIX)
app.include_router(rewards_router, prefix=API_PREFIX)
app.include_router(router, prefix=API_PREFIX)
