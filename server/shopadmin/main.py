import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from . import db
from .context import build_context
from .errors import CapabilityUnavailable, NotFoundError, PersistenceFailure, ValidationError
from .logbook import LogBookHandler, SystemLogBook
from .logging_config import setup_logging
from .rate_limit import configure_login_limit, limiter
from .routers.admin import router as admin_router
from .routers.analytics import router as analytics_router
from .routers.catalog import categories_router, customers_router, products_router
from .routers.logs import router as logs_router
from .routers.orders import router as orders_router
from .routers.uploads import router as uploads_router
from .settings import DATABASE_URL, Settings, settings


logger = logging.getLogger(__name__)

# Server version for health checks
SERVER_VERSION = "1.0.0"


def _get_or_create_request_id(request: Request) -> str:
    """Get request ID from header or generate one."""
    return request.headers.get("X-Request-Id") or str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tags every response with X-Request-Id and logs the request line."""

    async def dispatch(self, request: Request, call_next):
        request_id = _get_or_create_request_id(request)
        request.state.request_id = request_id
        start_time = time.time()

        response = await call_next(request)

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"[request] {request.method} {request.url.path} status={response.status_code} "
            f"duration_ms={duration_ms} request_id={request_id}"
        )
        response.headers["X-Request-Id"] = request_id
        return response


# --- Error translation ---


async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": exc.message, "code": exc.code},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": problems},
    )


async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": str(exc)})


async def persistence_failure_handler(request: Request, exc: PersistenceFailure):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc), "details": exc.details},
    )


async def capability_handler(request: Request, exc: CapabilityUnavailable):
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "Password hashing is not available on this server."},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"[request] Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "details": str(exc) or type(exc).__name__},
        headers={"X-Request-Id": getattr(request.state, "request_id", None) or _get_or_create_request_id(request)},
    )


def create_app(app_settings: Optional[Settings] = None, database_url: Optional[str] = None) -> FastAPI:
    """Build the FastAPI application; tests pass their own settings."""
    app_settings = app_settings or settings
    database_url = DATABASE_URL if database_url is None else database_url

    # Lifespan context manager for startup/shutdown
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application startup and shutdown."""
        log_book = SystemLogBook(max_entries=app_settings.max_log_entries)
        handler = LogBookHandler(log_book)
        app_logger = logging.getLogger("shopadmin")
        app_logger.addHandler(handler)

        pool = None
        if database_url:
            try:
                pool = await db.init_pool(database_url)
                logger.info("[startup] Database pool initialized successfully")
            except Exception as e:
                logger.warning(f"[startup] Failed to initialize database pool: {e}")
                logger.warning("[startup] Falling back to in-memory tables")
        else:
            logger.info("[startup] No DATABASE_URL configured - running with in-memory tables")

        context = build_context(app_settings, pool, logs=log_book)
        app.state.context = context
        await context.credentials.ensure_initialized()
        log_book.add("info", "system", "Server started", {"storage": context.storage_mode, "version": SERVER_VERSION})

        yield

        # Shutdown: close database pool
        app_logger.removeHandler(handler)
        await db.close_pool(pool)

    app = FastAPI(title="Store Admin API", version=SERVER_VERSION, lifespan=lifespan)

    # Rate limiter (admin login)
    limiter.enabled = app_settings.limits_enabled
    configure_login_limit(app_settings.login_rate_limit)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(PersistenceFailure, persistence_failure_handler)
    app.add_exception_handler(CapabilityUnavailable, capability_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(admin_router)
    app.include_router(customers_router)
    app.include_router(products_router)
    app.include_router(categories_router)
    app.include_router(orders_router)
    app.include_router(uploads_router)
    app.include_router(analytics_router)
    app.include_router(logs_router)

    # CORS configuration from settings
    # If no origins configured, allow any origin without credentials
    allowed_origins = app_settings.allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=bool(allowed_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
    )
    app.add_middleware(RequestIdMiddleware)

    # Uploaded images
    app.mount("/uploads", StaticFiles(directory=app_settings.upload_dir, check_dir=False), name="uploads")

    @app.get("/health")
    def health():
        """
        Health check endpoint.
        Used by load balancers and orchestrators; never touches the database.
        """
        return {
            "status": "ok",
            "version": SERVER_VERSION,
            "timestamp": int(time.time()),
            "database_configured": bool(database_url),
        }

    @app.get("/api/ping")
    def ping():
        return {
            "message": "Server is healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": app_settings.environment,
        }

    @app.get("/api/debug")
    def debug_info():
        """Configuration overview with secrets masked."""
        return {
            "databaseUrl": "SET" if database_url else "NOT SET",
            "databaseUrlValue": database_url[:20] + "..." if database_url else None,
            "environment": app_settings.environment,
            "debug": app_settings.debug,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


setup_logging(settings.debug)
app = create_app()


def cli():
    import uvicorn
    uvicorn.run("shopadmin.main:app", host="0.0.0.0", port=8000, reload=settings.debug)

if __name__ == "__main__":
    cli()
