"""Main FastAPI application"""
import os
import logging
import logging.config
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from config import Settings
from errors import AuthError, ExpenseTrackerError
from routes import router as api_router
from services.database import Database
from utils.validation import describe_errors


def build_logging_config(level: str = "INFO") -> dict:
    """Unified logging configuration with Rich for uvicorn and application loggers."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(name)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "default": {
                "class": "rich.logging.RichHandler",
                "formatter": "default",
                "level": "DEBUG",
                "rich_tracebacks": True,
                "show_time": True,
                "show_path": False,
                "log_time_format": "%Y-%m-%d %H:%M:%S",
                "markup": False,
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "": {"handlers": ["default"], "level": level, "propagate": False},
        },
    }


logger = logging.getLogger(__name__)


# --- Middleware for Request Body Size Limit ---
class LimitBodySizeMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, max_body_size: int):
        super().__init__(app)
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next):
        content_length_header = request.headers.get("content-length")
        if content_length_header:
            try:
                content_length = int(content_length_header)
            except ValueError:
                logger.warning("Request rejected: Invalid Content-Length header.")
                return Response("Invalid Content-Length header.", status_code=400)
            if content_length > self.max_body_size:
                logger.warning(f"Request rejected: body size {content_length} exceeds limit {self.max_body_size}.")
                return JSONResponse(
                    {"detail": f"Request body too large (limit {self.max_body_size} bytes)."},
                    status_code=413,
                )
        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    owns_database = app.state.database is None

    # Startup: connect to MongoDB unless a database was injected
    if owns_database:
        try:
            database = Database.from_settings(settings)
            await database.ping()
            app.state.database = database
            logger.info(f"Successfully connected to MongoDB database: {settings.db_name}")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            app.state.database = None

    if app.state.database is not None:
        try:
            await app.state.database.ensure_indexes()
        except Exception as e:
            logger.error(f"Failed to create database indexes: {e}")

    yield  # Application runs here

    # Shutdown: close the connection we opened
    if owns_database and app.state.database is not None:
        logger.info("Closing MongoDB connection...")
        app.state.database.close()
        app.state.database = None
        logger.info("MongoDB connection closed.")


# --- Exception Handlers ---
async def domain_error_handler(request: Request, exc: ExpenseTrackerError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse({"detail": exc.message}, status_code=exc.status_code, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    message = describe_errors(exc.errors())
    logger.warning(f"{request.method} {request.url.path} rejected: {message}")
    return JSONResponse({"detail": message}, status_code=400)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse({"detail": "Internal server error"}, status_code=500)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Builds the application. `database` may be injected (tests); otherwise the
    lifespan hook connects using `settings`.
    """
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="Expense Tracker API",
        description="API for tracking personal expenses with per-category statistics.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    # --- Rate Limiter ---
    app.state.limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        enabled=settings.rate_limit_enabled,
    )
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(ExpenseTrackerError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # --- Middleware (last added runs first) ---
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LimitBodySizeMiddleware, max_body_size=settings.max_body_size)

    app.include_router(api_router, prefix="/api", tags=["api"])

    # Static client (MUST be after API router)
    if os.path.isdir(settings.static_dir):
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    else:
        logger.info(f"Static directory '{settings.static_dir}' not found; serving API only.")

        @app.get("/", include_in_schema=False)
        async def root():
            return {"message": "Expense Tracker API is running!"}

    return app


_settings = Settings.from_env()
logging.config.dictConfig(build_logging_config(_settings.log_level))
app = create_app(_settings)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)
