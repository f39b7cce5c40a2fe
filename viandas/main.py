"""FastAPI application entrypoint."""
import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import api_router
from .config import Settings, get_settings
from .db import build_engine, build_session_factory, init_db
from .dependencies import CurrentUser, get_optional_user
from .errors import AppError, field_errors
from .storage import ObjectStorage, build_storage

logger = logging.getLogger(__name__)

AVAILABLE_ROUTES = [
    "GET /",
    "GET /health",
    "POST /api/v1/users/register",
    "POST /api/v1/users/login",
    "GET /api/v1/users/profile",
    "GET /api/v1/pedidos",
    "POST /api/v1/pedidos",
    "POST /api/v1/files/upload",
    "GET /api/v1/files/list",
    "GET /api/v1/files/download/{key}",
    "GET /api/v1/files/view/{key}",
    "GET /docs",
]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error(400, "Validation failed", details=field_errors(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _error(
                404,
                "Route not found",
                message="the requested route does not exist in this API",
                available_routes=AVAILABLE_ROUTES,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        settings: Settings = request.app.state.settings
        message = "something went wrong" if settings.is_production else str(exc)
        return _error(500, "Internal server error", message=message, timestamp=_now())


def create_app(settings: Optional[Settings] = None, storage: Optional[ObjectStorage] = None) -> FastAPI:
    """Build the application with its engine, session factory and storage client.

    Everything is created once here and kept on ``app.state``; request
    dependencies read it from there.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = build_engine(settings.database_url)
    # Create tables if not existing. Use migration/init_db.py for real deployments.
    init_db(engine)

    app = FastAPI(title=settings.app_name, version=settings.version)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.storage = storage if storage is not None else build_storage(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration = (time.perf_counter() - start) * 1000
        logger.info("%s %s - %s - %.1fms", request.method, request.url.path, response.status_code, duration)
        return response

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/")
    async def root(user: Optional[CurrentUser] = Depends(get_optional_user)):
        body = {
            "success": True,
            "message": "Viandas API - order management",
            "version": settings.version,
            "timestamp": _now(),
            "environment": settings.environment,
        }
        if user is not None:
            body["authenticated_as"] = user.email
        return body

    @app.get("/health")
    def health():
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            database = "connected"
        except Exception:
            logger.exception("database health check failed")
            database = "unavailable"
        healthy = database == "connected"
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "success": healthy,
                "status": "healthy" if healthy else "degraded",
                "timestamp": _now(),
                "services": {"database": database, "storage": type(app.state.storage).__name__},
                "version": settings.version,
            },
        )

    return app
