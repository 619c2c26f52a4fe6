"""
FastAPI main application entry point.

Architecture:
  Client → /auth/...            → registration, login, logout, token checks
  Client → /add-note, /get-...  → owner-scoped note operations (token required)
  Client → /public-...          → unauthenticated reads of public notes
  Client → /health              → liveness / readiness probes

Security model:
  - Stateless signed tokens, delivered in the Authorization header or an
    HttpOnly cookie; the signing secret is the only server-side session state
  - Every owner-scoped query filters on the caller's user id
  - Errors are translated to status + envelope in one place; internal
    details are logged, never returned
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from config import DEFAULT_JWT_SECRET, Settings, get_settings
from database import build_database, close_db, connect_db, get_database
from errors import ErrorKind, NotekeeperError
from models import error_envelope
from routers import auth, notes, public
from security.tokens import TokenService
from services.credential_store import CredentialStore
from services.note_access import NoteAccessController
from services.note_store import NoteStore
from sqlite_db import SQLiteDatabase

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error"


# ============================================================
# Logging Configuration
# ============================================================
def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # aiosqlite logs every statement at DEBUG
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ============================================================
# Application Lifespan (startup/shutdown)
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info("Starting up notes backend...")

    # Warn if JWT secret is still the default: critical security issue
    if settings.jwt_secret_key == DEFAULT_JWT_SECRET:
        logger.warning(
            "JWT_SECRET_KEY is still the default! "
            "Generate a real secret: python -c \"import secrets; print(secrets.token_hex(32))\" "
            "and set it in .env"
        )
    if settings.global_listing_enabled:
        logger.warning(
            "GLOBAL_LISTING_ENABLED is on: GET /notes returns every user's notes "
            "without authentication"
        )

    await connect_db(app.state.database)

    yield  # Application runs here

    logger.info("Shutting down notes backend...")
    await close_db(app.state.database)


# ============================================================
# Middleware
# ============================================================
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to every response.

    Prevents clickjacking, MIME sniffing and caching of user data.
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        return response


# ============================================================
# Error translation: the only place errors become responses
# ============================================================
async def handle_app_error(request: Request, exc: NotekeeperError) -> JSONResponse:
    if exc.kind is ErrorKind.SERVER:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        message = SERVER_ERROR_MESSAGE
    else:
        message = exc.message
    return JSONResponse(status_code=exc.status_code, content=error_envelope(message))


async def handle_request_validation(request: Request,
                                    exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
    return JSONResponse(status_code=400, content=error_envelope(message))


async def handle_http_error(request: Request,
                            exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=error_envelope(SERVER_ERROR_MESSAGE))


# ============================================================
# Application factory
# ============================================================
def create_app(settings: Optional[Settings] = None,
               database: Optional[SQLiteDatabase] = None) -> FastAPI:
    """Build the application with its components wired from settings.

    Args:
        settings: Configuration; defaults to environment-derived settings.
        database: Store handle; defaults to the SQLite file from settings.
            The lifespan connects it if it is not connected yet.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    database = database or build_database(settings)

    app = FastAPI(
        title="Notekeeper API",
        description="Multi-user notes with owner-scoped access and public sharing",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.tokens = TokenService(settings.jwt_secret_key, settings.jwt_algorithm)
    app.state.credentials = CredentialStore(database, bcrypt_rounds=settings.bcrypt_rounds)
    app.state.notes = NoteAccessController(NoteStore(database))

    # Middleware executes bottom-to-top
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(NotekeeperError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected)

    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(notes.router, tags=["Notes"])
    app.include_router(public.router, tags=["Public"])

    @app.get("/health")
    async def health_check() -> dict:
        """Liveness probe: confirms the process is running."""
        return {"error": False, "message": "healthy", "version": "1.0.0"}

    @app.get("/health/ready")
    async def readiness_check(db: SQLiteDatabase = Depends(get_database)):
        """Readiness probe: verifies the document store answers."""
        try:
            await db.command("ping")
        except Exception as e:
            logger.warning(f"Readiness check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={"error": True, "message": "not ready", "checks": {"database": "error"}},
            )
        return {"error": False, "message": "ready", "checks": {"database": "ok"}}

    return app


app = create_app()


# ============================================================
# Run with Uvicorn (for development)
# ============================================================
if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.debug,
    )
