# copilot_server/main.py
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlmodel import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from copilot_server.core.analysis_client import AnthropicAnalysisClient
from copilot_server.core.config import Settings, get_settings
from copilot_server.core.tokens import TokenService
from copilot_server.database import build_engine, create_db_and_tables
from copilot_server.repositories.usage_repo import UsageRepository
from copilot_server.repositories.user_repo import UserRepository
from copilot_server.services.user_service import UserService

# Routers
from copilot_server.routers.admin import router as admin_router
from copilot_server.routers.api import router as api_router
from copilot_server.routers.auth import router as auth_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


def _validation_message(exc: RequestValidationError) -> str:
    """One readable line from pydantic's error list."""
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = err.get("msg", "invalid value")
        parts.append(f"{field}: {msg}" if field else msg)
    return "; ".join(parts) or "Invalid request"


def bootstrap(engine: Engine, settings: Settings) -> None:
    """
    Create tables and make sure the master admin exists.

    Any failure here is fatal: the lifespan re-raises and the server does not
    start half-initialized.
    """
    create_db_and_tables(engine)
    service = UserService(
        UserRepository(),
        UsageRepository(),
        default_daily_limit=settings.DEFAULT_DAILY_LIMIT,
        min_password_length=settings.MIN_PASSWORD_LENGTH,
    )
    with Session(engine) as session:
        service.ensure_master_admin(
            session,
            email=settings.MASTER_EMAIL,
            password=settings.MASTER_PASSWORD,
            name=settings.MASTER_NAME,
        )


def create_app(
    settings: Settings | None = None,
    engine: Engine | None = None,
    analysis_client: AnthropicAnalysisClient | None = None,
    token_service: TokenService | None = None,
) -> FastAPI:
    """
    Build the application.

    Settings are resolved once here and handed to the token service, the
    engine and the analysis client; tests pass their own.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        Startup:
          - Verify DB connectivity, create tables, ensure master admin.

        Shutdown:
          - Dispose of the engine's connection pool.
        """
        logger.info("🔄 Startup: initializing database...")
        try:
            bootstrap(app.state.engine, settings)
            logger.info("✅ Startup: DB connection OK, tables verified.")
        except Exception as e:
            logger.error(f"❌ Startup: DB initialization FAILED: {e}")
            raise
        if settings.JWT_SECRET == Settings.model_fields["JWT_SECRET"].default:
            logger.warning("⚠️ JWT_SECRET is the development default; set it in production.")
        logger.info(f"   Master admin: {settings.MASTER_EMAIL}")
        yield
        app.state.engine.dispose()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine or build_engine(settings.DATABASE_URL)
    app.state.tokens = token_service or TokenService(
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALG,
        expires_days=settings.JWT_EXPIRE_DAYS,
    )
    app.state.analysis_client = analysis_client or AnthropicAnalysisClient(
        api_key=settings.ANTHROPIC_API_KEY,
        model=settings.ANTHROPIC_MODEL,
        base_url=settings.ANTHROPIC_BASE_URL,
        max_tokens=settings.ANALYSIS_MAX_TOKENS,
        timeout_seconds=settings.ANALYSIS_TIMEOUT_SECONDS,
    )

    # --- CORS configuration ---
    # The desktop client loads from file://, so the default allows any origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Error envelope: {"success": false, "error": "..."} ---

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            return _error(exc.status_code, "Endpoint not found")
        return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Server error on {request.method} {request.url.path}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    app.include_router(auth_router)
    app.include_router(admin_router)
    app.include_router(api_router)

    @app.get("/")
    def root():
        """Service banner."""
        return {
            "app": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "status": "running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
