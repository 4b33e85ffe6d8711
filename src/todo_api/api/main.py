"""FastAPI application for the Todo API."""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from todo_api import __version__
from todo_api.api.errors import register_exception_handlers
from todo_api.api.routes import auth, categories, stats, testing, todos, users
from todo_api.api.schemas import HealthResponse
from todo_api.config import get_settings
from todo_api.core.simulation import SimulationService
from todo_api.db.postgres import PostgresDB, get_db
from todo_api.log_config import configure_logging

logger = structlog.get_logger()

settings = get_settings()
configure_logging(settings.log_level, settings.environment)


def _find_project_root() -> Path:
    from_main = Path(__file__).parent.parent.parent.parent
    if (from_main / "alembic.ini").exists():
        return from_main
    from_cwd = Path.cwd()
    if (from_cwd / "alembic.ini").exists():
        return from_cwd
    return from_main


PROJECT_ROOT = _find_project_root()


def _check_migrations() -> None:
    """Warn on startup if the database has pending migrations."""
    try:
        from alembic.config import Config
        from alembic.script import ScriptDirectory

        alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
        alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
        head = ScriptDirectory.from_config(alembic_cfg).get_current_head()

        row = get_db().fetch_one("SELECT version_num FROM alembic_version")
        current = row["version_num"] if row else None

        if current is None:
            logger.warning(
                "migrations_not_initialized",
                hint="Run 'alembic upgrade head' to initialize the database",
            )
        elif current != head:
            logger.warning(
                "migrations_pending",
                current=current,
                head=head,
                hint="Run 'alembic upgrade head' to apply pending migrations",
            )
        else:
            logger.info("migrations_up_to_date", revision=current)
    except Exception as e:
        logger.warning("migration_check_failed", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "api_starting",
        version=__version__,
        environment=settings.environment,
        database=settings.database_name,
    )
    _check_migrations()
    yield
    logger.info("api_stopped")


app = FastAPI(
    title="Todo API",
    description="Multi-user todo lists with categories, statistics and a QA testing harness",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api-docs",
    redoc_url=None,
)

app.state.simulation = SimulationService()
app.state.started_at = time.monotonic()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request_completed",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return response


register_exception_handlers(app)

for module in (auth, users, categories, todos, stats, testing):
    app.include_router(module.router)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health(request: Request, db: PostgresDB = Depends(get_db)) -> HealthResponse:
    db_status = "connected" if db.health_check() else "disconnected"
    return HealthResponse(
        status="OK",
        timestamp=datetime.now(timezone.utc),
        uptime=time.monotonic() - request.app.state.started_at,
        environment=settings.environment,
        version=__version__,
        database=db_status,
    )


async def api_index() -> dict:
    """List the available endpoints."""
    return {
        "message": "Todo API",
        "version": __version__,
        "documentation": "/api-docs",
        "endpoints": {
            "health": "GET /health",
            "auth": {
                "register": "POST /api/auth/register",
                "login": "POST /api/auth/login",
                "profile": "GET /api/auth/profile",
            },
            "users": "GET|PUT|DELETE /api/users[/:id][/todos]",
            "categories": "GET|POST|PUT|DELETE /api/categories[/:id][/todos]",
            "todos": "GET|POST|PUT|PATCH|DELETE /api/todos[/:id][/complete|/incomplete]",
            "stats": {
                "overview": "GET /api/stats/overview",
                "todos": "GET /api/stats/todos",
                "users": "GET /api/stats/users",
                "categories": "GET /api/stats/categories",
                "trends": "GET /api/stats/trends",
                "productivity": "GET /api/stats/productivity",
            },
            "testing": "GET|POST /api/testing/...",
        },
    }


app.add_api_route("/api", api_index, methods=["GET"], tags=["Health"])

frontend_dist = PROJECT_ROOT / "frontend" / "dist"
if frontend_dist.exists():
    app.mount("/", StaticFiles(directory=str(frontend_dist), html=True), name="frontend")
else:
    app.add_api_route("/", api_index, methods=["GET"], tags=["Health"])
