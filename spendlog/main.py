import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core import errors
from .core.config import Settings, get_settings
from .core.logging import init_logging, request_context_middleware
from .db.dal import Database
from .db.migrate import apply_migrations
from .models import BudgetConfiguration
from .routers import categories, expenses, health, settings as settings_router, summaries
from .services.live_feed import ExpenseFeed


def create_app(settings_override: Settings | None = None) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., temp DB). Falls back to cached get_settings().
    """
    settings = settings_override or get_settings()
    if settings.db_path is None:
        settings.init_post_load()
    init_logging(settings.log_level, debug=settings.debug)

    # Ensure database schema (idempotent) so test-injected fresh DBs have tables
    try:
        apply_migrations(settings.db_path)  # type: ignore[arg-type]
    except Exception:
        logging.getLogger("spendlog").exception("failed to apply migrations on startup")
        raise

    app = FastAPI(
        title=settings.app_name, debug=settings.debug, version=settings.version
    )

    db = Database(
        settings.db_path,  # type: ignore[arg-type]
        defaults=BudgetConfiguration(
            weekly_budget_minor_units=settings.default_weekly_budget_minor_units,
            week_start_day=settings.default_week_start_day,
        ),
    )
    feed = ExpenseFeed(db)
    db.add_listener(feed.publish)
    app.state.settings = settings
    app.state.db = db
    app.state.feed = feed

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(errors.ValidationError, errors.domain_validation_handler)
    app.add_exception_handler(errors.NotFoundError, errors.not_found_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(expenses.router)
    app.include_router(categories.router)
    app.include_router(settings_router.router)
    app.include_router(summaries.router)

    @app.get("/")
    async def root():
        return {"message": "Spendlog expense tracker API", "version": settings.version}

    return app


app = create_app()
