"""Main FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from lumen_flow import __version__
from lumen_flow.api.routes import notifications_router, nudges_router, settings_router
from lumen_flow.api.schemas import HealthResponse
from lumen_flow.models import get_db, init_db
from lumen_flow.services.run_log_service import RunLogService
from lumen_flow.utils.config import get_config
from lumen_flow.utils.log_setup import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging(get_config().logging)
    init_db()
    yield


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Build the API application.

    Args:
        use_lifespan: Run startup hooks (disabled by tests that manage their own database)
    """
    app = FastAPI(
        title="Lumen Flow Notifications API",
        description="Notification inbox, notification settings and the nudge evaluator.",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
    )

    app.include_router(notifications_router, prefix="/api")
    app.include_router(settings_router, prefix="/api")
    app.include_router(nudges_router, prefix="/api")

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    def health_check() -> HealthResponse:
        """Basic health check endpoint.

        Returns 200 OK if the service is running.
        Does not check dependencies.
        """
        return HealthResponse(
            status="healthy",
            version=__version__,
            database="unknown",
        )

    @app.get("/health/ready", response_model=HealthResponse, tags=["health"])
    def readiness_check(db: Session = Depends(get_db)) -> HealthResponse:
        """Readiness check endpoint.

        Returns 200 if the database is reachable, 503 otherwise.
        """
        try:
            db.execute(text("SELECT 1"))
        except Exception as e:
            raise HTTPException(
                status_code=503,
                detail=f"Database connection failed: {str(e)}"
            )

        return HealthResponse(
            status="ready",
            version=__version__,
            database="connected",
        )

    @app.get("/health/nudges", tags=["health"])
    def nudges_health_check(db: Session = Depends(get_db)) -> dict:
        """Nudge evaluator health: when it last ran and how it went."""
        last_run = RunLogService(db).get_last_run()
        if last_run is None:
            return {"status": "not_started", "last_run": None, "version": __version__}

        status = "degraded" if last_run.errors or last_run.deadline_exceeded else "ok"
        return {
            "status": status,
            "last_run": last_run.finished_at.isoformat(),
            "notifications_created": last_run.notifications_created,
            "errors": last_run.errors,
            "version": __version__,
        }

    return app


app = create_app()
