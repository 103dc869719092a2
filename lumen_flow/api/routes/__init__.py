"""API routes."""

from lumen_flow.api.routes.notifications import router as notifications_router
from lumen_flow.api.routes.nudges import router as nudges_router
from lumen_flow.api.routes.settings import router as settings_router

__all__ = ["notifications_router", "nudges_router", "settings_router"]
