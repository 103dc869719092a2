"""FastAPI dependency injection helpers."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from lumen_flow.models.database import get_db
from lumen_flow.nudges.evaluator import NudgeEvaluator
from lumen_flow.services.notification_service import NotificationService
from lumen_flow.services.run_log_service import RunLogService
from lumen_flow.services.settings_service import NotificationSettingsService
from lumen_flow.utils.config import Config, get_config


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    """Dependency to get notification service."""
    return NotificationService(db)


def get_settings_service(db: Session = Depends(get_db)) -> NotificationSettingsService:
    """Dependency to get notification settings service."""
    return NotificationSettingsService(db)


def get_run_log_service(db: Session = Depends(get_db)) -> RunLogService:
    """Dependency to get run log service."""
    return RunLogService(db)


def get_app_config() -> Config:
    """Dependency to get the application configuration."""
    return get_config()


def get_evaluator(config: Config = Depends(get_app_config)) -> NudgeEvaluator:
    """Dependency to get a nudge evaluator bound to the app database."""
    return NudgeEvaluator(config)


NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
SettingsServiceDep = Annotated[NotificationSettingsService, Depends(get_settings_service)]
RunLogServiceDep = Annotated[RunLogService, Depends(get_run_log_service)]
ConfigDep = Annotated[Config, Depends(get_app_config)]
EvaluatorDep = Annotated[NudgeEvaluator, Depends(get_evaluator)]
