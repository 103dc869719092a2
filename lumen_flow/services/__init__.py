"""Business logic services."""

from lumen_flow.services.daily_focus_service import DailyFocusService
from lumen_flow.services.notification_service import NotificationService
from lumen_flow.services.run_log_service import RunLogService
from lumen_flow.services.settings_service import NotificationSettingsService

__all__ = [
    "DailyFocusService",
    "NotificationService",
    "NotificationSettingsService",
    "RunLogService",
]
