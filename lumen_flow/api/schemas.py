"""Pydantic schemas for API request/response models."""

from datetime import datetime, time

from pydantic import BaseModel, ConfigDict, Field

from lumen_flow.models.notification_settings import MUTABLE_ENTITY_TYPES
from lumen_flow.nudges.kinds import NotificationSeverity


# Notification Schemas
class NotificationResponse(BaseModel):
    """Schema for notification response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    type: str
    title: str
    body: str
    severity: NotificationSeverity
    entity_type: str | None = None
    entity_id: str | None = None
    action_url: str | None = None
    read_at: datetime | None = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    """Schema for notification list response."""

    notifications: list[NotificationResponse]
    total: int
    unread: int


class NotificationIdsRequest(BaseModel):
    """Request naming a set of notifications."""

    ids: list[int] = Field(..., min_length=1, max_length=500)


class CountResponse(BaseModel):
    """Number of rows affected or counted."""

    count: int


# Settings Schemas
class MutedEntity(BaseModel):
    """Reference to a muted entity."""

    type: str = Field(..., description=f"One of: {', '.join(MUTABLE_ENTITY_TYPES)}")
    id: str = Field(..., min_length=1, max_length=64)


class SettingsResponse(BaseModel):
    """Schema for notification settings response."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    channel_inapp: bool
    channel_email: bool
    channel_slack: bool
    channel_discord: bool
    digest_daily: bool
    digest_time: time
    nudges_enabled: bool
    critical_only: bool
    muted_entities: list[MutedEntity] = Field(default_factory=list)


class SettingsUpdate(BaseModel):
    """Schema for updating notification settings. Omitted fields are unchanged."""

    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    channel_inapp: bool | None = None
    channel_email: bool | None = None
    channel_slack: bool | None = None
    channel_discord: bool | None = None
    digest_daily: bool | None = None
    digest_time: time | None = None
    nudges_enabled: bool | None = None
    critical_only: bool | None = None


# Nudge run Schemas
class NudgeRunResponse(BaseModel):
    """Summary of one evaluator pass."""

    run_id: int | None = None
    started_at: datetime
    finished_at: datetime | None = None
    users_checked: int
    notifications_created: int
    created_by_rule: dict[str, int] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)
    deadline_exceeded: bool = False


class NudgeRunListResponse(BaseModel):
    """Recent evaluator passes."""

    runs: list[NudgeRunResponse]


# Health Schemas
class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
