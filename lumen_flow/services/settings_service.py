"""Notification settings service."""

import logging
from datetime import time
from typing import Any

from sqlalchemy.orm import Session

from lumen_flow.exceptions import InvalidMutedEntityError
from lumen_flow.models.notification_settings import MUTABLE_ENTITY_TYPES, NotificationSettings

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({
    "quiet_hours_start",
    "quiet_hours_end",
    "channel_inapp",
    "channel_email",
    "channel_slack",
    "channel_discord",
    "digest_daily",
    "digest_time",
    "nudges_enabled",
    "critical_only",
})


class NotificationSettingsService:
    """Service for reading and editing per-user notification settings."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> NotificationSettings | None:
        """Get settings for a user without creating them."""
        return self.db.get(NotificationSettings, user_id)

    def get_all(self) -> list[NotificationSettings]:
        """Get every user's settings."""
        return self.db.query(NotificationSettings).order_by(NotificationSettings.user_id).all()

    def get_or_create(self, user_id: str) -> NotificationSettings:
        """Get settings for a user, creating a row with defaults on first access."""
        settings = self.get(user_id)
        if settings is not None:
            return settings

        settings = NotificationSettings(
            user_id=user_id,
            quiet_hours_start=time(21, 0),
            quiet_hours_end=time(8, 0),
            muted_entities=[],
        )
        self.db.add(settings)
        self.db.commit()
        self.db.refresh(settings)
        logger.info(f"Created default notification settings for user {user_id}")
        return settings

    def update(self, user_id: str, **fields: Any) -> NotificationSettings:
        """Update settings fields. None values are ignored.

        Raises:
            ValueError: If an unknown field is given
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown settings fields: {', '.join(sorted(unknown))}")

        settings = self.get_or_create(user_id)
        for name, value in fields.items():
            if value is not None:
                setattr(settings, name, value)

        self.db.commit()
        self.db.refresh(settings)
        return settings

    def mute_entity(self, user_id: str, entity_type: str, entity_id: str) -> NotificationSettings:
        """Add an entity to the user's muted list (idempotent).

        Raises:
            InvalidMutedEntityError: If the entity type is not one nudges refer to
        """
        self._validate_entity_type(entity_type)
        settings = self.get_or_create(user_id)
        if not settings.is_muted(entity_type, entity_id):
            # Reassign so the JSON column change is detected
            settings.muted_entities = [
                *(settings.muted_entities or []),
                {"type": entity_type, "id": str(entity_id)},
            ]
            self.db.commit()
            self.db.refresh(settings)
        return settings

    def unmute_entity(self, user_id: str, entity_type: str, entity_id: str) -> NotificationSettings:
        """Remove an entity from the user's muted list."""
        self._validate_entity_type(entity_type)
        settings = self.get_or_create(user_id)
        settings.muted_entities = [
            m for m in settings.muted_entities or []
            if not (m.get("type") == entity_type and str(m.get("id")) == str(entity_id))
        ]
        self.db.commit()
        self.db.refresh(settings)
        return settings

    @staticmethod
    def _validate_entity_type(entity_type: str) -> None:
        if entity_type not in MUTABLE_ENTITY_TYPES:
            raise InvalidMutedEntityError(
                f"Invalid entity type: {entity_type}. "
                f"Expected one of: {', '.join(MUTABLE_ENTITY_TYPES)}"
            )
