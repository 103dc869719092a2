"""Notification service: the writer, the duplicate suppression check and inbox operations."""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lumen_flow.exceptions import NotificationNotFoundError
from lumen_flow.models.notification import Notification
from lumen_flow.nudges.kinds import NotificationSeverity, RuleKind

logger = logging.getLogger(__name__)


def _rule_value(rule: RuleKind | str) -> str:
    return rule.value if isinstance(rule, RuleKind) else rule


class NotificationService:
    """Service for creating and managing notifications."""

    def __init__(self, db: Session):
        """Initialize the notification service.

        Args:
            db: Database session
        """
        self.db = db

    # --- Writer and duplicate suppression ---

    def has_similar_notification(
        self,
        user_id: str,
        rule: RuleKind | str,
        entity_id: str | None,
        window_hours: int,
        *,
        now: datetime | None = None,
    ) -> bool:
        """Check whether a similar notification was created within the window.

        A null ``entity_id`` matches any entity, so user-scoped rules are
        suppressed per (user, rule). Query errors are logged and treated as
        "not a duplicate" so the underlying alert is still delivered.

        Args:
            user_id: Owning user
            rule: Rule kind (stored as the notification type)
            entity_id: Subject entity, or None for user-scoped rules
            window_hours: Trailing window in hours
            now: Reference instant (naive UTC); defaults to the system clock

        Returns:
            True if a matching notification exists in the window
        """
        if now is None:
            now = datetime.now(UTC).replace(tzinfo=None)
        since = now - timedelta(hours=window_hours)

        try:
            query = self.db.query(Notification.id).filter(
                Notification.user_id == user_id,
                Notification.type == _rule_value(rule),
                Notification.created_at >= since,
            )
            if entity_id is not None:
                query = query.filter(Notification.entity_id == str(entity_id))
            return self.db.query(query.exists()).scalar() is True
        except SQLAlchemyError as e:
            logger.error(
                f"Duplicate check failed for user={user_id} rule={_rule_value(rule)} "
                f"entity={entity_id}: {e}"
            )
            self.db.rollback()
            return False

    def create_notification(
        self,
        user_id: str,
        rule: RuleKind | str,
        title: str,
        body: str,
        severity: NotificationSeverity,
        *,
        entity_type: str | None = None,
        entity_id: str | None = None,
        action_url: str | None = None,
        created_at: datetime | None = None,
    ) -> Notification | None:
        """Persist a notification.

        There are no retries: a failed insert is logged, rolled back and
        reported as None so the caller can move on.

        Returns:
            The created notification, or None on failure
        """
        notification = Notification(
            user_id=user_id,
            type=_rule_value(rule),
            title=title,
            body=body,
            severity=severity,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            action_url=action_url,
            created_at=created_at or datetime.now(UTC).replace(tzinfo=None),
        )

        try:
            self.db.add(notification)
            self.db.commit()
            self.db.refresh(notification)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create {_rule_value(rule)} notification for user {user_id}: {e}")
            self.db.rollback()
            return None

        logger.debug(f"Created notification {notification.id} ({notification.type}) for user {user_id}")
        return notification

    # --- Inbox ---

    def get_notification(self, user_id: str, notification_id: int) -> Notification:
        """Get one of the user's notifications.

        Raises:
            NotificationNotFoundError: If it does not exist or belongs to another user
        """
        notification = (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )
        if notification is None:
            raise NotificationNotFoundError(f"Notification {notification_id} not found")
        return notification

    def list_notifications(
        self,
        user_id: str,
        *,
        severity: NotificationSeverity | None = None,
        type: RuleKind | str | None = None,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Notification], int]:
        """List a user's notifications, newest first.

        Returns:
            Tuple of (notifications, total_count)
        """
        query = self.db.query(Notification).filter(Notification.user_id == user_id)

        if severity is not None:
            query = query.filter(Notification.severity == severity)
        if type is not None:
            query = query.filter(Notification.type == _rule_value(type))
        if unread_only:
            query = query.filter(Notification.read_at.is_(None))

        total = query.count()
        notifications = (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return notifications, total

    def get_unread_count(self, user_id: str) -> int:
        """Count the user's unread notifications."""
        return (
            self.db.query(func.count(Notification.id))
            .filter(Notification.user_id == user_id, Notification.read_at.is_(None))
            .scalar()
            or 0
        )

    def mark_as_read(self, user_id: str, notification_ids: list[int]) -> int:
        """Mark notifications as read. Already-read ones keep their read time.

        Returns:
            Number of notifications updated
        """
        if not notification_ids:
            return 0
        updated = (
            self.db.query(Notification)
            .filter(
                Notification.user_id == user_id,
                Notification.id.in_(notification_ids),
                Notification.read_at.is_(None),
            )
            .update(
                {Notification.read_at: datetime.now(UTC).replace(tzinfo=None)},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated

    def mark_as_unread(self, user_id: str, notification_ids: list[int]) -> int:
        """Mark notifications as unread."""
        if not notification_ids:
            return 0
        updated = (
            self.db.query(Notification)
            .filter(
                Notification.user_id == user_id,
                Notification.id.in_(notification_ids),
                Notification.read_at.is_not(None),
            )
            .update({Notification.read_at: None}, synchronize_session=False)
        )
        self.db.commit()
        return updated

    def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification of the user as read."""
        updated = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read_at.is_(None))
            .update(
                {Notification.read_at: datetime.now(UTC).replace(tzinfo=None)},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated

    def delete_notifications(self, user_id: str, notification_ids: list[int]) -> int:
        """Delete notifications owned by the user.

        Returns:
            Number of notifications deleted
        """
        if not notification_ids:
            return 0
        deleted = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.id.in_(notification_ids))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted
