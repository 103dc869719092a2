"""Notification inbox API routes."""

from fastapi import APIRouter, HTTPException, Query

from lumen_flow.api.dependencies import NotificationServiceDep
from lumen_flow.api.schemas import (
    CountResponse,
    NotificationIdsRequest,
    NotificationListResponse,
    NotificationResponse,
)
from lumen_flow.exceptions import NotificationNotFoundError
from lumen_flow.nudges.kinds import NotificationSeverity, RuleKind

router = APIRouter(prefix="/users/{user_id}/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    user_id: str,
    service: NotificationServiceDep,
    severity: NotificationSeverity | None = None,
    type: RuleKind | None = Query(default=None, description="Filter by rule type"),
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> NotificationListResponse:
    """List a user's notifications, newest first."""
    notifications, total = service.list_notifications(
        user_id,
        severity=severity,
        type=type,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        total=total,
        unread=service.get_unread_count(user_id),
    )


@router.get("/unread-count", response_model=CountResponse)
def unread_count(user_id: str, service: NotificationServiceDep) -> CountResponse:
    """Get the number of unread notifications."""
    return CountResponse(count=service.get_unread_count(user_id))


@router.get("/{notification_id}", response_model=NotificationResponse)
def get_notification(
    user_id: str, notification_id: int, service: NotificationServiceDep
) -> NotificationResponse:
    """Get a single notification."""
    try:
        notification = service.get_notification(user_id, notification_id)
    except NotificationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return NotificationResponse.model_validate(notification)


@router.post("/read", response_model=CountResponse)
def mark_read(
    user_id: str, request: NotificationIdsRequest, service: NotificationServiceDep
) -> CountResponse:
    """Mark notifications as read."""
    return CountResponse(count=service.mark_as_read(user_id, request.ids))


@router.post("/unread", response_model=CountResponse)
def mark_unread(
    user_id: str, request: NotificationIdsRequest, service: NotificationServiceDep
) -> CountResponse:
    """Mark notifications as unread."""
    return CountResponse(count=service.mark_as_unread(user_id, request.ids))


@router.post("/read-all", response_model=CountResponse)
def mark_all_read(user_id: str, service: NotificationServiceDep) -> CountResponse:
    """Mark every notification as read."""
    return CountResponse(count=service.mark_all_as_read(user_id))


@router.delete("", response_model=CountResponse)
def delete_notifications(
    user_id: str, request: NotificationIdsRequest, service: NotificationServiceDep
) -> CountResponse:
    """Delete notifications."""
    return CountResponse(count=service.delete_notifications(user_id, request.ids))
