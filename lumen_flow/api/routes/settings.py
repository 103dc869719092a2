"""Notification settings API routes."""

from fastapi import APIRouter, HTTPException

from lumen_flow.api.dependencies import SettingsServiceDep
from lumen_flow.api.schemas import MutedEntity, SettingsResponse, SettingsUpdate
from lumen_flow.exceptions import InvalidMutedEntityError

router = APIRouter(prefix="/users/{user_id}/settings", tags=["settings"])


@router.get("", response_model=SettingsResponse)
def get_settings(user_id: str, service: SettingsServiceDep) -> SettingsResponse:
    """Get settings, creating defaults on first access."""
    return SettingsResponse.model_validate(service.get_or_create(user_id))


@router.patch("", response_model=SettingsResponse)
def update_settings(
    user_id: str, update: SettingsUpdate, service: SettingsServiceDep
) -> SettingsResponse:
    """Update settings. Omitted fields are left unchanged."""
    settings = service.update(user_id, **update.model_dump(exclude_unset=True, exclude_none=True))
    return SettingsResponse.model_validate(settings)


@router.post("/muted", response_model=SettingsResponse)
def mute_entity(
    user_id: str, entity: MutedEntity, service: SettingsServiceDep
) -> SettingsResponse:
    """Mute nudges about an entity."""
    try:
        settings = service.mute_entity(user_id, entity.type, entity.id)
    except InvalidMutedEntityError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return SettingsResponse.model_validate(settings)


@router.delete("/muted", response_model=SettingsResponse)
def unmute_entity(
    user_id: str, entity: MutedEntity, service: SettingsServiceDep
) -> SettingsResponse:
    """Unmute an entity."""
    try:
        settings = service.unmute_entity(user_id, entity.type, entity.id)
    except InvalidMutedEntityError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return SettingsResponse.model_validate(settings)
