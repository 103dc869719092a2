"""Tests for the notification settings service."""

from datetime import time

import pytest

from lumen_flow.exceptions import InvalidMutedEntityError
from lumen_flow.services.settings_service import NotificationSettingsService


@pytest.fixture
def service(test_db_session):
    return NotificationSettingsService(test_db_session)


class TestGetOrCreate:
    """Tests for reading settings."""

    def test_get_missing(self, service):
        """Test get does not create a row."""
        assert service.get("user-1") is None
        assert service.get_all() == []

    def test_defaults_created(self, service):
        """Test first access creates defaults."""
        settings = service.get_or_create("user-1")

        assert settings.quiet_hours_start == time(21, 0)
        assert settings.quiet_hours_end == time(8, 0)
        assert settings.channel_inapp is True
        assert settings.channel_email is False
        assert settings.digest_daily is True
        assert settings.digest_time == time(8, 30)
        assert settings.nudges_enabled is True
        assert settings.critical_only is False
        assert settings.muted_entities == []

    def test_get_or_create_is_stable(self, service):
        """Test a second call returns the same row."""
        first = service.get_or_create("user-1")
        second = service.get_or_create("user-1")
        assert first.user_id == second.user_id
        assert len(service.get_all()) == 1

    def test_get_all_ordered(self, service):
        """Test all users are returned ordered by id."""
        service.get_or_create("zoe")
        service.get_or_create("adam")
        assert [s.user_id for s in service.get_all()] == ["adam", "zoe"]


class TestUpdate:
    """Tests for updating settings."""

    def test_update_fields(self, service):
        """Test updating several fields at once."""
        settings = service.update(
            "user-1",
            quiet_hours_start=time(22, 30),
            critical_only=True,
            nudges_enabled=False,
        )
        assert settings.quiet_hours_start == time(22, 30)
        assert settings.quiet_hours_end == time(8, 0)
        assert settings.critical_only is True
        assert settings.nudges_enabled is False

    def test_none_values_ignored(self, service):
        """Test None leaves a field unchanged."""
        service.update("user-1", critical_only=True)
        settings = service.update("user-1", critical_only=None, channel_email=True)
        assert settings.critical_only is True
        assert settings.channel_email is True

    def test_unknown_field(self, service):
        """Test unknown fields are rejected."""
        with pytest.raises(ValueError, match="muted_entities"):
            service.update("user-1", muted_entities=[])


class TestMutedEntities:
    """Tests for muting and unmuting entities."""

    def test_mute(self, service):
        """Test muting adds a reference."""
        settings = service.mute_entity("user-1", "project", "3")
        assert settings.muted_entities == [{"type": "project", "id": "3"}]
        assert settings.is_muted("project", "3") is True
        assert settings.is_muted("project", 3) is True
        assert settings.is_muted("task", "3") is False

    def test_mute_idempotent(self, service):
        """Test muting twice stores one reference."""
        service.mute_entity("user-1", "task", "9")
        settings = service.mute_entity("user-1", "task", "9")
        assert len(settings.muted_entities) == 1

    def test_mute_persists(self, service, test_db_session):
        """Test the muted list survives a reload."""
        service.mute_entity("user-1", "document", "5")
        test_db_session.expire_all()
        assert service.get("user-1").is_muted("document", "5") is True

    def test_unmute(self, service):
        """Test unmuting removes only the given reference."""
        service.mute_entity("user-1", "project", "3")
        service.mute_entity("user-1", "task", "9")
        settings = service.unmute_entity("user-1", "project", "3")
        assert settings.muted_entities == [{"type": "task", "id": "9"}]

    def test_invalid_entity_type(self, service):
        """Test unknown entity types are rejected."""
        with pytest.raises(InvalidMutedEntityError):
            service.mute_entity("user-1", "principle", "1")
        with pytest.raises(InvalidMutedEntityError):
            service.unmute_entity("user-1", "principle", "1")

    def test_is_muted_without_entity(self, service):
        """Test user-scoped nudges are never muted by entity."""
        settings = service.mute_entity("user-1", "project", "3")
        assert settings.is_muted(None, None) is False
        assert settings.is_muted("project", None) is False
