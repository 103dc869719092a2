"""Tests for the daily focus service."""

from datetime import date

import pytest

from lumen_flow.services.daily_focus_service import DailyFocusService

PLAN_DATE = date(2025, 6, 10)


@pytest.fixture
def service(test_db_session):
    return DailyFocusService(test_db_session)


class TestDailyFocusService:
    """Tests for storing plans and tracking actions."""

    def test_save_plan_creates_actions(self, service):
        """Test each top action becomes a focus action."""
        plan = service.save_plan(
            "user-1",
            PLAN_DATE,
            {"principle": "Craft"},
            [{"title": "Draft proposal", "priority": "high"}, {"title": "Email Sam"}],
        )

        assert plan.id is not None
        assert plan.focus_theme == {"principle": "Craft"}
        assert [a.action_id for a in plan.actions] == ["2025-06-10-0", "2025-06-10-1"]
        assert plan.actions[0].title == "Draft proposal"
        assert plan.actions[0].priority_level == "high"
        assert plan.actions[1].priority_level is None
        assert not any(a.is_started for a in plan.actions)

    def test_save_plan_keyword_arguments(self, service):
        """Test the theme and actions can be passed by name."""
        plan = service.save_plan(
            "user-1", PLAN_DATE, top_actions=[{"title": "A"}], focus_theme={"principle": "Rest"}
        )
        assert plan.focus_theme == {"principle": "Rest"}
        assert [a.title for a in plan.actions] == ["A"]

    def test_missing_title_gets_placeholder(self, service):
        """Test actions without a title are numbered."""
        plan = service.save_plan("user-1", PLAN_DATE, None, [{}, {"title": ""}])
        assert [a.title for a in plan.actions] == ["Action 1", "Action 2"]

    def test_save_plan_replaces_actions(self, service):
        """Test regenerating a plan replaces its actions."""
        first = service.save_plan("user-1", PLAN_DATE, None, [{"title": "A"}, {"title": "B"}, {"title": "C"}])
        second = service.save_plan("user-1", PLAN_DATE, None, [{"title": "X"}])

        assert second.id == first.id
        assert [a.title for a in second.actions] == ["X"]
        assert second.top_actions == [{"title": "X"}]

    def test_action_ids_unique_per_plan_not_globally(self, service):
        """Test two users can hold plans for the same date."""
        mine = service.save_plan("user-1", PLAN_DATE, None, [{"title": "A"}])
        theirs = service.save_plan("user-2", PLAN_DATE, None, [{"title": "B"}])
        assert mine.actions[0].action_id == theirs.actions[0].action_id

    def test_get_plan(self, service):
        """Test plans are looked up by user and date."""
        service.save_plan("user-1", PLAN_DATE, None, [{"title": "A"}])
        assert service.get_plan("user-1", PLAN_DATE) is not None
        assert service.get_plan("user-1", date(2025, 6, 11)) is None
        assert service.get_plan("user-2", PLAN_DATE) is None

    def test_get_action_scoped_to_user(self, service):
        """Test the same action id resolves to each user's own action."""
        service.save_plan("user-1", PLAN_DATE, None, [{"title": "Mine"}])
        service.save_plan("user-2", PLAN_DATE, None, [{"title": "Theirs"}])

        assert service.get_action("user-1", "2025-06-10-0").title == "Mine"
        assert service.get_action("user-2", "2025-06-10-0").title == "Theirs"
        assert service.get_action("user-3", "2025-06-10-0") is None

    def test_complete_action(self, service):
        """Test completing marks the action started."""
        service.save_plan("user-1", PLAN_DATE, None, [{"title": "A"}])

        completed = service.complete_action("user-1", "2025-06-10-0")
        assert completed.is_started is True
        assert completed.deferred is False

    def test_complete_after_defer_clears_deferred(self, service):
        service.save_plan("user-1", PLAN_DATE, None, [{"title": "A"}])
        service.defer_action("user-1", "2025-06-10-0")

        completed = service.complete_action("user-1", "2025-06-10-0")
        assert completed.deferred is False

    def test_defer_action_not_started(self, service):
        """Test deferring does not count as starting."""
        service.save_plan("user-1", PLAN_DATE, None, [{"title": "A"}])
        deferred = service.defer_action("user-1", "2025-06-10-0")
        assert deferred.deferred is True
        assert deferred.is_started is False

    def test_unknown_action(self, service):
        """Test unknown or foreign actions are reported as missing."""
        service.save_plan("user-1", PLAN_DATE, None, [{"title": "A"}])
        assert service.complete_action("user-2", "2025-06-10-0") is None
        assert service.defer_action("user-1", "2025-06-10-9") is None
