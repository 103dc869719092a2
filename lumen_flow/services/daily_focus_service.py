"""Daily focus plan storage and action tracking."""

import logging
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy.orm import Session, selectinload

from lumen_flow.models.daily_focus import DailyFocus, FocusAction

logger = logging.getLogger(__name__)


class DailyFocusService:
    """Service for storing generated focus plans and tracking their actions."""

    def __init__(self, db: Session):
        self.db = db

    def get_plan(self, user_id: str, plan_date: date) -> DailyFocus | None:
        """Get the user's plan for a date, with its actions loaded."""
        return (
            self.db.query(DailyFocus)
            .options(selectinload(DailyFocus.actions))
            .filter(DailyFocus.user_id == user_id, DailyFocus.date == plan_date)
            .first()
        )

    def save_plan(
        self,
        user_id: str,
        plan_date: date,
        focus_theme: dict[str, Any] | None,
        top_actions: list[dict[str, Any]],
    ) -> DailyFocus:
        """Upsert the plan for (user, date) and recreate its focus actions.

        Each top action becomes a FocusAction with action_id "<date>-<index>".

        Args:
            user_id: Owning user
            plan_date: Local date the plan is for
            focus_theme: Generated theme block, or None
            top_actions: Generated actions; each needs a "title", "priority" is optional
        """
        plan = self.get_plan(user_id, plan_date)
        if plan is None:
            plan = DailyFocus(user_id=user_id, date=plan_date)
            self.db.add(plan)
        else:
            # Delete old actions before inserting replacements with the same action ids
            plan.actions.clear()
            self.db.flush()

        plan.focus_theme = focus_theme
        plan.top_actions = list(top_actions)
        plan.generated_at = datetime.now(UTC).replace(tzinfo=None)

        for index, action in enumerate(top_actions):
            plan.actions.append(
                FocusAction(
                    user_id=user_id,
                    action_id=f"{plan_date.isoformat()}-{index}",
                    title=str(action.get("title") or f"Action {index + 1}")[:500],
                    priority_level=action.get("priority"),
                )
            )

        self.db.commit()
        self.db.refresh(plan)
        logger.info(f"Saved daily focus for user {user_id} on {plan_date} with {len(top_actions)} actions")
        return plan

    def get_action(self, user_id: str, action_id: str) -> FocusAction | None:
        """Get one of the user's focus actions by its "<date>-<index>" id.

        The date prefix pins the plan, so the id is unique per user.
        """
        return (
            self.db.query(FocusAction)
            .filter(FocusAction.user_id == user_id, FocusAction.action_id == action_id)
            .first()
        )

    def complete_action(self, user_id: str, action_id: str) -> FocusAction | None:
        """Mark a focus action as completed (started).

        Returns:
            The updated action, or None if the user has no such action
        """
        action = self.get_action(user_id, action_id)
        if action is None:
            return None
        if action.completed_at is None:
            action.completed_at = datetime.now(UTC).replace(tzinfo=None)
            action.deferred = False
        self.db.commit()
        self.db.refresh(action)
        logger.info(f"Completed focus action {action_id} for user {user_id}")
        return action

    def defer_action(self, user_id: str, action_id: str) -> FocusAction | None:
        """Defer a focus action. Deferred actions still count as not started."""
        action = self.get_action(user_id, action_id)
        if action is None:
            return None
        action.deferred = True
        self.db.commit()
        self.db.refresh(action)
        logger.info(f"Deferred focus action {action_id} for user {user_id}")
        return action
