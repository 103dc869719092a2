"""Integration tests for the nudge evaluator API."""

from datetime import timedelta
from unittest.mock import patch


class TestNudgesAPI:
    """Tests for /nudges."""

    def test_run(self, client, evaluator, make_settings, make_project, now, naive_now):
        """Test triggering a run through the API."""
        make_settings()
        make_project(deadline=naive_now + timedelta(days=1), open_tasks=1)

        run = evaluator.run
        with patch.object(evaluator, "run", side_effect=lambda: run(now=now)):
            response = client.post("/api/nudges/run")

        assert response.status_code == 200
        data = response.json()
        assert data["run_id"] is not None
        assert data["users_checked"] == 1
        assert data["notifications_created"] == 1
        assert data["created_by_rule"]["project_deadline"] == 1

        inbox = client.get("/api/users/user-1/notifications").json()
        assert inbox["total"] == 1
        assert inbox["notifications"][0]["severity"] == "critical"

    def test_runs_listed(self, client, evaluator, make_settings, now):
        make_settings()
        evaluator.run(now=now)
        evaluator.run(now=now + timedelta(minutes=30))

        response = client.get("/api/nudges/runs", params={"limit": 1})

        assert response.status_code == 200
        runs = response.json()["runs"]
        assert len(runs) == 1
        assert runs[0]["users_checked"] == 1
        assert set(runs[0]["created_by_rule"]) == {
            "project_deadline",
            "task_overdue",
            "project_stale",
            "daily_focus_nudge",
            "doc_low_alignment",
        }

    def test_nudges_health_after_run(self, client, evaluator, make_settings, now):
        make_settings()
        evaluator.run(now=now)

        data = client.get("/health/nudges").json()
        assert data["status"] == "ok"
        assert data["errors"] == 0
