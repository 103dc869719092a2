"""Nudge evaluator API routes."""

from fastapi import APIRouter, Query

from lumen_flow.api.dependencies import EvaluatorDep, RunLogServiceDep
from lumen_flow.api.schemas import NudgeRunListResponse, NudgeRunResponse
from lumen_flow.models.nudge_run import NudgeRun
from lumen_flow.services.run_log_service import RunLogService

router = APIRouter(prefix="/nudges", tags=["nudges"])


def _run_to_response(run: NudgeRun) -> NudgeRunResponse:
    details = RunLogService.parse_details(run)
    return NudgeRunResponse(
        run_id=run.id,
        started_at=run.started_at,
        finished_at=run.finished_at,
        users_checked=run.users_checked,
        notifications_created=run.notifications_created,
        created_by_rule=details.get("created_by_rule", {}),
        errors=details.get("errors", []),
        deadline_exceeded=run.deadline_exceeded,
    )


@router.post("/run", response_model=NudgeRunResponse)
def trigger_run(evaluator: EvaluatorDep) -> NudgeRunResponse:
    """Run the nudge evaluator once across all users."""
    result = evaluator.run()
    return NudgeRunResponse(**result.to_dict())


@router.get("/runs", response_model=NudgeRunListResponse)
def list_runs(
    service: RunLogServiceDep,
    limit: int = Query(default=20, ge=1, le=100),
) -> NudgeRunListResponse:
    """List recent evaluator runs."""
    return NudgeRunListResponse(runs=[_run_to_response(r) for r in service.get_recent_runs(limit=limit)])
