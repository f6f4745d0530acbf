"""
Endpoints for triggering and tracking background job runs.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.schemas.jobs import (
    JobRunListResponse,
    JobRunResponse,
    TriggerAIJobRequest,
    TriggerJobResponse,
)
from app.core.security import User, get_current_user
from app.db.session import get_db
from app.domain.jobs.events import send_event
from app.domain.jobs.functions import EXECUTE_AI_EVENT
from app.domain.jobs.runs import get_job_run, list_job_runs

router = APIRouter(prefix="/jobs", tags=["jobs"])
logger = logging.getLogger(__name__)


@router.post("/ai", response_model=TriggerJobResponse)
async def trigger_ai_job(
    request: TriggerAIJobRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Queue an AI text-generation run."""
    try:
        runs = send_event(
            db,
            EXECUTE_AI_EVENT,
            request.model_dump(exclude_none=True),
            user_id=current_user.id,
        )
        return TriggerJobResponse(
            success=True,
            event=EXECUTE_AI_EVENT,
            runs=[JobRunResponse.model_validate(run) for run in runs],
        )
    except Exception as e:
        logger.error(f"Error triggering AI job: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{run_id}", response_model=JobRunResponse)
async def get_job_run_endpoint(
    run_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    run = get_job_run(db, run_id, user_id=current_user.id)
    if not run:
        raise HTTPException(status_code=404, detail="Job run not found")
    return JobRunResponse.model_validate(run)


@router.get("", response_model=JobRunListResponse)
async def list_job_runs_endpoint(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    runs, total = list_job_runs(db, user_id=current_user.id, limit=limit, offset=offset)
    return JobRunListResponse(
        success=True,
        runs=[JobRunResponse.model_validate(run) for run in runs],
        total_count=total,
        limit=limit,
        offset=offset,
    )
