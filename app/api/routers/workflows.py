"""
Workflow management API endpoints.

Every route requires a bearer token and only ever touches the caller's own
workflows. Creating a workflow additionally needs an active subscription.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.schemas.workflows import (
    ExecuteWorkflowResponse,
    UpdateWorkflowNameRequest,
    WorkflowPage,
    WorkflowResponse,
)
from app.core.pagination import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, MIN_PAGE_SIZE
from app.core.security import User, get_current_user
from app.core.subscriptions import require_premium
from app.db.session import get_db
from app.domain.jobs.events import send_event
from app.domain.jobs.functions import EXECUTE_AI_EVENT
from app.domain.workflows.models import (
    WorkflowNotFoundError,
    create_workflow,
    delete_workflow,
    get_workflow,
    list_workflows,
    update_workflow_name,
)

router = APIRouter(prefix="/workflows", tags=["workflows"])
logger = logging.getLogger(__name__)


def _not_found(error: WorkflowNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(error))


@router.get("", response_model=WorkflowPage)
async def list_workflows_endpoint(
    page: int = Query(default=DEFAULT_PAGE, ge=1),
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, ge=MIN_PAGE_SIZE, le=MAX_PAGE_SIZE),
    search: str = Query(default=""),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    List the caller's workflows, newest first.

    Parameters:
    - page: 1-based page number
    - page_size: Items per page (1-100)
    - search: Case-insensitive substring match on the workflow name
    """
    try:
        result = list_workflows(db, current_user.id, page=page, page_size=page_size, search=search)
        return WorkflowPage(
            **{**result, "items": [WorkflowResponse.model_validate(wf) for wf in result["items"]]}
        )
    except Exception as e:
        logger.error(f"Error listing workflows: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=WorkflowResponse)
async def create_workflow_endpoint(
    current_user: User = Depends(require_premium),
    db: Session = Depends(get_db),
):
    """Create a workflow with a generated name (e.g. ``brave-amber-falcon``)."""
    try:
        workflow = create_workflow(db, current_user.id)
        return WorkflowResponse.model_validate(workflow)
    except Exception as e:
        logger.error(f"Error creating workflow: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{workflow_id}", response_model=WorkflowResponse)
async def get_workflow_endpoint(
    workflow_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return WorkflowResponse.model_validate(get_workflow(db, current_user.id, workflow_id))
    except WorkflowNotFoundError as e:
        raise _not_found(e)
    except Exception as e:
        logger.error(f"Error getting workflow {workflow_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{workflow_id}", response_model=WorkflowResponse)
async def update_workflow_name_endpoint(
    workflow_id: str,
    request: UpdateWorkflowNameRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Rename a workflow."""
    try:
        workflow = update_workflow_name(db, current_user.id, workflow_id, request.name)
        return WorkflowResponse.model_validate(workflow)
    except WorkflowNotFoundError as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error renaming workflow {workflow_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{workflow_id}", response_model=WorkflowResponse)
async def delete_workflow_endpoint(
    workflow_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a workflow and return the removed record."""
    try:
        workflow = delete_workflow(db, current_user.id, workflow_id)
        return WorkflowResponse.model_validate(workflow)
    except WorkflowNotFoundError as e:
        raise _not_found(e)
    except Exception as e:
        logger.error(f"Error deleting workflow {workflow_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{workflow_id}/execute", response_model=ExecuteWorkflowResponse)
async def execute_workflow_endpoint(
    workflow_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Execute a workflow in the background.

    Sends an ``execute/ai`` event carrying the workflow id; poll
    ``GET /jobs/{job_run_id}`` for the outcome.
    """
    try:
        workflow = get_workflow(db, current_user.id, workflow_id)
        runs = send_event(
            db,
            EXECUTE_AI_EVENT,
            {"workflow_id": workflow.id, "workflow_name": workflow.name},
            user_id=current_user.id,
        )
        return ExecuteWorkflowResponse(
            workflow=WorkflowResponse.model_validate(workflow),
            job_run_id=runs[0].id,
        )
    except WorkflowNotFoundError as e:
        raise _not_found(e)
    except Exception as e:
        logger.error(f"Error executing workflow {workflow_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
