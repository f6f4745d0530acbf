"""
Pydantic schemas for workflow endpoints.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WorkflowResponse(BaseModel):
    """A single workflow."""
    id: str
    name: str
    user_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UpdateWorkflowNameRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class WorkflowPage(BaseModel):
    """One page of a user's workflows plus paging metadata."""
    items: List[WorkflowResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class ExecuteWorkflowResponse(BaseModel):
    workflow: WorkflowResponse
    job_run_id: str
