"""
Pydantic schemas for background job endpoints.
"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TriggerAIJobRequest(BaseModel):
    prompt: Optional[str] = Field(default=None, min_length=1)
    system: Optional[str] = None
    model: Optional[str] = None


class JobRunResponse(BaseModel):
    id: str
    event_name: str
    function_id: str
    status: str
    payload: dict
    result: Optional[Any] = None
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TriggerJobResponse(BaseModel):
    success: bool
    event: str
    runs: List[JobRunResponse]


class JobRunListResponse(BaseModel):
    success: bool
    runs: List[JobRunResponse]
    total_count: int
    limit: int
    offset: int
