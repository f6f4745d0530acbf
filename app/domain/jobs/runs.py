"""
Persistent tracking for background job runs.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Session

from app.db.session import Base

logger = logging.getLogger(__name__)

QUEUED = "queued"
RUNNING = "running"
SUCCEEDED = "succeeded"
FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobRun(Base):
    """One execution of a registered function triggered by an event."""
    __tablename__ = "job_runs"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    event_name = Column(String(100), nullable=False, index=True)
    function_id = Column(String(100), nullable=False)
    status = Column(String(50), nullable=False, default=QUEUED, index=True)
    payload = Column(JSON, nullable=False, default=dict)
    result = Column(JSON, nullable=True)
    error_message = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
    completed_at = Column(DateTime, nullable=True)


def create_job_run(
    db: Session,
    *,
    event_name: str,
    function_id: str,
    payload: Optional[Dict[str, Any]] = None,
    user_id: Optional[int] = None,
) -> JobRun:
    run = JobRun(
        event_name=event_name,
        function_id=function_id,
        payload=payload or {},
        user_id=user_id,
        status=QUEUED,
    )
    db.add(run)
    db.commit()
    db.refresh(run)
    return run


def get_job_run(db: Session, run_id: str, user_id: Optional[int] = None) -> Optional[JobRun]:
    query = db.query(JobRun).filter(JobRun.id == run_id)
    if user_id is not None:
        query = query.filter(JobRun.user_id == user_id)
    return query.first()


def list_job_runs(
    db: Session,
    user_id: Optional[int] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[JobRun], int]:
    query = db.query(JobRun)
    if user_id is not None:
        query = query.filter(JobRun.user_id == user_id)
    total = query.count()
    runs = query.order_by(JobRun.created_at.desc()).offset(offset).limit(limit).all()
    return runs, total


def mark_running(db: Session, run: JobRun) -> JobRun:
    run.status = RUNNING
    db.commit()
    return run


def complete_job_run(
    db: Session,
    run: JobRun,
    *,
    success: bool,
    result: Optional[Any] = None,
    error_message: Optional[str] = None,
) -> JobRun:
    """Mark a run finished, storing either its result or its error."""
    run.status = SUCCEEDED if success else FAILED
    run.result = result if success else None
    run.error_message = error_message
    run.completed_at = _utcnow()
    db.commit()
    db.refresh(run)
    logger.info(f"Job run {run.id} ({run.function_id}) {run.status}")
    return run
