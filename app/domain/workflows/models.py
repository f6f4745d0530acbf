"""
Database models and operations for workflows.

Every operation is scoped to the owning user: a workflow that exists but
belongs to someone else is reported exactly like a missing one.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Session

from app.core.pagination import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, total_pages
from app.db.session import Base
from app.domain.workflows.slugs import generate_slug

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowNotFoundError(Exception):
    """Raised when a workflow does not exist or is not owned by the caller."""

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow {workflow_id} not found")


class Workflow(Base):
    """A user-owned workflow."""
    __tablename__ = "workflows"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    name = Column(String(255), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=_utcnow, index=True)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


def create_workflow(db: Session, user_id: int, name: Optional[str] = None) -> Workflow:
    """
    Create a workflow for a user.

    Args:
        db: Database session
        user_id: Owner
        name: Explicit name; a random three-word slug when omitted

    Returns:
        The persisted workflow
    """
    workflow = Workflow(name=name or generate_slug(3), user_id=user_id)
    db.add(workflow)
    db.commit()
    db.refresh(workflow)
    logger.info(f"Created workflow {workflow.id}: {workflow.name}")
    return workflow


def get_workflow(db: Session, user_id: int, workflow_id: str) -> Workflow:
    """Return the user's workflow or raise WorkflowNotFoundError."""
    workflow = (
        db.query(Workflow)
        .filter(Workflow.id == workflow_id, Workflow.user_id == user_id)
        .first()
    )
    if workflow is None:
        raise WorkflowNotFoundError(workflow_id)
    return workflow


def update_workflow_name(db: Session, user_id: int, workflow_id: str, name: str) -> Workflow:
    """Rename a workflow. ``name`` must be non-empty."""
    if not name:
        raise ValueError("Workflow name must not be empty")

    workflow = get_workflow(db, user_id, workflow_id)
    workflow.name = name
    db.commit()
    db.refresh(workflow)
    logger.info(f"Renamed workflow {workflow_id} to '{name}'")
    return workflow


def delete_workflow(db: Session, user_id: int, workflow_id: str) -> Workflow:
    """Delete a workflow and return the removed record."""
    workflow = get_workflow(db, user_id, workflow_id)
    db.delete(workflow)
    db.commit()
    logger.info(f"Deleted workflow {workflow_id}")
    return workflow


def list_workflows(
    db: Session,
    user_id: int,
    page: int = DEFAULT_PAGE,
    page_size: int = DEFAULT_PAGE_SIZE,
    search: str = "",
) -> Dict[str, Any]:
    """
    Page through a user's workflows, newest first.

    Args:
        db: Database session
        user_id: Owner
        page: 1-based page number
        page_size: Items per page
        search: Case-insensitive substring filter on the name; empty matches all

    Returns:
        Dict with items, total, page, page_size, total_pages,
        has_next_page and has_previous_page
    """
    query = db.query(Workflow).filter(Workflow.user_id == user_id)
    if search:
        query = query.filter(Workflow.name.icontains(search, autoescape=True))

    total = query.count()
    items = (
        query.order_by(Workflow.created_at.desc(), Workflow.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )

    pages = total_pages(total, page_size)
    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": pages,
        "has_next_page": page < pages,
        "has_previous_page": page > 1,
    }
