"""
Premium subscription gate.

Subscriptions are recorded per user; the billing provider that creates them is
outside this service. A user counts as premium while at least one of their
subscriptions is active.
"""
import logging
from datetime import datetime, timezone
from typing import List

from fastapi import Depends, HTTPException, status
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Session

from app.core.security import User, get_current_user
from app.db.session import Base, get_db

logger = logging.getLogger(__name__)

ACTIVE = "active"
CANCELED = "canceled"
DEFAULT_PRODUCT_SLUG = "workflow-atlas-pro"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Subscription(Base):
    """A user's subscription to a paid product."""
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_slug = Column(String, nullable=False, default=DEFAULT_PRODUCT_SLUG)
    status = Column(String, nullable=False, default=ACTIVE)
    created_at = Column(DateTime, default=_utcnow)


def active_subscriptions(db: Session, user_id: int) -> List[Subscription]:
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user_id, Subscription.status == ACTIVE)
        .all()
    )


def grant_subscription(db: Session, user_id: int, product_slug: str = DEFAULT_PRODUCT_SLUG) -> Subscription:
    """Record an active subscription for a user."""
    subscription = Subscription(user_id=user_id, product_slug=product_slug, status=ACTIVE)
    db.add(subscription)
    db.commit()
    db.refresh(subscription)
    logger.info("Granted subscription '%s' to user %s", product_slug, user_id)
    return subscription


def require_premium(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    """Dependency that ensures the current user holds an active subscription."""
    if not active_subscriptions(db, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Premium subscription required",
        )
    return current_user
