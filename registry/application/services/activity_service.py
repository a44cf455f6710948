"""Audit feed of admin actions."""

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from registry.domain.models.activity import Activity

logger = structlog.get_logger(__name__)


def record_activity(db: Session, entity: str, action: str, data: Optional[Dict[str, Any]] = None) -> Activity:
    """Append an entry; caller owns the commit."""
    activity = Activity(entity=entity, action=action, data=data or {})
    db.add(activity)
    return activity


def log_activity(
    db: Session,
    entity: Optional[str],
    action: Optional[str],
    data: Optional[Dict[str, Any]] = None,
    ts: Optional[datetime] = None,
) -> Activity:
    activity = Activity(entity=entity or "system", action=action or "unknown", data=data or {})
    if ts is not None:
        activity.ts = ts
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity


def list_activity(db: Session, limit: int = 50) -> List[Activity]:
    limit = max(1, min(limit, 200))
    return (
        db.query(Activity)
        .order_by(Activity.ts.desc(), Activity.id.desc())
        .limit(limit)
        .all()
    )
