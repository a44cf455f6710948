"""Activity API routes: admin audit feed."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from registry.application.services.activity_service import list_activity, log_activity
from registry.domain.schemas.activity import ActivityCreate, ActivityRead
from registry.interfaces.api.deps import require_admin
from registry.interfaces.deps import get_db

router = APIRouter(prefix="/api/activity", tags=["Activity"])


@router.get("")
def get_activity(
    limit: int = Query(50),
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    return [ActivityRead.model_validate(a) for a in list_activity(db, limit)]


@router.post("")
def post_activity(
    body: ActivityCreate,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    activity = log_activity(db, body.entity, body.action, body.data, body.ts)
    return {"success": True, "data": ActivityRead.model_validate(activity)}
