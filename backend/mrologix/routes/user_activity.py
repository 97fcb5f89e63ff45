import math
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from .. import models, schemas

router = APIRouter(prefix="/api/user-activity", tags=["user-activity"])


@router.get("")
def list_activity(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    action: Optional[str] = None,
    resource_type: Optional[str] = Query(None, alias="resourceType"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    query = db.query(models.UserActivity).filter(models.UserActivity.user_id == current_user.id)
    if action:
        query = query.filter(models.UserActivity.action.ilike(f"%{action}%"))
    if resource_type:
        query = query.filter(models.UserActivity.resource_type == resource_type)

    total = query.count()
    rows = (
        query.order_by(models.UserActivity.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pagination = schemas.Pagination(
        page=page, limit=limit, total=total, total_pages=math.ceil(total / limit)
    )
    return {
        "success": True,
        "activities": schemas.serialize_all(schemas.UserActivityOut, rows),
        "pagination": pagination.model_dump(by_alias=True),
    }
