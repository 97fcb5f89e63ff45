from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..services import defect_analytics
from .. import models, schemas

router = APIRouter(prefix="/api/defect-analytics", tags=["analytics"])


@router.get("")
def get_defect_analytics(
    months: str = str(defect_analytics.DEFAULT_MONTHS),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    end = datetime.now(timezone.utc)
    start = defect_analytics.window_start(months, end)
    summary = defect_analytics.defect_summary(db, start, end)
    return {"success": True, "data": schemas.serialize(schemas.DefectAnalyticsOut, summary)}
