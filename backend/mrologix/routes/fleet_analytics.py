from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..services import defect_analytics
from .. import models, schemas

router = APIRouter(prefix="/api/fleet-analytics", tags=["analytics"])


@router.get("")
def list_fleet_analytics(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    fleets = defect_analytics.fleet_summaries(db)
    return {"success": True, "data": schemas.serialize_all(schemas.FleetSummaryOut, fleets)}


@router.get("/{fleet_type}")
def get_fleet_analysis(
    fleet_type: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    detail = defect_analytics.fleet_detail(db, fleet_type)
    return {"success": True, "data": schemas.serialize(schemas.FleetDetailOut, detail)}


@router.get("/{fleet_type}/records")
def list_system_records(
    fleet_type: str,
    system: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    if not system or not system.strip():
        raise HTTPException(status_code=400, detail="Fleet type and system are required")
    records = defect_analytics.system_records(db, fleet_type, system)
    return {
        "success": True,
        "data": {
            "fleetType": fleet_type,
            "system": system,
            "records": schemas.serialize_all(schemas.SystemRecordOut, records),
        },
    }
