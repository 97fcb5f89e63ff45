import logging
import math
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..forms import flag, parse_date, pick_custom, require
from ..services import climate
from .. import activity, models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/temperature-control", tags=["temperature-control"])


def _reading(value: str, field: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {field}")


def _title(record: models.TemperatureControl) -> str:
    return f"Temperature Control: {pick_custom(record.location, record.custom_location)} at {record.time}"


@router.post("")
def create_temperature_control(
    request: Request,
    date: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    custom_location: Optional[str] = Form(None, alias="customLocation"),
    time: Optional[str] = Form(None),
    temperature: Optional[str] = Form(None),
    humidity: Optional[str] = Form(None),
    employee_name: Optional[str] = Form(None, alias="employeeName"),
    has_comment: Optional[str] = Form(None, alias="hasComment"),
    comment: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    require(date, location, time, temperature, humidity, employee_name, has_comment)
    commented = flag(has_comment)
    record = models.TemperatureControl(
        date=parse_date(date),
        location=location,
        custom_location=custom_location if location == "Other" else None,
        time=time,
        temperature=_reading(temperature, "temperature"),
        humidity=_reading(humidity, "humidity"),
        employee_name=employee_name,
        has_comment=commented,
        comment=comment if commented else None,
    )
    try:
        db.add(record)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(record)

    activity.log_activity(
        db,
        current_user.id,
        activity.ADDED_TEMPERATURE_CONTROL,
        resource_type=activity.TEMPERATURE_CONTROL,
        resource_id=record.id,
        resource_title=_title(record),
        metadata={
            "location": pick_custom(record.location, record.custom_location),
            "time": record.time,
            "temperature": record.temperature,
            "humidity": record.humidity,
            "employeeName": record.employee_name,
            "hasComment": record.has_comment,
        },
        **activity.request_info(request),
    )
    return {
        "success": True,
        "message": "Temperature control record saved successfully",
        "data": schemas.serialize(schemas.TemperatureControlOut, record),
    }


@router.get("")
def list_temperature_controls(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    count: bool = False,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    query = db.query(models.TemperatureControl)
    if search:
        term = f"%{search}%"
        query = query.filter(
            or_(
                models.TemperatureControl.location.ilike(term),
                models.TemperatureControl.custom_location.ilike(term),
                models.TemperatureControl.employee_name.ilike(term),
                models.TemperatureControl.comment.ilike(term),
            )
        )
    total = query.count()
    if count:
        return {"success": True, "data": {"total": total}}

    rows = (
        query.order_by(models.TemperatureControl.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    config = climate.active_config(db)
    records = []
    for row in rows:
        record = schemas.serialize(schemas.TemperatureControlOut, row)
        record["temperatureLevel"] = climate.temperature_level(config, row.temperature)
        record["humidityLevel"] = climate.humidity_level(config, row.humidity)
        records.append(record)
    pagination = schemas.Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))
    return {
        "success": True,
        "data": {"records": records, "pagination": pagination.model_dump(by_alias=True)},
    }


@router.delete("/{record_id}")
def delete_temperature_control(
    record_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    record = db.get(models.TemperatureControl, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Temperature control record not found")
    title = _title(record)
    metadata = {
        "location": pick_custom(record.location, record.custom_location),
        "time": record.time,
        "temperature": record.temperature,
        "humidity": record.humidity,
        "employeeName": record.employee_name,
    }
    try:
        db.delete(record)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    activity.log_activity(
        db,
        current_user.id,
        activity.DELETED_TEMPERATURE_CONTROL,
        resource_type=activity.TEMPERATURE_CONTROL,
        resource_id=record_id,
        resource_title=title,
        metadata=metadata,
        **activity.request_info(request),
    )
    return {"success": True, "message": "Temperature control record deleted successfully", "id": str(record_id)}
