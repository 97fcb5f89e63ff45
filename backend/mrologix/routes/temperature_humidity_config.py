from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..services import climate
from .. import activity, models, schemas

router = APIRouter(prefix="/api/temperature-humidity-config", tags=["temperature-control"])


@router.get("")
def get_config(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    config = climate.active_config(db)
    return {"success": True, "data": schemas.serialize(schemas.TemperatureHumidityConfigOut, config)}


@router.put("")
def update_config(
    data: schemas.TemperatureHumidityConfigUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    ranges = data.model_dump(include=set(climate.RANGE_FIELDS))
    if any(value is None for value in ranges.values()):
        raise HTTPException(status_code=400, detail="Missing required configuration values")
    error = climate.range_error(ranges)
    if error:
        raise HTTPException(status_code=400, detail=error)

    config = climate.active_config(db)
    for name, value in ranges.items():
        setattr(config, name, value)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(config)

    activity.log_activity(
        db,
        current_user.id,
        activity.UPDATED_TEMPERATURE_HUMIDITY_CONFIG,
        resource_type=activity.TEMPERATURE_HUMIDITY_CONFIG,
        resource_id=config.id,
        resource_title="Temperature & Humidity Range Configuration",
        metadata={
            "tempRanges": {
                "normal": f"{config.temp_normal_min}-{config.temp_normal_max}°C",
                "medium": f"{config.temp_medium_min}-{config.temp_medium_max}°C",
                "high": f">{config.temp_high_min}°C",
            },
            "humidityRanges": {
                "normal": f"{config.humidity_normal_min}-{config.humidity_normal_max}%",
                "medium": f"{config.humidity_medium_min}-{config.humidity_medium_max}%",
                "high": f">{config.humidity_high_min}%",
            },
        },
        **activity.request_info(request),
    )
    return {
        "success": True,
        "message": "Temperature and humidity ranges updated successfully",
        "data": schemas.serialize(schemas.TemperatureHumidityConfigOut, config),
    }
