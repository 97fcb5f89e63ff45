"""Temperature and humidity thresholds for the hangar climate log."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models

# purpose: hold the active threshold config and grade readings against it
# status: active
# depends_on: models.TemperatureHumidityConfig

logger = logging.getLogger(__name__)

RANGE_FIELDS = (
    "temp_normal_min",
    "temp_normal_max",
    "temp_medium_min",
    "temp_medium_max",
    "temp_high_min",
    "humidity_normal_min",
    "humidity_normal_max",
    "humidity_medium_min",
    "humidity_medium_max",
    "humidity_high_min",
)

DEFAULT_RANGES = {
    "temp_normal_min": 0,
    "temp_normal_max": 24,
    "temp_medium_min": 25,
    "temp_medium_max": 35,
    "temp_high_min": 36,
    "humidity_normal_min": 0,
    "humidity_normal_max": 35,
    "humidity_medium_min": 36,
    "humidity_medium_max": 65,
    "humidity_high_min": 66,
}

NORMAL, MEDIUM, HIGH = "NORMAL", "MEDIUM", "HIGH"


def active_config(db: Session) -> models.TemperatureHumidityConfig:
    """Return the active config, creating the default one on first use."""

    config = (
        db.query(models.TemperatureHumidityConfig)
        .filter(models.TemperatureHumidityConfig.is_active.is_(True))
        .first()
    )
    if config:
        return config
    config = models.TemperatureHumidityConfig(is_active=True, **DEFAULT_RANGES)
    try:
        db.add(config)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not create the default temperature/humidity config")
        raise
    db.refresh(config)
    return config


def range_error(ranges: dict) -> Optional[str]:
    if ranges["temp_normal_min"] >= ranges["temp_normal_max"] or ranges["temp_medium_min"] >= ranges["temp_medium_max"]:
        return "Invalid temperature ranges: minimum values must be less than maximum values"
    if (
        ranges["humidity_normal_min"] >= ranges["humidity_normal_max"]
        or ranges["humidity_medium_min"] >= ranges["humidity_medium_max"]
    ):
        return "Invalid humidity ranges: minimum values must be less than maximum values"
    return None


def _grade(value: float, normal: tuple[float, float], medium: tuple[float, float]) -> str:
    if normal[0] <= value <= normal[1]:
        return NORMAL
    if medium[0] <= value <= medium[1]:
        return MEDIUM
    return HIGH


def temperature_level(config: models.TemperatureHumidityConfig, value: float) -> str:
    return _grade(
        value,
        (config.temp_normal_min, config.temp_normal_max),
        (config.temp_medium_min, config.temp_medium_max),
    )


def humidity_level(config: models.TemperatureHumidityConfig, value: float) -> str:
    return _grade(
        value,
        (config.humidity_normal_min, config.humidity_normal_max),
        (config.humidity_medium_min, config.humidity_medium_max),
    )
