"""Parsing helpers for the multipart forms posted by the dashboard."""

import json
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import HTTPException
from pydantic import BaseModel, ValidationError


def flag(value: Optional[str]) -> bool:
    """Checkbox groups post ``yes``; a few older forms post ``true``."""
    return (value or "").strip().lower() in {"yes", "true"}


def require(*values: Any) -> None:
    if any(v is None or (isinstance(v, str) and not v.strip()) for v in values):
        raise HTTPException(status_code=400, detail="Missing required fields")


def parse_date(value: Optional[str], field: str = "date") -> Optional[datetime]:
    """Parse ``YYYY-MM-DD`` or an ISO timestamp.

    Bare dates are pinned to noon UTC so the calendar day survives any
    client timezone offset.
    """
    if not value:
        return None
    try:
        if len(value) == 10:
            year, month, day = (int(p) for p in value.split("-"))
            return datetime(year, month, day, 12, 0, 0, tzinfo=timezone.utc)
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {field}")


def parse_json(value: Optional[str], field: str, default: Any = None) -> Any:
    if not value:
        return default
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail=f"Invalid JSON in {field}")


def pick_custom(value: str, custom: Optional[str]) -> str:
    """``Other`` in a select means the free-text value was typed instead."""
    if value == "Other" and custom:
        return custom
    return value


def parse_model(model_cls: type[BaseModel], payload: Any):
    """Validate a decoded form payload, answering 400 instead of 422."""
    try:
        return model_cls.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(p) for p in first.get("loc", ())) or "payload"
        raise HTTPException(status_code=400, detail=f"Invalid {where}: {first.get('msg')}")
