import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger(__name__)

# actions
LOGIN = "LOGIN"
LOGOUT = "LOGOUT"
ADDED_FLIGHT_RECORD = "ADDED_FLIGHT_RECORD"
DELETED_FLIGHT_RECORD = "DELETED_FLIGHT_RECORD"
ADDED_STOCK_INVENTORY = "ADDED_STOCK_INVENTORY"
DELETED_STOCK_INVENTORY = "DELETED_STOCK_INVENTORY"
ADDED_AIRPORT_ID = "ADDED_AIRPORT_ID"
UPDATED_AIRPORT_ID = "UPDATED_AIRPORT_ID"
DELETED_AIRPORT_ID = "DELETED_AIRPORT_ID"
ADDED_INCOMING_INSPECTION = "ADDED_INCOMING_INSPECTION"
DELETED_INCOMING_INSPECTION = "DELETED_INCOMING_INSPECTION"
ADDED_SMS_REPORT = "ADDED_SMS_REPORT"
CREATED_TECHNICAL_QUERY = "CREATED_TECHNICAL_QUERY"
UPDATED_TECHNICAL_QUERY = "UPDATED_TECHNICAL_QUERY"
DELETED_TECHNICAL_QUERY = "DELETED_TECHNICAL_QUERY"
CREATED_TECHNICAL_QUERY_RESPONSE = "CREATED_TECHNICAL_QUERY_RESPONSE"
ADDED_TEMPERATURE_CONTROL = "ADDED_TEMPERATURE_CONTROL"
DELETED_TEMPERATURE_CONTROL = "DELETED_TEMPERATURE_CONTROL"
UPDATED_TEMPERATURE_HUMIDITY_CONFIG = "UPDATED_TEMPERATURE_HUMIDITY_CONFIG"

QUERY_VOTE_ACTIONS = {
    "created": "CREATED_TECHNICAL_QUERY_VOTE",
    "updated": "UPDATED_TECHNICAL_QUERY_VOTE",
    "removed": "REMOVED_TECHNICAL_QUERY_VOTE",
}
RESPONSE_VOTE_ACTIONS = {
    "created": "CREATED_TECHNICAL_QUERY_RESPONSE_VOTE",
    "updated": "UPDATED_TECHNICAL_QUERY_RESPONSE_VOTE",
    "removed": "REMOVED_TECHNICAL_QUERY_RESPONSE_VOTE",
}

# resource types
AUTHENTICATION = "AUTHENTICATION"
FLIGHT_RECORD = "FLIGHT_RECORD"
STOCK_INVENTORY = "STOCK_INVENTORY"
AIRPORT_ID = "AIRPORT_ID"
INCOMING_INSPECTION = "INCOMING_INSPECTION"
SMS_REPORT = "SMS_REPORT"
TECHNICAL_QUERY = "TECHNICAL_QUERY"
TECHNICAL_QUERY_RESPONSE = "TECHNICAL_QUERY_RESPONSE"
TEMPERATURE_CONTROL = "TEMPERATURE_CONTROL"
TEMPERATURE_HUMIDITY_CONFIG = "TEMPERATURE_HUMIDITY_CONFIG"


def request_info(request: Request) -> dict:
    ip_address = (
        request.headers.get("x-forwarded-for")
        or request.headers.get("x-real-ip")
        or "unknown"
    )
    user_agent = request.headers.get("user-agent") or "unknown"
    return {"ip_address": ip_address, "user_agent": user_agent}


def log_activity(
    db: Session,
    user_id: str | UUID,
    action: str,
    resource_type: str | None = None,
    resource_id: str | UUID | None = None,
    resource_title: str | None = None,
    metadata: dict | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
):
    """Append an entry to the user activity log.

    Logging never breaks the operation being logged: database failures are
    rolled back, logged and swallowed, and ``None`` is returned.
    """

    entry = models.UserActivity(
        user_id=UUID(str(user_id)),
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id else None,
        resource_title=resource_title,
        meta=jsonable_encoder(metadata) if metadata else None,
        ip_address=ip_address,
        user_agent=user_agent,
        created_at=datetime.now(timezone.utc),
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to log user activity %s for %s", action, user_id)
        return None
    return entry
