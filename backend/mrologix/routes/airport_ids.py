import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..attachments import delete_files, fetch_file, file_response, read_uploads, store_uploads
from ..auth import get_current_user
from ..database import get_db
from ..forms import flag, parse_date, require
from ..storage import AIRPORT_ID, ObjectStorage, get_storage
from .. import activity, models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/airport-id", tags=["airport-id"])


def _get_badge(db: Session, badge_id: UUID) -> models.AirportID:
    badge = (
        db.query(models.AirportID)
        .options(selectinload(models.AirportID.attachments))
        .filter(models.AirportID.id == badge_id)
        .first()
    )
    if not badge:
        raise HTTPException(status_code=404, detail="Airport ID not found")
    return badge


def _store_single(db, storage, payloads, badge_id):
    store_uploads(
        db,
        storage,
        payloads[:1],
        namespace=AIRPORT_ID,
        owner_id=badge_id,
        attachment_model=models.AirportIDAttachment,
        parent_field="airport_id_id",
    )


@router.post("")
async def create_airport_id(
    request: Request,
    employee_name: Optional[str] = Form(None, alias="employeeName"),
    station: Optional[str] = Form(None),
    custom_station: Optional[str] = Form(None, alias="customStation"),
    id_issued_date: Optional[str] = Form(None, alias="idIssuedDate"),
    badge_id_number: Optional[str] = Form(None, alias="badgeIdNumber"),
    expire_date: Optional[str] = Form(None, alias="expireDate"),
    has_comment: Optional[str] = Form(None, alias="hasComment"),
    comment: Optional[str] = Form(None),
    has_attachment: Optional[str] = Form(None, alias="hasAttachment"),
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    require(employee_name, station, id_issued_date, badge_id_number, expire_date)
    commented = flag(has_comment)
    payloads = await read_uploads([file]) if file and flag(has_attachment) else []

    badge = models.AirportID(
        employee_name=employee_name,
        station=station,
        custom_station=custom_station if station == "Other" else None,
        id_issued_date=parse_date(id_issued_date, "idIssuedDate"),
        badge_id_number=badge_id_number,
        expire_date=parse_date(expire_date, "expireDate"),
        has_comment=commented,
        comment=comment if commented else None,
        has_attachment=bool(payloads),
    )
    db.add(badge)
    db.flush()
    _store_single(db, storage, payloads, badge.id)
    db.commit()

    activity.log_activity(
        db,
        current_user.id,
        activity.ADDED_AIRPORT_ID,
        resource_type=activity.AIRPORT_ID,
        resource_id=badge.id,
        resource_title=f"Airport ID: {badge.employee_name} ({badge.badge_id_number})",
        metadata={"station": badge.station, "badgeIdNumber": badge.badge_id_number},
        **activity.request_info(request),
    )
    badge = _get_badge(db, badge.id)
    return {"success": True, "data": schemas.serialize(schemas.AirportIDOut, badge)}


@router.get("")
def list_airport_ids(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    badges = (
        db.query(models.AirportID)
        .options(selectinload(models.AirportID.attachments))
        .order_by(models.AirportID.created_at.desc())
        .all()
    )
    return {"success": True, "data": schemas.serialize_all(schemas.AirportIDOut, badges)}


@router.get("/attachments/{file_key:path}")
def download_attachment(
    file_key: str,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    attachment = (
        db.query(models.AirportIDAttachment)
        .filter(models.AirportIDAttachment.file_key == file_key)
        .first()
    )
    if not attachment:
        raise HTTPException(status_code=404, detail="Attachment not found")
    data = fetch_file(storage, file_key)
    return file_response(data, attachment.file_name, attachment.file_type)


@router.get("/{badge_id}")
def get_airport_id(
    badge_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return {"success": True, "data": schemas.serialize(schemas.AirportIDOut, _get_badge(db, badge_id))}


@router.put("/{badge_id}")
async def update_airport_id(
    badge_id: UUID,
    request: Request,
    employee_name: Optional[str] = Form(None, alias="employeeName"),
    station: Optional[str] = Form(None),
    custom_station: Optional[str] = Form(None, alias="customStation"),
    id_issued_date: Optional[str] = Form(None, alias="idIssuedDate"),
    badge_id_number: Optional[str] = Form(None, alias="badgeIdNumber"),
    expire_date: Optional[str] = Form(None, alias="expireDate"),
    has_comment: Optional[str] = Form(None, alias="hasComment"),
    comment: Optional[str] = Form(None),
    has_attachment: Optional[str] = Form(None, alias="hasAttachment"),
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    require(employee_name, station, id_issued_date, badge_id_number, expire_date)
    badge = _get_badge(db, badge_id)
    commented = flag(has_comment)
    payloads = await read_uploads([file]) if file else []

    badge.employee_name = employee_name
    badge.station = station
    badge.custom_station = custom_station if station == "Other" else None
    badge.id_issued_date = parse_date(id_issued_date, "idIssuedDate")
    badge.badge_id_number = badge_id_number
    badge.expire_date = parse_date(expire_date, "expireDate")
    badge.has_comment = commented
    badge.comment = comment if commented else None

    file_results = []
    if payloads:
        # a badge keeps one scan; the new upload replaces the old object
        file_results = delete_files(storage, [a.file_key for a in badge.attachments], "attachment")
        badge.attachments.clear()
        db.flush()
        _store_single(db, storage, payloads, badge.id)
        badge.has_attachment = True
    else:
        badge.has_attachment = flag(has_attachment) and bool(badge.attachments)
    db.commit()

    activity.log_activity(
        db,
        current_user.id,
        activity.UPDATED_AIRPORT_ID,
        resource_type=activity.AIRPORT_ID,
        resource_id=badge.id,
        resource_title=f"Airport ID: {badge.employee_name} ({badge.badge_id_number})",
        metadata={"station": badge.station, "replacedAttachment": bool(payloads)},
        **activity.request_info(request),
    )
    db.expire_all()
    badge = _get_badge(db, badge_id)
    return {
        "success": True,
        "data": schemas.serialize(schemas.AirportIDOut, badge),
        "fileResults": file_results,
    }


@router.delete("/{badge_id}")
def delete_airport_id(
    badge_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    badge = _get_badge(db, badge_id)
    file_results = delete_files(storage, [a.file_key for a in badge.attachments], "attachment")
    title = f"Airport ID: {badge.employee_name} ({badge.badge_id_number})"
    try:
        db.delete(badge)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    activity.log_activity(
        db,
        current_user.id,
        activity.DELETED_AIRPORT_ID,
        resource_type=activity.AIRPORT_ID,
        resource_id=badge_id,
        resource_title=title,
        **activity.request_info(request),
    )
    return {"success": True, "message": "Airport ID deleted successfully", "fileResults": file_results}
