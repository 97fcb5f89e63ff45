import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..attachments import delete_files, fetch_file, file_response, read_uploads, store_uploads
from ..auth import get_current_user
from ..database import get_db
from ..forms import flag, parse_date, parse_json, parse_model, require
from ..storage import FLIGHT_RECORDS, ObjectStorage, get_storage
from .. import activity, models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/flight-records", tags=["flight-records"])


def _get_record(db: Session, record_id: UUID) -> models.FlightRecord:
    record = (
        db.query(models.FlightRecord)
        .options(
            selectinload(models.FlightRecord.attachments),
            selectinload(models.FlightRecord.part_replacements),
        )
        .filter(models.FlightRecord.id == record_id)
        .first()
    )
    if not record:
        raise HTTPException(status_code=404, detail="Flight record not found")
    return record


@router.post("")
async def create_flight_record(
    request: Request,
    date: Optional[str] = Form(None),
    airline: Optional[str] = Form(None),
    fleet: Optional[str] = Form(None),
    flight_number: Optional[str] = Form(None, alias="flightNumber"),
    tail: Optional[str] = Form(None),
    station: Optional[str] = Form(None),
    service: Optional[str] = Form(None),
    has_time: Optional[str] = Form(None, alias="hasTime"),
    block_time: Optional[str] = Form(None, alias="blockTime"),
    out_time: Optional[str] = Form(None, alias="outTime"),
    has_defect: Optional[str] = Form(None, alias="hasDefect"),
    log_page_no: Optional[str] = Form(None, alias="logPageNo"),
    discrepancy_note: Optional[str] = Form(None, alias="discrepancyNote"),
    rectification_note: Optional[str] = Form(None, alias="rectificationNote"),
    system_affected: Optional[str] = Form(None, alias="systemAffected"),
    defect_status: Optional[str] = Form(None, alias="defectStatus"),
    fixing_manual: Optional[str] = Form(None, alias="fixingManual"),
    manual_reference: Optional[str] = Form(None, alias="manualReference"),
    rii_required: Optional[str] = Form(None, alias="riiRequired"),
    inspected_by: Optional[str] = Form(None, alias="inspectedBy"),
    has_part_replaced: Optional[str] = Form(None, alias="hasPartReplaced"),
    part_replacements: Optional[str] = Form(None, alias="partReplacements"),
    has_attachments: Optional[str] = Form(None, alias="hasAttachments"),
    has_comment: Optional[str] = Form(None, alias="hasComment"),
    comment: Optional[str] = Form(None),
    technician: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    require(date, airline, fleet, station, service)
    timed = flag(has_time)
    defect = flag(has_defect)
    rii = defect and flag(rii_required)
    parts_replaced = defect and flag(has_part_replaced)
    commented = flag(has_comment)
    parts = parse_json(part_replacements, "partReplacements", []) if parts_replaced else []
    payloads = await read_uploads(files) if flag(has_attachments) else []

    record = models.FlightRecord(
        date=parse_date(date),
        airline=airline,
        fleet=fleet,
        flight_number=flight_number or None,
        tail=tail or None,
        station=station,
        service=service,
        has_time=timed,
        block_time=block_time if timed else None,
        out_time=out_time if timed else None,
        has_defect=defect,
        log_page_no=log_page_no if defect else None,
        discrepancy_note=discrepancy_note if defect else None,
        rectification_note=rectification_note if defect else None,
        system_affected=system_affected if defect else None,
        defect_status=defect_status if defect else None,
        rii_required=rii,
        inspected_by=inspected_by if rii else None,
        fixing_manual=fixing_manual if defect and defect_status else None,
        manual_reference=manual_reference if defect and defect_status else None,
        has_part_replaced=parts_replaced,
        has_attachments=bool(payloads),
        has_comment=commented,
        comment=comment if commented else None,
        technician=technician or None,
    )
    for part in parts:
        item = parse_model(schemas.PartReplacementIn, part)
        record.part_replacements.append(models.PartReplacement(**item.model_dump()))
    db.add(record)
    db.flush()
    store_uploads(
        db,
        storage,
        payloads,
        namespace=FLIGHT_RECORDS,
        owner_id=record.id,
        attachment_model=models.FlightRecordAttachment,
        parent_field="flight_record_id",
    )
    db.commit()

    activity.log_activity(
        db,
        current_user.id,
        activity.ADDED_FLIGHT_RECORD,
        resource_type=activity.FLIGHT_RECORD,
        resource_id=record.id,
        resource_title=f"Flight Record: {airline} {fleet} - {tail or 'N/A'} ({station})",
        metadata={
            "airline": airline,
            "fleet": fleet,
            "tail": tail or None,
            "station": station,
            "service": service,
            "hasDefect": defect,
            "technician": technician or None,
        },
        **activity.request_info(request),
    )
    return {
        "success": True,
        "message": "Flight record created successfully",
        "flightRecordId": str(record.id),
    }


@router.get("")
def list_flight_records(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    records = (
        db.query(models.FlightRecord)
        .options(
            selectinload(models.FlightRecord.attachments),
            selectinload(models.FlightRecord.part_replacements),
        )
        .order_by(models.FlightRecord.date.desc())
        .all()
    )
    return {"success": True, "records": schemas.serialize_all(schemas.FlightRecordOut, records)}


@router.get("/monthly-count")
def monthly_count(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    now = datetime.now(timezone.utc)
    start = datetime(now.year, now.month, 1, tzinfo=timezone.utc)
    end = datetime(now.year + (now.month == 12), now.month % 12 + 1, 1, tzinfo=timezone.utc)
    count = (
        db.query(func.count(models.FlightRecord.id))
        .filter(models.FlightRecord.date >= start, models.FlightRecord.date < end)
        .scalar()
    )
    return {"success": True, "count": count, "month": now.strftime("%B %Y")}


@router.get("/stations-count")
def stations_count(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    rows = (
        db.query(models.FlightRecord.station)
        .filter(models.FlightRecord.station != "")
        .distinct()
        .order_by(models.FlightRecord.station)
        .all()
    )
    stations = [r[0] for r in rows]
    return {"success": True, "count": len(stations), "stations": stations}


@router.get("/attachments/{file_key:path}")
def download_attachment(
    file_key: str,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    attachment = (
        db.query(models.FlightRecordAttachment)
        .filter(models.FlightRecordAttachment.file_key == file_key)
        .first()
    )
    if not attachment:
        raise HTTPException(status_code=404, detail="Attachment not found")
    data = fetch_file(storage, file_key)
    return file_response(data, attachment.file_name, attachment.file_type)


@router.delete("/bulk-delete")
def bulk_delete_flight_records(
    payload: schemas.BulkDeleteRequest,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    if not payload.ids:
        raise HTTPException(status_code=400, detail="No record IDs provided")
    records = (
        db.query(models.FlightRecord)
        .options(selectinload(models.FlightRecord.attachments))
        .filter(models.FlightRecord.id.in_(payload.ids))
        .all()
    )
    file_results = []
    for record in records:
        file_results.extend(
            delete_files(storage, [a.file_key for a in record.attachments], "attachment")
        )
    try:
        for record in records:
            db.delete(record)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return {
        "success": True,
        "message": f"Successfully deleted {len(records)} records",
        "deletedCount": len(records),
        "fileResults": file_results,
    }


@router.get("/{record_id}")
def get_flight_record(
    record_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    record = _get_record(db, record_id)
    return {"success": True, "record": schemas.serialize(schemas.FlightRecordOut, record)}


@router.delete("/{record_id}")
def delete_flight_record(
    record_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    record = _get_record(db, record_id)
    file_results = delete_files(storage, [a.file_key for a in record.attachments], "attachment")
    title = f"Flight Record: {record.airline} {record.fleet} - {record.tail or 'N/A'} ({record.station})"
    meta = {"airline": record.airline, "fleet": record.fleet, "station": record.station}
    try:
        db.delete(record)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    activity.log_activity(
        db,
        current_user.id,
        activity.DELETED_FLIGHT_RECORD,
        resource_type=activity.FLIGHT_RECORD,
        resource_id=record_id,
        resource_title=title,
        metadata=meta,
        **activity.request_info(request),
    )
    return {
        "success": True,
        "message": "Flight record deleted successfully",
        "fileResults": file_results,
    }
