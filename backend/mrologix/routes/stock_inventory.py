import csv
import io
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ..attachments import fetch_file, file_response, read_uploads, store_uploads
from ..auth import get_current_user
from ..config import settings
from ..database import get_db
from ..forms import flag, parse_date, pick_custom, require
from ..services.stock_inventory import StockInventoryNotFound, delete_stock_records
from ..storage import STOCK_INVENTORY, ObjectStorage, get_storage
from .. import activity, models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stock-inventory", tags=["stock-inventory"])

# text filters and the free-text column that backs an "Other" selection
TEXT_FILTERS = [
    ("part_no", None),
    ("serial_no", None),
    ("description", None),
    ("location", "custom_location"),
    ("type", "custom_type"),
    ("station", "custom_station"),
    ("owner", "custom_owner"),
]


def _date_label(value) -> str:
    return value.strftime("%b %d, %Y") if value else "N/A"


REPORT_COLUMNS = {
    "incomingDate": ("Incoming Date", lambda r: _date_label(r.incoming_date)),
    "station": ("Station", lambda r: r.station),
    "owner": ("Owner", lambda r: r.owner),
    "description": ("Description", lambda r: r.description),
    "partNo": ("Part No", lambda r: r.part_no),
    "serialNo": ("Serial No", lambda r: r.serial_no),
    "quantity": ("Quantity", lambda r: r.quantity),
    "type": ("Type", lambda r: r.type),
    "location": ("Location", lambda r: r.location),
    "expireDate": (
        "Expire Date",
        lambda r: _date_label(r.expire_date) if r.has_expire_date else "N/A",
    ),
    "inspectionResult": (
        "Inspection Result",
        lambda r: r.inspection_result if r.has_inspection else "N/A",
    ),
    "inspectionFailure": (
        "Inspection Failure",
        lambda r: (r.custom_failure if r.inspection_failure == "Other" else r.inspection_failure)
        if r.has_inspection and r.inspection_result == "Failed"
        else "N/A",
    ),
    "comments": ("Comments", lambda r: r.comment if r.has_comment and r.comment else "N/A"),
    "technician": ("Technician", lambda r: r.technician or "N/A"),
    "attachments": (
        "Attachments",
        lambda r: ", ".join(a.file_name for a in r.attachments) if r.attachments else "N/A",
    ),
}


def _with_children(query):
    return query.options(
        selectinload(models.StockInventory.attachments),
        selectinload(models.StockInventory.incoming_inspections),
    )


@router.post("")
async def create_stock_inventory(
    request: Request,
    incoming_date: Optional[str] = Form(None, alias="incomingDate"),
    station: Optional[str] = Form(None),
    custom_station: Optional[str] = Form(None, alias="customStation"),
    owner: Optional[str] = Form(None),
    custom_owner: Optional[str] = Form(None, alias="customOwner"),
    description: Optional[str] = Form(None),
    part_no: Optional[str] = Form(None, alias="partNo"),
    serial_no: Optional[str] = Form(None, alias="serialNo"),
    quantity: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    custom_type: Optional[str] = Form(None, alias="customType"),
    location: Optional[str] = Form(None),
    custom_location: Optional[str] = Form(None, alias="customLocation"),
    has_expire_date: Optional[str] = Form(None, alias="hasExpireDate"),
    expire_date: Optional[str] = Form(None, alias="expireDate"),
    has_inspection: Optional[str] = Form(None, alias="hasInspection"),
    inspection_result: Optional[str] = Form(None, alias="inspectionResult"),
    inspection_failure: Optional[str] = Form(None, alias="inspectionFailure"),
    custom_failure: Optional[str] = Form(None, alias="customFailure"),
    has_comment: Optional[str] = Form(None, alias="hasComment"),
    comment: Optional[str] = Form(None),
    has_attachments: Optional[str] = Form(None, alias="hasAttachments"),
    technician: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    require(incoming_date, station, owner, description, part_no, serial_no, quantity, type, location)
    expires = flag(has_expire_date)
    inspected = flag(has_inspection)
    failed = inspected and inspection_result == "Failed"
    commented = flag(has_comment)
    payloads = await read_uploads(files) if flag(has_attachments) else []

    record = models.StockInventory(
        incoming_date=parse_date(incoming_date, "incomingDate"),
        station=pick_custom(station, custom_station),
        custom_station=custom_station if station == "Other" else None,
        owner=pick_custom(owner, custom_owner),
        custom_owner=custom_owner if owner == "Other" else None,
        description=description,
        part_no=part_no,
        serial_no=serial_no,
        quantity=quantity,
        type=pick_custom(type, custom_type),
        custom_type=custom_type if type == "Other" else None,
        location=pick_custom(location, custom_location),
        custom_location=custom_location if location == "Other" else None,
        has_expire_date=expires,
        expire_date=parse_date(expire_date, "expireDate") if expires else None,
        has_inspection=inspected,
        inspection_result=inspection_result if inspected else None,
        inspection_failure=inspection_failure if failed else None,
        custom_failure=custom_failure if failed and inspection_failure == "Other" else None,
        has_comment=commented,
        comment=comment if commented else None,
        has_attachments=bool(payloads),
        technician=technician or None,
    )
    db.add(record)
    db.flush()
    store_uploads(
        db,
        storage,
        payloads,
        namespace=STOCK_INVENTORY,
        owner_id=record.id,
        attachment_model=models.StockInventoryAttachment,
        parent_field="stock_inventory_id",
    )
    db.commit()

    activity.log_activity(
        db,
        current_user.id,
        activity.ADDED_STOCK_INVENTORY,
        resource_type=activity.STOCK_INVENTORY,
        resource_id=record.id,
        resource_title=f"Stock Item: {record.part_no} - {record.description}",
        metadata={
            "partNo": record.part_no,
            "serialNo": record.serial_no,
            "station": record.station,
            "owner": record.owner,
            "quantity": record.quantity,
        },
        **activity.request_info(request),
    )
    return {
        "success": True,
        "message": "Stock inventory record created successfully",
        "stockInventoryId": str(record.id),
    }


@router.get("")
def list_stock_inventory(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    records = (
        _with_children(db.query(models.StockInventory))
        .order_by(models.StockInventory.incoming_date.desc())
        .all()
    )
    return {"success": True, "records": schemas.serialize_all(schemas.StockInventoryOut, records)}


@router.get("/search")
def search_stock_inventory(
    part_no: Optional[str] = Query(None, alias="partNo"),
    serial_no: Optional[str] = Query(None, alias="serialNo"),
    description: Optional[str] = None,
    location: Optional[str] = None,
    type: Optional[str] = None,
    station: Optional[str] = None,
    owner: Optional[str] = None,
    has_expire_date: Optional[str] = Query(None, alias="hasExpireDate"),
    has_inspection: Optional[str] = Query(None, alias="hasInspection"),
    inspection_result: Optional[str] = Query(None, alias="inspectionResult"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    values = {
        "part_no": part_no,
        "serial_no": serial_no,
        "description": description,
        "location": location,
        "type": type,
        "station": station,
        "owner": owner,
    }
    query = db.query(models.StockInventory)
    for field, custom in TEXT_FILTERS:
        value = values[field]
        if not value:
            continue
        pattern = f"%{value}%"
        conditions = [getattr(models.StockInventory, field).ilike(pattern)]
        if custom:
            conditions.append(getattr(models.StockInventory, custom).ilike(pattern))
        query = query.filter(or_(*conditions))
    if has_expire_date == "true":
        query = query.filter(models.StockInventory.has_expire_date.is_(True))
    if has_inspection == "true":
        query = query.filter(models.StockInventory.has_inspection.is_(True))
    if inspection_result:
        query = query.filter(models.StockInventory.inspection_result == inspection_result)

    results = (
        query.order_by(models.StockInventory.created_at.desc())
        .limit(settings.search_page_size)
        .all()
    )
    logger.debug("Stock search returned %d rows", len(results))
    return {"success": True, "data": schemas.serialize_all(schemas.StockInventoryBase, results)}


@router.post("/report")
def stock_report(
    payload: schemas.StockReportRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    columns = [key for key, selected in payload.selected_columns.items() if selected and key in REPORT_COLUMNS]
    if not columns:
        raise HTTPException(status_code=400, detail="Selected columns are required")
    query = db.query(models.StockInventory).options(selectinload(models.StockInventory.attachments))
    if not payload.start_date or not payload.end_date:
        raise HTTPException(status_code=400, detail="Start date and end date are required")
    start = parse_date(payload.start_date, "startDate")
    end = parse_date(payload.end_date, "endDate")
    if len(payload.end_date) == 10:
        end = end.replace(hour=23, minute=59, second=59)
    query = query.filter(
        models.StockInventory.incoming_date >= start,
        models.StockInventory.incoming_date <= end,
    )
    if payload.owner:
        query = query.filter(models.StockInventory.owner == payload.owner)
    records = query.order_by(models.StockInventory.incoming_date.desc()).all()

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([REPORT_COLUMNS[key][0] for key in columns])
    for record in records:
        writer.writerow([REPORT_COLUMNS[key][1](record) for key in columns])
    output.seek(0)
    filename = (
        f"stock-inventory-report-{start.date()}-to-{end.date()}.csv"
    )
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return Response(content=output.read(), media_type="text/csv", headers=headers)


@router.get("/attachments/{file_key:path}")
def download_attachment(
    file_key: str,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    attachment = (
        db.query(models.StockInventoryAttachment)
        .filter(models.StockInventoryAttachment.file_key == file_key)
        .first()
    )
    if not attachment:
        raise HTTPException(status_code=404, detail="Attachment not found")
    data = fetch_file(storage, file_key)
    return file_response(data, attachment.file_name, attachment.file_type)


@router.delete("/bulk-delete")
def bulk_delete_stock_inventory(
    payload: schemas.BulkDeleteRequest,
    request: Request,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    if not payload.ids:
        raise HTTPException(status_code=400, detail="No record IDs provided")
    try:
        result = delete_stock_records(db, storage, payload.ids)
    except StockInventoryNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    info = activity.request_info(request)
    for record in result.deleted:
        activity.log_activity(
            db,
            current_user.id,
            activity.DELETED_STOCK_INVENTORY,
            resource_type=activity.STOCK_INVENTORY,
            resource_id=record["id"],
            resource_title=f"Stock Item: {record['part_no']} - {record['description']}",
            metadata={"partNo": record["part_no"], "serialNo": record["serial_no"], "bulk": True},
            **info,
        )
    return {
        "success": True,
        "message": f"Successfully deleted {result.deleted_records} stock inventory records",
        "results": result.as_payload(),
    }


@router.get("/{record_id}")
def get_stock_inventory(
    record_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    record = (
        _with_children(db.query(models.StockInventory))
        .filter(models.StockInventory.id == record_id)
        .first()
    )
    if not record:
        raise HTTPException(status_code=404, detail="Stock inventory record not found")
    return {"success": True, "record": schemas.serialize(schemas.StockInventoryOut, record)}


@router.delete("/{record_id}")
def delete_stock_inventory(
    record_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    try:
        result = delete_stock_records(db, storage, [record_id])
    except StockInventoryNotFound:
        raise HTTPException(status_code=404, detail="Stock inventory record not found")

    record = result.deleted[0]
    activity.log_activity(
        db,
        current_user.id,
        activity.DELETED_STOCK_INVENTORY,
        resource_type=activity.STOCK_INVENTORY,
        resource_id=record_id,
        resource_title=f"Stock Item: {record['part_no']} - {record['description']}",
        metadata={"partNo": record["part_no"], "serialNo": record["serial_no"]},
        **activity.request_info(request),
    )
    return {
        "success": True,
        "message": "Stock inventory record deleted successfully",
        "fileResults": result.file_results,
    }
