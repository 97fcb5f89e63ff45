import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..attachments import delete_files, fetch_file, file_response, read_uploads, store_uploads
from ..auth import get_current_user
from ..database import get_db
from ..forms import parse_date, parse_json, parse_model, require
from ..storage import INCOMING_INSPECTIONS, ObjectStorage, get_storage
from .. import activity, models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/incoming-inspections", tags=["incoming-inspections"])

CHECKLIST_FIELDS = (
    "product_match",
    "product_specs",
    "batch_number",
    "product_observations",
    "quantity_match",
    "physical_condition",
    "expiration_date",
    "serviceable_expiry",
    "physical_defects",
    "suspected_unapproved",
    "quantity_observations",
    "esd_sensitive",
    "inventory_recorded",
    "temperature_control",
    "handling_observations",
)


def _query(db: Session):
    return db.query(models.IncomingInspection).options(
        selectinload(models.IncomingInspection.attachments),
        selectinload(models.IncomingInspection.stock_inventory),
    )


def _get_inspection(db: Session, inspection_id: UUID) -> models.IncomingInspection:
    inspection = _query(db).filter(models.IncomingInspection.id == inspection_id).first()
    if not inspection:
        raise HTTPException(status_code=404, detail="Incoming inspection not found")
    return inspection


@router.post("")
async def create_incoming_inspection(
    request: Request,
    data: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    payload = parse_model(schemas.IncomingInspectionCreate, parse_json(data, "data", {}))
    require(payload.inspection_date, payload.inspector)
    stock = None
    if payload.stock_inventory_id:
        stock = db.get(models.StockInventory, payload.stock_inventory_id)
        if not stock:
            raise HTTPException(status_code=404, detail="Stock inventory record not found")
    uploads = await read_uploads(files)

    inspection = models.IncomingInspection(
        inspection_date=parse_date(payload.inspection_date, "inspectionDate"),
        inspector=payload.inspector,
        stock_inventory_id=stock.id if stock else None,
        part_no=stock.part_no if stock else None,
        serial_no=stock.serial_no if stock else None,
        description=stock.description if stock else None,
        has_attachments=bool(uploads),
        **{name: getattr(payload, name) for name in CHECKLIST_FIELDS},
    )
    db.add(inspection)
    db.flush()
    store_uploads(
        db,
        storage,
        uploads,
        namespace=INCOMING_INSPECTIONS,
        owner_id=inspection.id,
        attachment_model=models.IncomingInspectionAttachment,
        parent_field="incoming_inspection_id",
    )
    db.commit()

    activity.log_activity(
        db,
        current_user.id,
        activity.ADDED_INCOMING_INSPECTION,
        resource_type=activity.INCOMING_INSPECTION,
        resource_id=inspection.id,
        resource_title=f"Incoming Inspection: {inspection.part_no or 'N/A'} by {inspection.inspector}",
        metadata={
            "inspector": inspection.inspector,
            "stockInventoryId": inspection.stock_inventory_id,
            "partNo": inspection.part_no,
        },
        **activity.request_info(request),
    )
    inspection = _get_inspection(db, inspection.id)
    return {"success": True, "data": schemas.serialize(schemas.IncomingInspectionOut, inspection)}


@router.get("")
def list_incoming_inspections(
    stock_inventory_id: Optional[UUID] = Query(None, alias="stockInventoryId"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    query = _query(db)
    if stock_inventory_id:
        query = query.filter(models.IncomingInspection.stock_inventory_id == stock_inventory_id)
    inspections = query.order_by(models.IncomingInspection.created_at.desc()).all()
    return {"success": True, "data": schemas.serialize_all(schemas.IncomingInspectionOut, inspections)}


@router.get("/attachments/{file_key:path}")
def download_attachment(
    file_key: str,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    attachment = (
        db.query(models.IncomingInspectionAttachment)
        .filter(models.IncomingInspectionAttachment.file_key == file_key)
        .first()
    )
    if not attachment:
        raise HTTPException(status_code=404, detail="Attachment not found")
    data = fetch_file(storage, file_key)
    return file_response(data, attachment.file_name, attachment.file_type)


@router.get("/{inspection_id}")
def get_incoming_inspection(
    inspection_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    inspection = _get_inspection(db, inspection_id)
    return {"success": True, "data": schemas.serialize(schemas.IncomingInspectionOut, inspection)}


@router.delete("/{inspection_id}")
def delete_incoming_inspection(
    inspection_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    inspection = _get_inspection(db, inspection_id)
    file_results = delete_files(storage, [a.file_key for a in inspection.attachments], "attachment")
    title = f"Incoming Inspection: {inspection.part_no or 'N/A'} by {inspection.inspector}"
    try:
        db.delete(inspection)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    activity.log_activity(
        db,
        current_user.id,
        activity.DELETED_INCOMING_INSPECTION,
        resource_type=activity.INCOMING_INSPECTION,
        resource_id=inspection_id,
        resource_title=title,
        **activity.request_info(request),
    )
    return {
        "success": True,
        "message": "Incoming inspection deleted successfully",
        "fileResults": file_results,
    }
