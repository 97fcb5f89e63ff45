import logging
import math
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..attachments import delete_files, fetch_file, file_response, read_uploads, store_uploads
from ..auth import get_current_user
from ..database import get_db
from ..forms import flag, parse_date, parse_model
from ..storage import TECHNICIAN_TRAINING, ObjectStorage, get_storage
from .. import models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/technician-training", tags=["technician-training"])

TEXT_FIELDS = ("technician", "organization", "customOrg", "type", "customType", "training", "engineType", "comment")
FLAG_FIELDS = ("hasEngine", "hasHours", "hasComment", "hasAttachments")


def _get_training(db: Session, training_id: UUID) -> models.TechnicianTraining:
    training = (
        db.query(models.TechnicianTraining)
        .options(selectinload(models.TechnicianTraining.attachments))
        .filter(models.TechnicianTraining.id == training_id)
        .first()
    )
    if not training:
        raise HTTPException(status_code=404, detail="Training record not found")
    return training


@router.post("")
async def create_training(
    request: Request,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    form = await request.form()
    raw = {name: form.get(name) for name in TEXT_FIELDS if form.get(name) not in (None, "")}
    raw.update({name: flag(form.get(name)) for name in FLAG_FIELDS})
    raw["date"] = parse_date(form.get("date"))
    hours = form.get("hours")
    if hours:
        try:
            raw["hours"] = float(hours)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid hours")
    data = parse_model(schemas.TechnicianTrainingCreate, raw)

    files = [f for f in form.getlist("attachments") if not isinstance(f, str)]
    payloads = await read_uploads(files) if data.has_attachments else []

    training = models.TechnicianTraining(**data.model_dump(exclude={"has_attachments"}), has_attachments=bool(payloads))
    db.add(training)
    db.flush()
    store_uploads(
        db,
        storage,
        payloads,
        namespace=TECHNICIAN_TRAINING,
        owner_id=training.id,
        attachment_model=models.TechnicianTrainingAttachment,
        parent_field="technician_training_id",
    )
    db.commit()
    logger.info("Recorded training %s for %s", training.id, training.technician)
    return schemas.serialize(schemas.TechnicianTrainingOut, _get_training(db, training.id))


@router.get("")
def list_trainings(
    technician: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    query = db.query(models.TechnicianTraining)
    if technician:
        query = query.filter(models.TechnicianTraining.technician == technician)
    total = query.count()
    trainings = (
        query.options(selectinload(models.TechnicianTraining.attachments))
        .order_by(models.TechnicianTraining.date.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "trainings": schemas.serialize_all(schemas.TechnicianTrainingOut, trainings),
        "total": total,
        "page": page,
        "totalPages": math.ceil(total / limit),
    }


@router.get("/technicians")
def list_technicians(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    rows = (
        db.query(models.TechnicianTraining.technician, func.count(models.TechnicianTraining.id))
        .group_by(models.TechnicianTraining.technician)
        .order_by(models.TechnicianTraining.technician.asc())
        .all()
    )
    return [
        schemas.TechnicianCount(technician=r[0], training_count=r[1]).model_dump(by_alias=True)
        for r in rows
    ]


@router.get("/download/{file_key:path}")
def download_attachment(
    file_key: str,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    attachment = (
        db.query(models.TechnicianTrainingAttachment)
        .filter(models.TechnicianTrainingAttachment.file_key == file_key)
        .first()
    )
    if not attachment:
        raise HTTPException(status_code=404, detail="Attachment not found")
    data = fetch_file(storage, file_key)
    return file_response(data, attachment.file_name, attachment.file_type)


@router.get("/{training_id}")
def get_training(
    training_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return schemas.serialize(schemas.TechnicianTrainingOut, _get_training(db, training_id))


@router.delete("/{training_id}")
def delete_training(
    training_id: UUID,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    training = _get_training(db, training_id)
    file_results = delete_files(storage, [a.file_key for a in training.attachments], "attachment")
    try:
        db.delete(training)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return {"success": True, "message": "Training record deleted successfully", "fileResults": file_results}
