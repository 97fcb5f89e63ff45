import logging
import secrets
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..attachments import delete_files, fetch_file, file_response, read_uploads, store_uploads
from ..auth import get_current_user
from ..database import get_db
from ..forms import flag, parse_date, require
from ..storage import SDR_REPORTS, ObjectStorage, get_storage
from .. import models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sdr-reports", tags=["sdr-reports"])

CONTROL_NUMBER_ATTEMPTS = 50


def generate_control_number() -> str:
    return f"SDR{1000 + secrets.randbelow(9000)}"


def unique_control_number(db: Session) -> str:
    for _ in range(CONTROL_NUMBER_ATTEMPTS):
        candidate = generate_control_number()
        taken = (
            db.query(models.SDRReport.id)
            .filter(models.SDRReport.control_number == candidate)
            .first()
        )
        if not taken:
            return candidate
        logger.info("Control number %s already used, retrying", candidate)
    raise RuntimeError("Could not allocate a unique SDR control number")


def _get_report(db: Session, report_id: UUID) -> models.SDRReport:
    report = (
        db.query(models.SDRReport)
        .options(selectinload(models.SDRReport.attachments))
        .filter(models.SDRReport.id == report_id)
        .first()
    )
    if not report:
        raise HTTPException(status_code=404, detail="SDR report not found")
    return report


@router.post("")
async def create_sdr_report(
    report_title: Optional[str] = Form(None, alias="reportTitle"),
    difficulty_date: Optional[str] = Form(None, alias="difficultyDate"),
    submitter: Optional[str] = Form(None),
    submitter_other: Optional[str] = Form(None, alias="submitterOther"),
    submitter_name: Optional[str] = Form(None, alias="submitterName"),
    email: Optional[str] = Form(None),
    station: Optional[str] = Form(None),
    condition: Optional[str] = Form(None),
    condition_other: Optional[str] = Form(None, alias="conditionOther"),
    how_discovered: Optional[str] = Form(None, alias="howDiscovered"),
    how_discovered_other: Optional[str] = Form(None, alias="howDiscoveredOther"),
    has_flight_number: Optional[str] = Form(None, alias="hasFlightNumber"),
    flight_number: Optional[str] = Form(None, alias="flightNumber"),
    part_or_airplane: Optional[str] = Form(None, alias="partOrAirplane"),
    airplane_model: Optional[str] = Form(None, alias="airplaneModel"),
    airplane_tail_number: Optional[str] = Form(None, alias="airplaneTailNumber"),
    part_number: Optional[str] = Form(None, alias="partNumber"),
    serial_number: Optional[str] = Form(None, alias="serialNumber"),
    time_of_discover: Optional[str] = Form(None, alias="timeOfDiscover"),
    has_ata_code: Optional[str] = Form(None, alias="hasAtaCode"),
    ata_system_code: Optional[str] = Form(None, alias="ataSystemCode"),
    problem_description: Optional[str] = Form(None, alias="problemDescription"),
    symptoms: Optional[str] = Form(None),
    consequences: Optional[str] = Form(None),
    corrective_action: Optional[str] = Form(None, alias="correctiveAction"),
    attachments: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    require(
        report_title,
        difficulty_date,
        submitter,
        submitter_name,
        email,
        station,
        condition,
        how_discovered,
        part_or_airplane,
        problem_description,
    )
    with_flight = flag(has_flight_number)
    with_ata = flag(has_ata_code)
    payloads = await read_uploads(attachments)

    report = models.SDRReport(
        control_number=unique_control_number(db),
        report_title=report_title,
        difficulty_date=parse_date(difficulty_date, "difficultyDate"),
        submitter=submitter,
        submitter_other=submitter_other or None,
        submitter_name=submitter_name,
        email=email,
        station=station,
        condition=condition,
        condition_other=condition_other or None,
        how_discovered=how_discovered,
        how_discovered_other=how_discovered_other or None,
        has_flight_number=with_flight,
        flight_number=flight_number if with_flight else None,
        part_or_airplane=part_or_airplane,
        airplane_model=airplane_model or None,
        airplane_tail_number=airplane_tail_number or None,
        part_number=part_number or None,
        serial_number=serial_number or None,
        time_of_discover=time_of_discover or None,
        has_ata_code=with_ata,
        ata_system_code=ata_system_code if with_ata else None,
        problem_description=problem_description,
        symptoms=symptoms or None,
        consequences=consequences or None,
        corrective_action=corrective_action or None,
        has_attachments=bool(payloads),
    )
    db.add(report)
    db.flush()
    store_uploads(
        db,
        storage,
        payloads,
        namespace=SDR_REPORTS,
        owner_id=report.id,
        attachment_model=models.SDRReportAttachment,
        parent_field="sdr_report_id",
    )
    db.commit()
    logger.info("Created SDR report %s", report.control_number)
    report = _get_report(db, report.id)
    return {"success": True, "data": schemas.serialize(schemas.SDRReportOut, report)}


@router.get("")
def list_sdr_reports(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    reports = (
        db.query(models.SDRReport)
        .options(selectinload(models.SDRReport.attachments))
        .order_by(models.SDRReport.created_at.desc())
        .all()
    )
    return {"success": True, "data": schemas.serialize_all(schemas.SDRReportOut, reports)}


@router.get("/attachments/{attachment_id}")
def download_attachment(
    attachment_id: UUID,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    attachment = db.get(models.SDRReportAttachment, attachment_id)
    if not attachment:
        raise HTTPException(status_code=404, detail="Attachment not found")
    data = fetch_file(storage, attachment.file_key)
    return file_response(data, attachment.file_name, attachment.file_type)


@router.get("/{report_id}")
def get_sdr_report(
    report_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return {"success": True, "data": schemas.serialize(schemas.SDRReportOut, _get_report(db, report_id))}


@router.delete("/{report_id}")
def delete_sdr_report(
    report_id: UUID,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    report = _get_report(db, report_id)
    file_results = delete_files(storage, [a.file_key for a in report.attachments], "attachment")
    try:
        db.delete(report)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return {"success": True, "message": "SDR report deleted successfully", "fileResults": file_results}
