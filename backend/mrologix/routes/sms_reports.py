import logging
import re
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..attachments import delete_files, fetch_file, file_response, read_uploads, store_uploads
from ..auth import get_current_user, get_optional_user
from ..database import get_db
from ..forms import flag, parse_date, require
from ..notify import Mailer, get_mailer, send_sms_report_email
from ..storage import SMS_REPORTS, ObjectStorage, get_storage
from .. import activity, models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sms-reports", tags=["sms-reports"])

REPORT_PREFIX = "sms"
_NUMBER = re.compile(rf"^{REPORT_PREFIX}(\d+)$")


def next_report_number(db: Session) -> str:
    """Return the number after the highest existing one: sms01, sms02, ..."""
    highest = 0
    for (number,) in db.query(models.SMSReport.report_number).all():
        match = _NUMBER.match(number or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{REPORT_PREFIX}{highest + 1:02d}"


def _get_report(db: Session, report_id: UUID) -> models.SMSReport:
    report = (
        db.query(models.SMSReport)
        .options(selectinload(models.SMSReport.attachments))
        .filter(models.SMSReport.id == report_id)
        .first()
    )
    if not report:
        raise HTTPException(status_code=404, detail="SMS report not found")
    return report


@router.post("")
async def create_sms_report(
    request: Request,
    date: Optional[str] = Form(None),
    report_title: Optional[str] = Form(None, alias="reportTitle"),
    report_description: Optional[str] = Form(None, alias="reportDescription"),
    reporter_name: Optional[str] = Form(None, alias="reporterName"),
    reporter_email: Optional[str] = Form(None, alias="reporterEmail"),
    time_of_event: Optional[str] = Form(None, alias="timeOfEvent"),
    has_attachments: Optional[str] = Form(None, alias="hasAttachments"),
    files: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    mailer: Mailer = Depends(get_mailer),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    require(date, report_title, report_description)
    payloads = await read_uploads(files) if flag(has_attachments) else []

    report = models.SMSReport(
        report_number=next_report_number(db),
        reporter_name=reporter_name or None,
        reporter_email=reporter_email or None,
        date=parse_date(date),
        time_of_event=time_of_event or None,
        report_title=report_title,
        report_description=report_description,
        has_attachments=bool(payloads),
    )
    db.add(report)
    db.flush()
    store_uploads(
        db,
        storage,
        payloads,
        namespace=SMS_REPORTS,
        owner_id=report.id,
        attachment_model=models.SMSReportAttachment,
        parent_field="sms_report_id",
    )
    db.commit()

    if report.reporter_email and not send_sms_report_email(mailer, report.reporter_email, report):
        logger.warning("Copy of SMS report %s was not emailed", report.report_number)

    if current_user:
        activity.log_activity(
            db,
            current_user.id,
            activity.ADDED_SMS_REPORT,
            resource_type=activity.SMS_REPORT,
            resource_id=report.id,
            resource_title=f"SMS Report: {report.report_number} - {report.report_title}",
            metadata={
                "reportNumber": report.report_number,
                "anonymous": not report.reporter_name,
                "attachmentCount": len(payloads),
            },
            **activity.request_info(request),
        )
    report = _get_report(db, report.id)
    return {
        "success": True,
        "message": "SMS report created successfully",
        "data": schemas.serialize(schemas.SMSReportOut, report),
    }


@router.get("")
def list_sms_reports(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    reports = (
        db.query(models.SMSReport)
        .options(selectinload(models.SMSReport.attachments))
        .order_by(models.SMSReport.created_at.desc())
        .all()
    )
    return {"success": True, "data": schemas.serialize_all(schemas.SMSReportOut, reports)}


@router.get("/attachments/{attachment_id}")
def download_attachment(
    attachment_id: UUID,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    attachment = db.get(models.SMSReportAttachment, attachment_id)
    if not attachment:
        raise HTTPException(status_code=404, detail="Attachment not found")
    data = fetch_file(storage, attachment.file_key)
    return file_response(data, attachment.file_name, attachment.file_type)


@router.get("/{report_id}")
def get_sms_report(
    report_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return {"success": True, "data": schemas.serialize(schemas.SMSReportOut, _get_report(db, report_id))}


@router.delete("/{report_id}")
def delete_sms_report(
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
    return {"success": True, "message": "SMS report deleted successfully", "fileResults": file_results}
