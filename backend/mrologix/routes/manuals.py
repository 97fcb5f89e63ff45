import logging
import secrets
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..attachments import delete_files, fetch_file, file_response, read_uploads
from ..auth import get_current_user
from ..database import get_db
from ..forms import parse_date
from ..storage import MANUALS, ObjectStorage, get_storage
from .. import models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/manuals", tags=["manuals"])

MANUAL_STATUSES = ("DRAFT", "APPROVED", "ARCHIVED")
QUICK_UPLOAD_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
DOCUMENT_NUMBER_ATTEMPTS = 50


def _keywords(raw: Optional[str]) -> list[str]:
    return [k.strip() for k in (raw or "").split(",") if k.strip()]


def _get_manual(db: Session, manual_id: UUID) -> models.Manual:
    manual = (
        db.query(models.Manual)
        .options(selectinload(models.Manual.versions).selectinload(models.ManualVersion.editor))
        .filter(models.Manual.id == manual_id)
        .first()
    )
    if not manual:
        raise HTTPException(status_code=404, detail="Manual not found")
    return manual


def _number_taken(db: Session, number: str) -> bool:
    return db.query(models.Manual.id).filter(models.Manual.number == number).first() is not None


def _document_number(db: Session) -> str:
    for _ in range(DOCUMENT_NUMBER_ATTEMPTS):
        candidate = f"DOC-{secrets.randbelow(1_000_000):06d}"
        if not _number_taken(db, candidate):
            return candidate
    raise RuntimeError("Could not allocate a unique manual document number")


def _add_version(
    db: Session,
    storage: ObjectStorage,
    manual: models.Manual,
    upload: UploadFile,
    data: bytes,
    editor_id: UUID,
    comment: Optional[str] = None,
) -> models.ManualVersion:
    """Store ``data`` as the next version of ``manual`` and make it current."""

    number = max((v.version_number for v in manual.versions), default=0) + 1
    content_type = upload.content_type or "application/octet-stream"
    key = storage.upload(MANUALS, manual.id, upload.filename, data, content_type, subpath=f"v{number}")
    version = models.ManualVersion(
        version_number=number,
        comment=comment,
        file_name=upload.filename,
        file_key=key,
        file_size=len(data),
        file_type=content_type,
        editor_id=editor_id,
    )
    manual.versions.append(version)
    db.flush()
    manual.current_version_id = version.id
    manual.file_key = key
    manual.file_type = content_type
    manual.file_size = len(data)
    return version


def _commit_or_discard(db: Session, storage: ObjectStorage, keys: list[str]):
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        delete_files(storage, keys, "manual")
        raise


@router.get("")
def list_manuals(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    manuals = db.query(models.Manual).order_by(models.Manual.created_at.desc()).all()
    return {"success": True, "manuals": schemas.serialize_all(schemas.ManualOut, manuals)}


@router.post("", status_code=201)
async def create_manual(
    name: Optional[str] = Form(None),
    number: Optional[str] = Form(None),
    revision: Optional[str] = Form(None),
    revision_date: Optional[str] = Form(None, alias="revisionDate"),
    description: Optional[str] = Form(None),
    keywords: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    if not all(v and v.strip() for v in (name, number, revision, revision_date)):
        raise HTTPException(status_code=400, detail="Name, number, revision, and revision date are required")
    revised = parse_date(revision_date, "revision date")
    if _number_taken(db, number):
        raise HTTPException(status_code=409, detail="Manual number already exists")
    payloads = await read_uploads([file]) if file else []

    manual = models.Manual(
        name=name,
        number=number,
        revision=revision,
        revision_date=revised,
        description=description,
        keywords=_keywords(keywords),
        status="DRAFT",
        created_by_id=current_user.id,
        updated_by_id=current_user.id,
    )
    db.add(manual)
    db.flush()
    keys = [_add_version(db, storage, manual, upload, data, current_user.id).file_key for upload, data in payloads]
    _commit_or_discard(db, storage, keys)
    logger.info("Created manual %s (%s) with %d version(s)", manual.number, manual.id, len(keys))
    return {"success": True, "manual": schemas.serialize(schemas.ManualDetailOut, _get_manual(db, manual.id))}


@router.post("/upload", status_code=201)
async def quick_upload_manual(
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    payloads = await read_uploads([file]) if file else []
    if not payloads:
        raise HTTPException(status_code=400, detail="No file provided")
    upload, data = payloads[0]
    if upload.content_type not in QUICK_UPLOAD_TYPES:
        raise HTTPException(status_code=400, detail="Invalid file type. Only PDF and Word documents are allowed.")

    manual = models.Manual(
        name=upload.filename,
        number=_document_number(db),
        status="DRAFT",
        created_by_id=current_user.id,
        updated_by_id=current_user.id,
    )
    db.add(manual)
    db.flush()
    version = _add_version(db, storage, manual, upload, data, current_user.id)
    _commit_or_discard(db, storage, [version.file_key])
    return {"success": True, "manual": schemas.serialize(schemas.ManualDetailOut, _get_manual(db, manual.id))}


@router.get("/{manual_id}")
def get_manual(
    manual_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return {"success": True, "manual": schemas.serialize(schemas.ManualDetailOut, _get_manual(db, manual_id))}


@router.patch("/{manual_id}")
def update_manual_status(
    manual_id: UUID,
    data: schemas.ManualStatusUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    if data.status not in MANUAL_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status value")
    manual = _get_manual(db, manual_id)
    manual.status = data.status
    manual.updated_by_id = current_user.id
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return {"success": True, "manual": schemas.serialize(schemas.ManualOut, _get_manual(db, manual_id))}


@router.put("/{manual_id}")
async def update_manual(
    manual_id: UUID,
    name: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    keywords: Optional[str] = Form(None),
    comment: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    if status not in MANUAL_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status")
    manual = _get_manual(db, manual_id)
    payloads = await read_uploads([file]) if file else []

    if name and name.strip():
        manual.name = name
    manual.status = status
    if description is not None:
        manual.description = description
    if keywords is not None:
        manual.keywords = _keywords(keywords)
    manual.updated_by_id = current_user.id
    # earlier versions keep their files so their downloads stay valid
    keys = [
        _add_version(db, storage, manual, upload, data, current_user.id, comment).file_key
        for upload, data in payloads
    ]
    _commit_or_discard(db, storage, keys)
    return {"success": True, "manual": schemas.serialize(schemas.ManualDetailOut, _get_manual(db, manual_id))}


@router.delete("/{manual_id}")
def delete_manual(
    manual_id: UUID,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    manual = _get_manual(db, manual_id)
    file_results = delete_files(storage, [v.file_key for v in manual.versions], "manual")
    try:
        db.delete(manual)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Deleted manual %s with %d stored version(s)", manual_id, len(file_results))
    return {"success": True, "message": "Manual deleted successfully", "fileResults": file_results}


@router.get("/{manual_id}/download")
def download_manual(
    manual_id: UUID,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    version = _get_manual(db, manual_id).current_version
    if version is None:
        raise HTTPException(status_code=404, detail="File not found")
    return file_response(fetch_file(storage, version.file_key), version.file_name, version.file_type)


@router.get("/{manual_id}/versions/{version_id}/download")
def download_manual_version(
    manual_id: UUID,
    version_id: UUID,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    version = (
        db.query(models.ManualVersion)
        .filter(models.ManualVersion.id == version_id, models.ManualVersion.manual_id == manual_id)
        .first()
    )
    if not version:
        raise HTTPException(status_code=404, detail="Version not found")
    return file_response(fetch_file(storage, version.file_key), version.file_name, version.file_type)


@router.get("/{manual_id}/comments")
def list_manual_comments(
    manual_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    _get_manual(db, manual_id)
    comments = (
        db.query(models.ManualComment)
        .options(selectinload(models.ManualComment.user))
        .filter(models.ManualComment.manual_id == manual_id)
        .order_by(models.ManualComment.created_at.desc())
        .all()
    )
    return {"success": True, "comments": schemas.serialize_all(schemas.ManualCommentOut, comments)}


@router.post("/{manual_id}/comments", status_code=201)
def add_manual_comment(
    manual_id: UUID,
    data: schemas.ManualCommentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    content = (data.content or "").strip()
    if not content:
        raise HTTPException(status_code=400, detail="Comment content is required")
    _get_manual(db, manual_id)
    comment = models.ManualComment(manual_id=manual_id, user_id=current_user.id, content=content)
    try:
        db.add(comment)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(comment)
    return {"success": True, "comment": schemas.serialize(schemas.ManualCommentOut, comment)}
