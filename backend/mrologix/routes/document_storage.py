import json
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..attachments import delete_files, fetch_file, file_response, read_uploads
from ..auth import get_current_user
from ..database import get_db
from ..models import utcnow
from ..services import document_tree
from ..storage import DOCUMENT_STORAGE, ObjectStorage, get_storage
from .. import models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/document-storage", tags=["document-storage"])


def parse_tags(value: Optional[str]) -> list[str]:
    """Accept a JSON array or a comma separated list."""
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except ValueError:
        parsed = value.split(",")
    if not isinstance(parsed, list):
        parsed = [parsed]
    return [str(tag).strip() for tag in parsed if str(tag).strip()]


def _get_folder(db: Session, folder_id: UUID, user: models.User) -> models.DocumentFolder:
    folder = (
        db.query(models.DocumentFolder)
        .filter(models.DocumentFolder.id == folder_id, models.DocumentFolder.user_id == user.id)
        .first()
    )
    if not folder:
        raise HTTPException(status_code=404, detail="Folder not found")
    return folder


def _get_file(db: Session, file_id: UUID, user: models.User) -> models.DocumentFile:
    document = (
        db.query(models.DocumentFile)
        .filter(models.DocumentFile.id == file_id, models.DocumentFile.user_id == user.id)
        .first()
    )
    if not document:
        raise HTTPException(status_code=404, detail="File not found")
    return document


@router.get("")
def get_tree(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    folders = (
        db.query(models.DocumentFolder)
        .options(
            selectinload(models.DocumentFolder.files),
            selectinload(models.DocumentFolder.children),
        )
        .filter(models.DocumentFolder.user_id == current_user.id)
        .order_by(models.DocumentFolder.name.asc())
        .all()
    )
    root_files = (
        db.query(models.DocumentFile)
        .filter(
            models.DocumentFile.user_id == current_user.id,
            models.DocumentFile.folder_id.is_(None),
        )
        .order_by(models.DocumentFile.file_name.asc())
        .all()
    )
    return {
        "success": True,
        "data": {
            "folders": schemas.serialize_all(schemas.FolderDetailOut, folders),
            "rootFiles": schemas.serialize_all(schemas.DocumentFileOut, root_files),
            "userId": str(current_user.id),
        },
    }


@router.post("/folders", status_code=201)
def create_folder(
    payload: schemas.FolderCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Folder name is required")

    parent_path = None
    if payload.parent_id:
        parent_path = _get_folder(db, payload.parent_id, current_user).path
    if document_tree.folder_name_taken(db, current_user.id, name, payload.parent_id):
        raise HTTPException(status_code=409, detail="A folder with this name already exists")

    folder = models.DocumentFolder(
        name=name,
        description=payload.description or None,
        path=document_tree.join_path(parent_path, name),
        parent_id=payload.parent_id,
        user_id=current_user.id,
    )
    db.add(folder)
    db.commit()
    db.refresh(folder)
    return {"success": True, "data": schemas.serialize(schemas.FolderOut, folder)}


@router.put("/folders/{folder_id}")
def update_folder(
    folder_id: UUID,
    payload: schemas.FolderUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Folder name is required")
    folder = _get_folder(db, folder_id, current_user)
    if document_tree.folder_name_taken(db, current_user.id, name, folder.parent_id, exclude_id=folder.id):
        raise HTTPException(status_code=409, detail="A folder with this name already exists")

    renamed = name != folder.name
    folder.name = name
    if "description" in payload.model_fields_set:
        folder.description = payload.description or None
    if renamed:
        parent_path = folder.parent.path if folder.parent else None
        touched = document_tree.rewrite_paths(folder, document_tree.join_path(parent_path, name))
        logger.info("Renamed folder %s, rewrote %d paths", folder.id, touched)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(folder)
    return {"success": True, "data": schemas.serialize(schemas.FolderOut, folder)}


@router.delete("/folders/{folder_id}")
def delete_folder(
    folder_id: UUID,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    folder = _get_folder(db, folder_id, current_user)
    file_results = delete_files(storage, document_tree.subtree_file_keys(folder), "document")
    try:
        db.delete(folder)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return {"success": True, "message": "Folder deleted successfully", "fileResults": file_results}


@router.post("/files", status_code=201)
async def upload_files(
    files: Optional[List[UploadFile]] = File(None),
    folder_id: Optional[UUID] = Form(None, alias="folderId"),
    tags: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    payloads = await read_uploads(files)
    if not payloads:
        raise HTTPException(status_code=400, detail="No files provided")
    folder = _get_folder(db, folder_id, current_user) if folder_id else None
    tag_list = parse_tags(tags)

    created, errors = [], []
    for upload, data in payloads:
        name = upload.filename or "attachment.bin"
        if document_tree.file_name_taken(db, current_user.id, name, folder_id):
            errors.append(f"File '{name}' already exists in this location")
            continue
        key = storage.upload(
            DOCUMENT_STORAGE,
            current_user.id,
            name,
            data,
            upload.content_type or "application/octet-stream",
            subpath=folder.path if folder else None,
        )
        document = models.DocumentFile(
            name=name,
            file_name=name,
            file_key=key,
            file_size=len(data),
            file_type=upload.content_type or "application/octet-stream",
            path=document_tree.join_path(folder.path if folder else None, name),
            description=description or None,
            tags=tag_list,
            folder_id=folder_id,
            user_id=current_user.id,
        )
        db.add(document)
        db.flush()
        created.append(document)
    db.commit()

    message = f"{len(created)} file(s) uploaded successfully"
    if errors:
        message += f" with {len(errors)} error(s)"
    return {
        "success": True,
        "data": schemas.serialize_all(schemas.DocumentFileOut, created),
        "errors": errors or None,
        "message": message,
    }


@router.put("/files/{file_id}")
def update_file(
    file_id: UUID,
    payload: schemas.FileUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    document = _get_file(db, file_id, current_user)
    fields = payload.model_fields_set

    target_id = payload.folder_id if "folder_id" in fields else document.folder_id
    target = _get_folder(db, target_id, current_user) if target_id else None
    new_name = (payload.file_name or "").strip() or document.file_name

    moved = target_id != document.folder_id
    if (moved or new_name != document.file_name) and document_tree.file_name_taken(
        db, current_user.id, new_name, target_id, exclude_id=document.id
    ):
        detail = (
            "A file with this name already exists in the target folder"
            if moved
            else "A file with this name already exists in this location"
        )
        raise HTTPException(status_code=409, detail=detail)

    document.file_name = new_name
    document.name = new_name
    document.folder_id = target_id
    document.path = document_tree.join_path(target.path if target else None, new_name)
    if "description" in fields:
        document.description = payload.description or None
    if "tags" in fields:
        document.tags = payload.tags or []
    db.commit()
    db.refresh(document)
    return {"success": True, "data": schemas.serialize(schemas.DocumentFileOut, document)}


@router.delete("/files/{file_id}")
def delete_file(
    file_id: UUID,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    document = _get_file(db, file_id, current_user)
    file_results = delete_files(storage, [document.file_key], "document")
    try:
        db.delete(document)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return {"success": True, "message": "File deleted successfully", "fileResults": file_results}


@router.get("/files/{file_id}/download")
def download_file(
    file_id: UUID,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    document = db.get(models.DocumentFile, file_id)
    if not document or (document.user_id != current_user.id and not document.is_public):
        raise HTTPException(status_code=404, detail="File not found or access denied")

    data = fetch_file(storage, document.file_key)
    document.download_count = (document.download_count or 0) + 1
    document.last_accessed_at = utcnow()
    db.commit()
    return file_response(data, document.file_name, document.file_type)
