import logging
from typing import Iterable, List, Optional
from urllib.parse import quote
from uuid import UUID

from fastapi import HTTPException, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from .config import settings
from .storage import ObjectStorage, StorageError

logger = logging.getLogger(__name__)


async def read_uploads(files: Optional[List[UploadFile]]) -> list[tuple[UploadFile, bytes]]:
    """Read multipart uploads, dropping empty parts and enforcing the size limit."""

    payloads = []
    for upload in files or []:
        data = await upload.read()
        if data:
            payloads.append((upload, data))
    total = sum(len(data) for _, data in payloads)
    limit = settings.storage.max_upload_bytes
    if total > limit:
        raise HTTPException(
            status_code=400,
            detail=f"Total upload size ({total / (1024 * 1024):.2f}MB) exceeds the "
            f"{limit // (1024 * 1024)}MB limit",
        )
    return payloads


def store_uploads(
    db: Session,
    storage: ObjectStorage,
    payloads: list[tuple[UploadFile, bytes]],
    *,
    namespace: str,
    owner_id: UUID,
    attachment_model,
    parent_field: str,
) -> list:
    """Upload each payload and add one attachment row per file to the session."""

    rows = []
    for upload, data in payloads:
        content_type = upload.content_type or "application/octet-stream"
        key = storage.upload(namespace, owner_id, upload.filename, data, content_type)
        row = attachment_model(
            file_name=upload.filename,
            file_key=key,
            file_size=len(data),
            file_type=content_type,
            **{parent_field: owner_id},
        )
        db.add(row)
        rows.append(row)
    return rows


def delete_files(storage: ObjectStorage, keys: Iterable[str], kind: str) -> list[dict]:
    """Best-effort removal of stored objects.

    A failed delete is logged and reported in the returned results; it never
    stops the remaining deletes or the caller's database work.
    """

    results = []
    for key in keys:
        try:
            storage.delete(key)
            results.append({"fileKey": key, "type": kind, "success": True})
        except StorageError as exc:
            logger.error("Error deleting %s file %s: %s", kind, key, exc)
            results.append({"fileKey": key, "type": kind, "success": False, "error": str(exc)})
    return results


def fetch_file(storage: ObjectStorage, key: str) -> bytes:
    data = storage.get(key)
    if data is None:
        logger.error("File data not found for fileKey: %s", key)
        raise HTTPException(status_code=404, detail="File not found in storage")
    return data


def file_response(data: bytes, file_name: str, file_type: Optional[str]) -> Response:
    headers = {
        "Content-Disposition": f'attachment; filename="{quote(file_name)}"',
        "Content-Length": str(len(data)),
        "Cache-Control": "no-cache",
    }
    return Response(
        content=data,
        media_type=file_type or "application/octet-stream",
        headers=headers,
    )
