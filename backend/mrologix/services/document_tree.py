"""Folder tree helpers for per-user document storage."""

from __future__ import annotations

from typing import Iterator, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from .. import models

# purpose: keep materialised folder and file paths consistent across renames and moves
# status: active


def join_path(parent_path: Optional[str], name: str) -> str:
    return f"{parent_path}/{name}" if parent_path else f"/{name}"


def walk(folder: models.DocumentFolder) -> Iterator[models.DocumentFolder]:
    """Yield ``folder`` and every descendant, parents before children."""
    yield folder
    for child in folder.children:
        yield from walk(child)


def subtree_file_keys(folder: models.DocumentFolder) -> list[str]:
    return [f.file_key for node in walk(folder) for f in node.files]


def rewrite_paths(folder: models.DocumentFolder, path: str) -> int:
    """Set ``folder.path`` and cascade it to descendants and their files.

    Returns the number of folders touched.
    """
    folder.path = path
    for file in folder.files:
        file.path = join_path(path, file.file_name)
    touched = 1
    for child in folder.children:
        touched += rewrite_paths(child, join_path(path, child.name))
    return touched


def folder_name_taken(
    db: Session,
    user_id: UUID,
    name: str,
    parent_id: Optional[UUID],
    exclude_id: Optional[UUID] = None,
) -> bool:
    query = db.query(models.DocumentFolder.id).filter(
        models.DocumentFolder.user_id == user_id,
        models.DocumentFolder.name == name,
        models.DocumentFolder.parent_id.is_(None) if parent_id is None
        else models.DocumentFolder.parent_id == parent_id,
    )
    if exclude_id is not None:
        query = query.filter(models.DocumentFolder.id != exclude_id)
    return query.first() is not None


def file_name_taken(
    db: Session,
    user_id: UUID,
    file_name: str,
    folder_id: Optional[UUID],
    exclude_id: Optional[UUID] = None,
) -> bool:
    query = db.query(models.DocumentFile.id).filter(
        models.DocumentFile.user_id == user_id,
        models.DocumentFile.file_name == file_name,
        models.DocumentFile.folder_id.is_(None) if folder_id is None
        else models.DocumentFile.folder_id == folder_id,
    )
    if exclude_id is not None:
        query = query.filter(models.DocumentFile.id != exclude_id)
    return query.first() is not None
