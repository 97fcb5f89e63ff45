"""Helpers for reading and writing attachment payloads in object storage."""

from __future__ import annotations

import io
import logging
import os
import re
import time
from typing import Optional
from uuid import UUID

from fastapi import Request
from minio import Minio
from minio.error import S3Error

from .config import StorageConfig

# purpose: one adapter for every attachment family; callers only see opaque keys
# status: active

logger = logging.getLogger(__name__)

FLIGHT_RECORDS = "flight-records"
STOCK_INVENTORY = "stock-inventory"
INCOMING_INSPECTIONS = "incoming-inspections"
AIRPORT_ID = "airport-id"
SDR_REPORTS = "sdr-reports"
SMS_REPORTS = "sms-reports"
TECHNICIAN_TRAINING = "technician-training"
DOCUMENT_STORAGE = "document-storage"
MANUALS = "manuals"


class StorageError(Exception):
    """Raised when the storage backend rejects or fails an operation."""


def build_object_key(
    namespace: str,
    owner_id: UUID | str,
    filename: str,
    subpath: str | None = None,
) -> str:
    """Construct ``namespace/owner[/subpath]/<epoch-ms>-<filename>``."""

    safe_name = re.sub(r"[^A-Za-z0-9_.-]", "_", os.path.basename(filename or "")) or "attachment.bin"
    parts = [namespace, str(owner_id)]
    if subpath:
        clean = re.sub(r"[^A-Za-z0-9/_.-]", "_", subpath).strip("/")
        parts.extend(p for p in clean.split("/") if p and p not in {".", ".."})
    parts.append(f"{int(time.time() * 1000)}-{safe_name}")
    return "/".join(parts)


class ObjectStorage:
    """Interface shared by the storage backends."""

    def put(self, key: str, data: bytes, content_type: str) -> None:
        raise NotImplementedError

    def get(self, key: str) -> Optional[bytes]:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def upload(
        self,
        namespace: str,
        owner_id: UUID | str,
        filename: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        subpath: str | None = None,
    ) -> str:
        key = build_object_key(namespace, owner_id, filename, subpath)
        self.put(key, data, content_type)
        logger.info("Stored %s (%d bytes)", key, len(data))
        return key


class MinioStorage(ObjectStorage):
    """S3-compatible backend."""

    def __init__(self, client: Minio, bucket: str):
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_config(cls, config: StorageConfig) -> "MinioStorage":
        client = Minio(
            config.endpoint,
            access_key=config.access_key,
            secret_key=config.secret_key,
            secure=config.endpoint.startswith("https"),
        )
        if not client.bucket_exists(config.bucket):
            client.make_bucket(config.bucket)
        return cls(client, config.bucket)

    def put(self, key, data, content_type):
        try:
            self.client.put_object(
                self.bucket,
                key,
                io.BytesIO(data),
                length=len(data),
                content_type=content_type or "application/octet-stream",
            )
        except S3Error as exc:
            raise StorageError(f"Failed to upload {key}: {exc}") from exc

    def get(self, key):
        try:
            response = self.client.get_object(self.bucket, key)
        except S3Error as exc:
            if exc.code in {"NoSuchKey", "NoSuchObject"}:
                return None
            raise StorageError(f"Failed to read {key}: {exc}") from exc
        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    def delete(self, key):
        try:
            self.client.remove_object(self.bucket, key)
        except S3Error as exc:
            raise StorageError(f"Failed to delete {key}: {exc}") from exc


class LocalStorage(ObjectStorage):
    """Filesystem backend used when no object store is configured."""

    def __init__(self, root: str):
        self.root = root
        os.makedirs(root, exist_ok=True)

    def _path(self, key: str) -> str:
        parts = key.split("/")
        if any(p in {"", ".", ".."} for p in parts):
            raise StorageError(f"Invalid storage key {key!r}")
        return os.path.join(self.root, *parts)

    def put(self, key, data, content_type):
        path = self._path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as handle:
            handle.write(data)

    def get(self, key):
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, "rb") as handle:
            return handle.read()

    def delete(self, key):
        try:
            os.remove(self._path(key))
        except OSError as exc:
            raise StorageError(f"Failed to delete {key}: {exc}") from exc


def build_storage(config: StorageConfig) -> ObjectStorage:
    if config.uses_object_store:
        return MinioStorage.from_config(config)
    logger.warning("Object storage not configured, writing uploads to %s", config.upload_dir)
    return LocalStorage(config.upload_dir)


def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage
