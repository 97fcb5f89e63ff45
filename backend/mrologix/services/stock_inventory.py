"""Stock inventory deletion with orphan preservation for incoming inspections."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from .. import models
from ..attachments import delete_files
from ..storage import ObjectStorage

# purpose: keep inspections self-describing after their stock record is removed
# status: active
# depends_on: backend.mrologix.models.StockInventory, backend.mrologix.models.IncomingInspection

logger = logging.getLogger(__name__)


class StockInventoryNotFound(LookupError):
    """Raised when none of the requested stock records exist."""


@dataclass
class CascadeResult:
    """Outcome of a cascading delete over one or more stock records."""

    total_records: int
    deleted_records: int = 0
    failed_records: int = 0
    file_results: list[dict] = field(default_factory=list)
    deleted: list[dict] = field(default_factory=list)

    def as_payload(self) -> dict:
        return {
            "totalRecords": self.total_records,
            "deletedRecords": self.deleted_records,
            "failedRecords": self.failed_records,
            "fileResults": self.file_results,
        }


def orphan_inspections(record: models.StockInventory) -> int:
    """Detach every inspection from ``record``, copying its part data first."""

    count = 0
    for inspection in list(record.incoming_inspections):
        inspection.part_no = record.part_no
        inspection.serial_no = record.serial_no
        inspection.description = record.description
        inspection.stock_inventory_deleted = True
        inspection.stock_inventory_id = None
        inspection.stock_inventory = None
        count += 1
    return count


def _snapshot(record: models.StockInventory) -> dict:
    return {
        "id": record.id,
        "part_no": record.part_no,
        "serial_no": record.serial_no,
        "description": record.description,
    }


def _load(db: Session, ids: Sequence[UUID]) -> list[models.StockInventory]:
    return (
        db.query(models.StockInventory)
        .options(
            selectinload(models.StockInventory.attachments),
            selectinload(models.StockInventory.incoming_inspections),
        )
        .filter(models.StockInventory.id.in_(list(ids)))
        .all()
    )


def delete_stock_records(
    db: Session, storage: ObjectStorage, ids: Sequence[UUID]
) -> CascadeResult:
    """Delete stock records, their attachments and orphan their inspections.

    Stored files go first and are best-effort: each key gets a result entry and
    a failure never stops the database work. The inspection updates and the
    record deletes then commit together, or roll back together on error.
    """

    records = _load(db, ids)
    if not records:
        raise StockInventoryNotFound("No stock inventory records found")

    result = CascadeResult(total_records=len(records))
    for record in records:
        keys = [a.file_key for a in record.attachments]
        result.file_results.extend(delete_files(storage, keys, "stock-inventory"))

    try:
        for record in records:
            result.deleted.append(_snapshot(record))
            orphaned = orphan_inspections(record)
            logger.info("Orphaned %d inspections of stock record %s", orphaned, record.id)
            db.delete(record)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        result.deleted.clear()
        logger.exception("Cascading delete failed for stock records %s", [str(r.id) for r in records])
        raise

    result.deleted_records = len(records)
    result.failed_records = result.total_records - result.deleted_records
    return result
