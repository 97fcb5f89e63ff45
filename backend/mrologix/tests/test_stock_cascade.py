import uuid
from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from .conftest import TestingSessionLocal, db_session
from mrologix import models
from mrologix.services.stock_inventory import (
    StockInventoryNotFound,
    delete_stock_records,
    orphan_inspections,
)
from mrologix.storage import STOCK_INVENTORY

INSPECTIONS = 3


def make_stock(**overrides):
    values = dict(
        incoming_date=datetime(2024, 3, 10),
        station="KMIA",
        owner="Acme Air",
        description="Starter generator",
        part_no=f"PN-{uuid.uuid4().hex[:6]}",
        serial_no="SN-77",
        quantity="1",
        type="Rotable",
        location="Shelf B",
    )
    values.update(overrides)
    return models.StockInventory(**values)


def add_inspections(stock, count=INSPECTIONS):
    inspections = [
        models.IncomingInspection(inspection_date=datetime(2024, 3, 11 + n), inspector=f"Inspector {n}")
        for n in range(count)
    ]
    stock.incoming_inspections.extend(inspections)
    return inspections


def test_orphan_inspections_copies_part_data():
    stock = make_stock()
    inspection = models.IncomingInspection(inspection_date=datetime(2024, 3, 11), inspector="R. Diaz")
    stock.incoming_inspections.append(inspection)

    assert orphan_inspections(stock) == 1
    assert inspection.part_no == stock.part_no
    assert inspection.serial_no == "SN-77"
    assert inspection.description == "Starter generator"
    assert inspection.stock_inventory_deleted is True
    assert inspection.stock_inventory is None


def test_delete_stock_records_removes_files_and_keeps_inspections(db_session, storage):
    stock = make_stock()
    key = storage.upload(STOCK_INVENTORY, uuid.uuid4(), "tag.pdf", b"%PDF", "application/pdf")
    stock.attachments.append(
        models.StockInventoryAttachment(file_name="tag.pdf", file_key=key, file_size=4, file_type="application/pdf")
    )
    inspections = add_inspections(stock)
    db_session.add(stock)
    db_session.commit()
    stock_id, part_no = stock.id, stock.part_no
    inspection_ids = [i.id for i in inspections]

    result = delete_stock_records(db_session, storage, [stock_id])

    assert result.as_payload()["deletedRecords"] == 1
    assert result.file_results == [{"fileKey": key, "type": "stock-inventory", "success": True}]
    assert storage.get(key) is None
    assert result.deleted[0]["part_no"] == part_no

    # reload through a separate session so nothing comes from the identity map
    fresh = TestingSessionLocal()
    try:
        assert fresh.get(models.StockInventory, stock_id) is None
        for inspection_id in inspection_ids:
            kept = fresh.get(models.IncomingInspection, inspection_id)
            assert kept is not None
            assert kept.stock_inventory_id is None
            assert kept.stock_inventory_deleted is True
            assert kept.part_no == part_no
            assert kept.serial_no == "SN-77"
            assert kept.description == "Starter generator"
    finally:
        fresh.close()


def test_failed_commit_leaves_stock_and_inspections_untouched(db_session, storage, monkeypatch):
    stock = make_stock()
    inspections = add_inspections(stock)
    db_session.add(stock)
    db_session.commit()
    stock_id = stock.id
    inspection_ids = [i.id for i in inspections]

    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", failing_commit)
    with pytest.raises(OperationalError):
        delete_stock_records(db_session, storage, [stock_id])

    fresh = TestingSessionLocal()
    try:
        kept = fresh.get(models.StockInventory, stock_id)
        assert kept is not None
        assert sorted(i.id for i in kept.incoming_inspections) == sorted(inspection_ids)
        for inspection in kept.incoming_inspections:
            assert inspection.stock_inventory_deleted is False
            assert inspection.part_no is None
    finally:
        fresh.close()


def test_delete_stock_records_ignores_unknown_ids(db_session, storage):
    stocks = [make_stock() for _ in range(2)]
    db_session.add_all(stocks)
    db_session.commit()
    ids = [s.id for s in stocks] + [uuid.uuid4(), uuid.uuid4()]

    payload = delete_stock_records(db_session, storage, ids).as_payload()

    assert payload["totalRecords"] == len(stocks)
    assert payload["deletedRecords"] == len(stocks)
    assert payload["failedRecords"] == 0


def test_delete_stock_records_unknown_ids(db_session, storage):
    with pytest.raises(StockInventoryNotFound):
        delete_stock_records(db_session, storage, [uuid.uuid4()])
