import json
import uuid

from .conftest import client, ensure_auth_headers
from mrologix.main import app
from mrologix.storage import LocalStorage, StorageError
from mrologix import models
from mrologix.config import settings


def stock_form(**overrides):
    form = {
        "incomingDate": "2024-03-10",
        "station": "KMIA",
        "owner": "Acme Air",
        "description": "Fuel pump",
        "partNo": f"PN-{uuid.uuid4().hex[:6]}",
        "serialNo": "SN-001",
        "quantity": "2",
        "type": "Rotable",
        "location": "Shelf A",
    }
    form.update(overrides)
    return form


def create_stock(client, headers, files=None, **overrides):
    form = stock_form(**overrides)
    if files:
        form["hasAttachments"] = "yes"
    resp = client.post("/api/stock-inventory", data=form, files=files, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["stockInventoryId"], form


def create_inspection(client, headers, stock_id):
    data = {
        "inspectionDate": "2024-03-11",
        "inspector": "J. Doe",
        "stockInventoryId": stock_id,
        "productMatch": "Yes",
    }
    resp = client.post(
        "/api/incoming-inspections",
        data={"data": json.dumps(data)},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["id"]


class FailingDeleteStorage(LocalStorage):
    def delete(self, key):
        raise StorageError(f"Failed to delete {key}: bucket offline")


def test_create_and_get_stock_record(client):
    headers, _ = ensure_auth_headers(client)
    files = [("files", ("cert.txt", b"8130-3", "text/plain"))]
    stock_id, form = create_stock(client, headers, files=files)

    resp = client.get(f"/api/stock-inventory/{stock_id}", headers=headers)
    assert resp.status_code == 200
    record = resp.json()["record"]
    assert record["partNo"] == form["partNo"]
    assert record["hasAttachments"] is True
    assert record["attachments"][0]["fileName"] == "cert.txt"
    assert record["incomingDate"].startswith("2024-03-10")


def test_create_requires_fields(client):
    headers, _ = ensure_auth_headers(client)
    resp = client.post("/api/stock-inventory", data={"station": "KMIA"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Missing required fields"


def test_other_selection_uses_custom_value(client):
    headers, _ = ensure_auth_headers(client)
    stock_id, _ = create_stock(client, headers, station="Other", customStation="TJSJ")
    record = client.get(f"/api/stock-inventory/{stock_id}", headers=headers).json()["record"]
    assert record["station"] == "TJSJ"


def test_delete_keeps_inspection_as_orphan(client):
    headers, _ = ensure_auth_headers(client)
    stock_id, form = create_stock(client, headers)
    inspection_id = create_inspection(client, headers, stock_id)

    resp = client.delete(f"/api/stock-inventory/{stock_id}", headers=headers)
    assert resp.status_code == 200

    assert client.get(f"/api/stock-inventory/{stock_id}", headers=headers).status_code == 404
    inspection = client.get(f"/api/incoming-inspections/{inspection_id}", headers=headers).json()["data"]
    assert inspection["stockInventoryId"] is None
    assert inspection["stockInventoryDeleted"] is True
    assert inspection["partNo"] == form["partNo"]
    assert inspection["serialNo"] == form["serialNo"]
    assert inspection["description"] == form["description"]


def test_delete_missing_record(client):
    headers, _ = ensure_auth_headers(client)
    resp = client.delete(f"/api/stock-inventory/{uuid.uuid4()}", headers=headers)
    assert resp.status_code == 404


def test_delete_survives_storage_failure(client, tmp_path):
    headers, _ = ensure_auth_headers(client)
    files = [("files", ("photo.jpg", b"\xff\xd8", "image/jpeg"))]
    stock_id, _ = create_stock(client, headers, files=files)

    app.state.storage = FailingDeleteStorage(str(tmp_path / "uploads"))
    resp = client.delete(f"/api/stock-inventory/{stock_id}", headers=headers)
    assert resp.status_code == 200
    results = resp.json()["fileResults"]
    assert len(results) == 1
    assert results[0]["success"] is False
    assert "bucket offline" in results[0]["error"]
    assert client.get(f"/api/stock-inventory/{stock_id}", headers=headers).status_code == 404


def test_bulk_delete(client, db_session):
    headers, _ = ensure_auth_headers(client)
    first, _ = create_stock(client, headers)
    second, _ = create_stock(client, headers)
    inspection_id = create_inspection(client, headers, second)

    resp = client.request(
        "DELETE",
        "/api/stock-inventory/bulk-delete",
        json={"ids": [first, second]},
        headers=headers,
    )
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert results["totalRecords"] == 2
    assert results["deletedRecords"] == 2
    assert results["failedRecords"] == 0

    orphan = db_session.get(models.IncomingInspection, uuid.UUID(inspection_id))
    assert orphan.stock_inventory_deleted is True
    assert orphan.stock_inventory_id is None


def test_bulk_delete_counts_only_found_records(client):
    headers, _ = ensure_auth_headers(client)
    found = [create_stock(client, headers)[0] for _ in range(2)]
    unknown = [str(uuid.uuid4()) for _ in range(3)]

    resp = client.request(
        "DELETE",
        "/api/stock-inventory/bulk-delete",
        json={"ids": found + unknown},
        headers=headers,
    )
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert results["totalRecords"] == len(found)
    assert results["deletedRecords"] == len(found)
    assert results["failedRecords"] == 0
    for stock_id in found:
        assert client.get(f"/api/stock-inventory/{stock_id}", headers=headers).status_code == 404


def test_bulk_delete_validation(client):
    headers, _ = ensure_auth_headers(client)
    empty = client.request("DELETE", "/api/stock-inventory/bulk-delete", json={"ids": []}, headers=headers)
    assert empty.status_code == 400
    missing = client.request(
        "DELETE",
        "/api/stock-inventory/bulk-delete",
        json={"ids": [str(uuid.uuid4())]},
        headers=headers,
    )
    assert missing.status_code == 404


def test_search_filters(client):
    headers, _ = ensure_auth_headers(client)
    marker = uuid.uuid4().hex[:6]
    create_stock(client, headers, partNo=f"SRCH-{marker}-1", hasInspection="yes", inspectionResult="Passed")
    create_stock(client, headers, partNo=f"SRCH-{marker}-2", hasInspection="yes", inspectionResult="Failed")
    create_stock(client, headers, partNo=f"SRCH-{marker}-3", location="Other", customLocation=f"Cage-{marker}")

    resp = client.get("/api/stock-inventory/search", params={"partNo": f"srch-{marker}"}, headers=headers)
    assert resp.status_code == 200
    assert len(resp.json()["data"]) == 3

    failed = client.get(
        "/api/stock-inventory/search",
        params={"partNo": f"SRCH-{marker}", "hasInspection": "true", "inspectionResult": "Failed"},
        headers=headers,
    ).json()["data"]
    assert [r["partNo"] for r in failed] == [f"SRCH-{marker}-2"]

    by_custom = client.get(
        "/api/stock-inventory/search", params={"location": f"cage-{marker}"}, headers=headers
    ).json()["data"]
    assert len(by_custom) == 1


def test_report_csv(client):
    headers, _ = ensure_auth_headers(client)
    owner = f"Owner-{uuid.uuid4().hex[:6]}"
    create_stock(client, headers, owner=owner, incomingDate="2024-05-01")
    create_stock(client, headers, owner=owner, incomingDate="2024-05-31")
    create_stock(client, headers, owner=owner, incomingDate="2024-06-01")

    resp = client.post(
        "/api/stock-inventory/report",
        json={
            "startDate": "2024-05-01",
            "endDate": "2024-05-31",
            "owner": owner,
            "selectedColumns": {"partNo": True, "owner": True, "incomingDate": True, "station": False},
        },
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "attachment" in resp.headers["content-disposition"]
    lines = resp.text.strip().splitlines()
    assert lines[0] == "Incoming Date,Owner,Part No"
    assert len(lines) == 3
    assert "May 31, 2024" in lines[1]


def test_report_requires_columns_and_dates(client):
    headers, _ = ensure_auth_headers(client)
    no_columns = client.post(
        "/api/stock-inventory/report",
        json={"startDate": "2024-01-01", "endDate": "2024-01-31", "selectedColumns": {}},
        headers=headers,
    )
    assert no_columns.status_code == 400
    no_dates = client.post(
        "/api/stock-inventory/report",
        json={"startDate": "", "endDate": "", "selectedColumns": {"partNo": True}},
        headers=headers,
    )
    assert no_dates.status_code == 400


def test_attachment_download(client):
    headers, _ = ensure_auth_headers(client)
    files = [("files", ("work order.pdf", b"%PDF-1.4", "application/pdf"))]
    stock_id, _ = create_stock(client, headers, files=files)
    record = client.get(f"/api/stock-inventory/{stock_id}", headers=headers).json()["record"]
    key = record["attachments"][0]["fileKey"]

    resp = client.get(f"/api/stock-inventory/attachments/{key}", headers=headers)
    assert resp.status_code == 200
    assert resp.content == b"%PDF-1.4"
    assert resp.headers["content-disposition"] == 'attachment; filename="work%20order.pdf"'
    assert resp.headers["cache-control"] == "no-cache"


def test_search_without_filters_is_capped(client):
    headers, _ = ensure_auth_headers(client)
    for _ in range(settings.search_page_size + 1):
        create_stock(client, headers)
    results = client.get("/api/stock-inventory/search", headers=headers).json()["data"]
    assert len(results) == settings.search_page_size
