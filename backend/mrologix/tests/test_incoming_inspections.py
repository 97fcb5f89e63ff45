import json
import uuid

from .conftest import client, ensure_auth_headers
from .test_stock_inventory import create_stock


def test_inspection_copies_part_data(client):
    headers, _ = ensure_auth_headers(client)
    stock_id, form = create_stock(client, headers)
    data = {
        "inspectionDate": "2024-04-02",
        "inspector": "R. Smith",
        "stockInventoryId": stock_id,
        "physicalCondition": "Good",
        "esdSensitive": "No",
    }
    files = [("files", ("tag.png", b"\x89PNG", "image/png"))]
    resp = client.post(
        "/api/incoming-inspections",
        data={"data": json.dumps(data)},
        files=files,
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    inspection = resp.json()["data"]
    assert inspection["partNo"] == form["partNo"]
    assert inspection["physicalCondition"] == "Good"
    assert inspection["hasAttachments"] is True
    assert inspection["stockInventory"]["id"] == stock_id

    listed = client.get(
        "/api/incoming-inspections", params={"stockInventoryId": stock_id}, headers=headers
    ).json()["data"]
    assert [i["id"] for i in listed] == [inspection["id"]]


def test_inspection_for_missing_stock(client):
    headers, _ = ensure_auth_headers(client)
    data = {"inspectionDate": "2024-04-02", "inspector": "R. Smith", "stockInventoryId": str(uuid.uuid4())}
    resp = client.post("/api/incoming-inspections", data={"data": json.dumps(data)}, headers=headers)
    assert resp.status_code == 404


def test_inspection_requires_inspector(client):
    headers, _ = ensure_auth_headers(client)
    resp = client.post(
        "/api/incoming-inspections",
        data={"data": json.dumps({"inspectionDate": "2024-04-02"})},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["message"].startswith("Invalid inspector")


def test_inspection_rejects_blank_date(client):
    headers, _ = ensure_auth_headers(client)
    resp = client.post(
        "/api/incoming-inspections",
        data={"data": json.dumps({"inspectionDate": "", "inspector": "J. Doe"})},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Missing required fields"


def test_delete_inspection(client):
    headers, _ = ensure_auth_headers(client)
    stock_id, _ = create_stock(client, headers)
    data = {"inspectionDate": "2024-04-02", "inspector": "R. Smith", "stockInventoryId": stock_id}
    inspection_id = client.post(
        "/api/incoming-inspections", data={"data": json.dumps(data)}, headers=headers
    ).json()["data"]["id"]

    resp = client.delete(f"/api/incoming-inspections/{inspection_id}", headers=headers)
    assert resp.status_code == 200
    assert client.get(f"/api/incoming-inspections/{inspection_id}", headers=headers).status_code == 404
    stock = client.get(f"/api/stock-inventory/{stock_id}", headers=headers).json()["record"]
    assert stock["incomingInspections"] == []
