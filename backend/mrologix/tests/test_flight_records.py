import json
import uuid
from datetime import datetime, timezone

from .conftest import client, ensure_auth_headers


def flight_form(**overrides):
    form = {
        "date": datetime.now(timezone.utc).strftime("%Y-%m-%d"),
        "airline": "Acme Air",
        "fleet": "A320",
        "tail": "N123AA",
        "station": "KMIA",
        "service": "Transit",
    }
    form.update(overrides)
    return form


def create_flight(client, headers, files=None, **overrides):
    form = flight_form(**overrides)
    resp = client.post("/api/flight-records", data=form, files=files, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["flightRecordId"]


def test_create_with_defect_and_parts(client):
    headers, _ = ensure_auth_headers(client)
    parts = [{"pnOff": "P-1", "snOff": "S-1", "pnOn": "P-2", "snOn": "S-2"}]
    record_id = create_flight(
        client,
        headers,
        hasDefect="yes",
        logPageNo="LP-42",
        discrepancyNote="Hydraulic leak",
        defectStatus="Fixed",
        fixingManual="AMM",
        manualReference="29-11-00",
        hasPartReplaced="yes",
        partReplacements=json.dumps(parts),
        riiRequired="yes",
        inspectedBy="QA Lead",
    )
    record = client.get(f"/api/flight-records/{record_id}", headers=headers).json()["record"]
    assert record["hasDefect"] is True
    assert record["logPageNo"] == "LP-42"
    assert record["riiRequired"] is True
    assert record["inspectedBy"] == "QA Lead"
    assert record["partReplacements"][0]["pnOn"] == "P-2"


def test_defect_fields_dropped_without_defect(client):
    headers, _ = ensure_auth_headers(client)
    record_id = create_flight(client, headers, logPageNo="LP-1", riiRequired="yes", inspectedBy="X")
    record = client.get(f"/api/flight-records/{record_id}", headers=headers).json()["record"]
    assert record["logPageNo"] is None
    assert record["riiRequired"] is False
    assert record["inspectedBy"] is None


def test_invalid_part_replacements_json(client):
    headers, _ = ensure_auth_headers(client)
    resp = client.post(
        "/api/flight-records",
        data=flight_form(hasDefect="yes", hasPartReplaced="yes", partReplacements="{not json"),
        headers=headers,
    )
    assert resp.status_code == 400


def test_list_and_counts(client):
    headers, _ = ensure_auth_headers(client)
    station = f"ST{uuid.uuid4().hex[:4].upper()}"
    before = client.get("/api/flight-records/monthly-count", headers=headers).json()["count"]
    create_flight(client, headers, station=station)

    monthly = client.get("/api/flight-records/monthly-count", headers=headers).json()
    assert monthly["count"] == before + 1
    assert monthly["month"] == datetime.now(timezone.utc).strftime("%B %Y")

    stations = client.get("/api/flight-records/stations-count", headers=headers).json()
    assert station in stations["stations"]
    assert stations["count"] == len(stations["stations"])

    records = client.get("/api/flight-records", headers=headers).json()["records"]
    dates = [r["date"] for r in records]
    assert dates == sorted(dates, reverse=True)


def test_attachments_and_delete(client):
    headers, _ = ensure_auth_headers(client)
    files = [("files", ("log.txt", b"tech log", "text/plain"))]
    record_id = create_flight(client, headers, files=files, hasAttachments="yes")
    record = client.get(f"/api/flight-records/{record_id}", headers=headers).json()["record"]
    key = record["attachments"][0]["fileKey"]
    assert key.startswith(f"flight-records/{record_id}/")

    download = client.get(f"/api/flight-records/attachments/{key}", headers=headers)
    assert download.content == b"tech log"

    resp = client.delete(f"/api/flight-records/{record_id}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["fileResults"][0]["success"] is True
    assert client.get(f"/api/flight-records/{record_id}", headers=headers).status_code == 404
    assert client.get(f"/api/flight-records/attachments/{key}", headers=headers).status_code == 404


def test_bulk_delete(client):
    headers, _ = ensure_auth_headers(client)
    ids = [create_flight(client, headers) for _ in range(2)]
    resp = client.request("DELETE", "/api/flight-records/bulk-delete", json={"ids": ids}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["deletedCount"] == 2
    empty = client.request("DELETE", "/api/flight-records/bulk-delete", json={"ids": []}, headers=headers)
    assert empty.status_code == 400
