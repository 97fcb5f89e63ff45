import uuid

from .conftest import client, ensure_auth_headers


def training_form(**overrides):
    form = {
        "date": "2024-06-01",
        "technician": "Morgan Diaz",
        "organization": "Acme Air",
        "type": "Recurrent",
        "training": "Human Factors",
    }
    form.update(overrides)
    return form


def create_training(client, headers, files=None, **overrides):
    resp = client.post("/api/technician-training", data=training_form(**overrides), files=files, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_create_with_hours_and_attachment(client):
    headers, _ = ensure_auth_headers(client)
    files = [("attachments", ("cert.pdf", b"%PDF", "application/pdf"))]
    training = create_training(
        client, headers, files=files, hasHours="true", hours="7.5", hasAttachments="true"
    )
    assert training["hours"] == 7.5
    assert training["hasAttachments"] is True
    key = training["attachments"][0]["fileKey"]
    download = client.get(f"/api/technician-training/download/{key}", headers=headers)
    assert download.content == b"%PDF"


def test_invalid_hours(client):
    headers, _ = ensure_auth_headers(client)
    resp = client.post("/api/technician-training", data=training_form(hours="lots"), headers=headers)
    assert resp.status_code == 400


def test_missing_technician(client):
    headers, _ = ensure_auth_headers(client)
    form = training_form()
    form.pop("technician")
    resp = client.post("/api/technician-training", data=form, headers=headers)
    assert resp.status_code == 400


def test_pagination_and_technician_counts(client):
    headers, _ = ensure_auth_headers(client)
    name = f"Tech {uuid.uuid4().hex[:6]}"
    for _ in range(3):
        create_training(client, headers, technician=name)

    page = client.get(
        "/api/technician-training", params={"technician": name, "limit": 2}, headers=headers
    ).json()
    assert page["total"] == 3
    assert page["totalPages"] == 2
    assert len(page["trainings"]) == 2

    counts = client.get("/api/technician-training/technicians", headers=headers).json()
    assert {"technician": name, "trainingCount": 3} in counts
    names = [c["technician"] for c in counts]
    assert names == sorted(names)


def test_delete_training(client):
    headers, _ = ensure_auth_headers(client)
    training = create_training(client, headers)
    assert client.delete(f"/api/technician-training/{training['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/technician-training/{training['id']}", headers=headers).status_code == 404
