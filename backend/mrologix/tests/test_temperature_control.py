import uuid

from .conftest import client, ensure_auth_headers
from mrologix.services.climate import DEFAULT_RANGES

CONFIG_URL = "/api/temperature-humidity-config"


def default_ranges():
    return {
        "tempNormalMin": DEFAULT_RANGES["temp_normal_min"],
        "tempNormalMax": DEFAULT_RANGES["temp_normal_max"],
        "tempMediumMin": DEFAULT_RANGES["temp_medium_min"],
        "tempMediumMax": DEFAULT_RANGES["temp_medium_max"],
        "tempHighMin": DEFAULT_RANGES["temp_high_min"],
        "humidityNormalMin": DEFAULT_RANGES["humidity_normal_min"],
        "humidityNormalMax": DEFAULT_RANGES["humidity_normal_max"],
        "humidityMediumMin": DEFAULT_RANGES["humidity_medium_min"],
        "humidityMediumMax": DEFAULT_RANGES["humidity_medium_max"],
        "humidityHighMin": DEFAULT_RANGES["humidity_high_min"],
    }


def reading_form(**overrides):
    form = {
        "date": "2024-05-02",
        "location": "Hangar 1",
        "time": "08:00",
        "temperature": "22.5",
        "humidity": "40",
        "employeeName": "M. Ortiz",
        "hasComment": "no",
    }
    form.update(overrides)
    return form


def add_reading(client, headers, **overrides):
    resp = client.post("/api/temperature-control", data=reading_form(**overrides), headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def test_create_reading_keeps_conditional_fields(client):
    headers, _ = ensure_auth_headers(client)
    plain = add_reading(client, headers, customLocation="Cage 9", comment="ignored")
    assert plain["customLocation"] is None
    assert plain["comment"] is None
    assert plain["hasComment"] is False

    other = add_reading(client, headers, location="Other", customLocation="Cage 9", hasComment="yes", comment="AC off")
    assert other["customLocation"] == "Cage 9"
    assert other["comment"] == "AC off"
    assert other["temperature"] == 22.5


def test_create_reading_validation(client):
    headers, _ = ensure_auth_headers(client)
    missing = client.post("/api/temperature-control", data=reading_form(employeeName=""), headers=headers)
    assert missing.status_code == 400
    assert missing.json()["message"] == "Missing required fields"

    bad = client.post("/api/temperature-control", data=reading_form(humidity="damp"), headers=headers)
    assert bad.status_code == 400
    assert bad.json()["message"] == "Invalid humidity"


def test_list_grades_readings_and_counts(client):
    headers, _ = ensure_auth_headers(client)
    assert client.put(CONFIG_URL, json=default_ranges(), headers=headers).status_code == 200
    marker = f"Bay-{uuid.uuid4().hex[:6]}"
    add_reading(client, headers, location=marker, temperature="20", humidity="30")
    add_reading(client, headers, location=marker, temperature="30", humidity="50")
    add_reading(client, headers, location=marker, temperature="40", humidity="80")

    resp = client.get("/api/temperature-control", params={"search": marker, "limit": 2}, headers=headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["pagination"]["total"] == 3
    assert data["pagination"]["totalPages"] == 2
    newest = data["records"][0]
    assert newest["temperatureLevel"] == "HIGH"
    assert newest["humidityLevel"] == "HIGH"
    assert data["records"][1]["temperatureLevel"] == "MEDIUM"

    last = client.get("/api/temperature-control", params={"search": marker, "limit": 2, "page": 2}, headers=headers)
    oldest = last.json()["data"]["records"][0]
    assert oldest["temperatureLevel"] == "NORMAL"
    assert oldest["humidityLevel"] == "NORMAL"

    count = client.get("/api/temperature-control", params={"search": marker, "count": "true"}, headers=headers)
    assert count.json() == {"success": True, "data": {"total": 3}}


def test_delete_reading(client):
    headers, _ = ensure_auth_headers(client)
    record = add_reading(client, headers)
    resp = client.delete(f"/api/temperature-control/{record['id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["id"] == record["id"]

    again = client.delete(f"/api/temperature-control/{record['id']}", headers=headers)
    assert again.status_code == 404
    assert again.json()["message"] == "Temperature control record not found"


def test_config_defaults_and_update(client):
    headers, _ = ensure_auth_headers(client)
    current = client.get(CONFIG_URL, headers=headers)
    assert current.status_code == 200
    assert current.json()["data"]["isActive"] is True

    ranges = default_ranges()
    ranges["tempNormalMax"] = 20
    updated = client.put(CONFIG_URL, json=ranges, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["data"]["tempNormalMax"] == 20
    assert client.get(CONFIG_URL, headers=headers).json()["data"]["tempNormalMax"] == 20

    restored = client.put(CONFIG_URL, json=default_ranges(), headers=headers)
    assert restored.json()["data"]["tempNormalMax"] == DEFAULT_RANGES["temp_normal_max"]


def test_config_update_validation(client):
    headers, _ = ensure_auth_headers(client)
    partial = default_ranges()
    del partial["humidityHighMin"]
    missing = client.put(CONFIG_URL, json=partial, headers=headers)
    assert missing.status_code == 400
    assert missing.json()["message"] == "Missing required configuration values"

    inverted = default_ranges()
    inverted["tempMediumMin"] = 40
    resp = client.put(CONFIG_URL, json=inverted, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["message"].startswith("Invalid temperature ranges")

    humid = default_ranges()
    humid["humidityNormalMin"] = 50
    resp = client.put(CONFIG_URL, json=humid, headers=headers)
    assert resp.json()["message"].startswith("Invalid humidity ranges")
