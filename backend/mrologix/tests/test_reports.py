import re

from .conftest import client, ensure_auth_headers
from mrologix.main import app
from mrologix.routes import sdr_reports, sms_reports


def sdr_form(**overrides):
    form = {
        "reportTitle": "Cracked bracket",
        "difficultyDate": "2024-02-14",
        "submitter": "Repair Station",
        "submitterName": "Pat Lee",
        "email": "pat@example.com",
        "station": "KMIA",
        "condition": "Cracked",
        "howDiscovered": "Inspection",
        "partOrAirplane": "Part",
        "problemDescription": "Crack found near the attach point",
    }
    form.update(overrides)
    return form


def test_sdr_control_number_format():
    for _ in range(20):
        assert re.fullmatch(r"SDR\d{4}", sdr_reports.generate_control_number())


def test_sdr_create_and_delete(client):
    headers, _ = ensure_auth_headers(client)
    files = [("attachments", ("crack.jpg", b"\xff\xd8\xff", "image/jpeg"))]
    resp = client.post(
        "/api/sdr-reports",
        data=sdr_form(hasFlightNumber="yes", flightNumber="AA100", ataSystemCode="32"),
        files=files,
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    report = resp.json()["data"]
    assert re.fullmatch(r"SDR\d{4}", report["controlNumber"])
    assert report["flightNumber"] == "AA100"
    # the ATA code is only kept when the flag is set
    assert report["ataSystemCode"] is None
    assert report["hasAttachments"] is True

    attachment_id = report["attachments"][0]["id"]
    download = client.get(f"/api/sdr-reports/attachments/{attachment_id}", headers=headers)
    assert download.status_code == 200
    assert download.content == b"\xff\xd8\xff"

    resp = client.delete(f"/api/sdr-reports/{report['id']}", headers=headers)
    assert resp.status_code == 200
    assert client.get(f"/api/sdr-reports/{report['id']}", headers=headers).status_code == 404


def test_sdr_missing_fields(client):
    headers, _ = ensure_auth_headers(client)
    resp = client.post("/api/sdr-reports", data={"reportTitle": "Only a title"}, headers=headers)
    assert resp.status_code == 400


def sms_form(**overrides):
    form = {
        "date": "2024-02-20",
        "reportTitle": "Ramp hazard",
        "reportDescription": "Loose FOD near gate 4",
    }
    form.update(overrides)
    return form


def test_sms_report_numbers_increase(client):
    headers, _ = ensure_auth_headers(client)
    first = client.post("/api/sms-reports", data=sms_form(), headers=headers).json()["data"]
    second = client.post("/api/sms-reports", data=sms_form(), headers=headers).json()["data"]
    first_n = int(first["reportNumber"][3:])
    second_n = int(second["reportNumber"][3:])
    assert first["reportNumber"].startswith("sms")
    assert second_n == first_n + 1
    assert len(first["reportNumber"]) >= 5


def test_sms_report_anonymous_submission(client):
    client.cookies.clear()
    resp = client.post("/api/sms-reports", data=sms_form())
    assert resp.status_code == 200
    assert resp.json()["data"]["reporterName"] is None


def test_sms_report_emails_reporter(client):
    headers, _ = ensure_auth_headers(client)
    resp = client.post(
        "/api/sms-reports",
        data=sms_form(reporterName="Sam", reporterEmail="sam@example.com"),
        headers=headers,
    )
    assert resp.status_code == 200
    number = resp.json()["data"]["reportNumber"]
    sent = [m for m in app.state.mailer.outbox if m[0] == "sam@example.com"]
    assert sent
    assert number in sent[-1][1]

    actions = client.get(
        "/api/user-activity", params={"resourceType": "SMS_REPORT"}, headers=headers
    ).json()["activities"]
    assert actions[0]["action"] == "ADDED_SMS_REPORT"


def test_next_report_number_ignores_malformed(db_session):
    from mrologix import models

    db_session.add_all(
        [
            models.SMSReport(
                report_number=number,
                date=models.utcnow(),
                report_title="t",
                report_description="d",
            )
            for number in ("sms998", "legacy-7")
        ]
    )
    db_session.commit()
    assert sms_reports.next_report_number(db_session) == "sms999"
