from datetime import date, datetime, time

from ponto.models import TimeRecord


def submit(client, headers, start="2025-03-10", end="2025-03-12", type="MEDICAL"):
    return client.post(
        "/api/medical-certificates",
        headers=headers,
        data={"type": type, "startDate": start, "endDate": end, "description": "Flu"},
        files={"file": ("atestado.pdf", b"%PDF-1.4 fake", "application/pdf")},
    )


def test_submit_certificate(client, employee, auth_headers):
    response = submit(client, auth_headers(employee))

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "PENDING"
    assert data["days"] == 3
    assert data["fileName"] == "atestado.pdf"
    assert data["fileUrl"].startswith("/media/certificates/")


def test_submit_rejects_bad_input(client, employee, auth_headers):
    headers = auth_headers(employee)
    assert submit(client, headers, type="HANGOVER").status_code == 400
    assert submit(client, headers, start="2025-03-12", end="2025-03-10").status_code == 400


def test_list_own_certificates(client, employee, make_employee, auth_headers):
    submit(client, auth_headers(employee))
    submit(client, auth_headers(make_employee()))

    response = client.get("/api/medical-certificates/my", headers=auth_headers(employee))
    assert len(response.json()["data"]) == 1


def test_cancel_own_pending_certificate(client, employee, make_employee, auth_headers):
    created = submit(client, auth_headers(employee)).json()["data"]

    other = make_employee()
    assert client.delete(f"/api/medical-certificates/{created['id']}", headers=auth_headers(other)).status_code == 403

    response = client.delete(f"/api/medical-certificates/{created['id']}", headers=auth_headers(employee))
    assert response.json()["data"]["status"] == "CANCELLED"


def test_approval_justifies_each_covered_day(client, db, employee, hr, auth_headers):
    db.add(TimeRecord(user_id=employee.user_id, employee_id=employee.id, type="ABSENCE_JUSTIFIED",
                      timestamp=datetime.combine(date(2025, 3, 11), time(8, 0)), is_valid=True))
    db.commit()
    created = submit(client, auth_headers(employee)).json()["data"]

    response = client.put(f"/api/medical-certificates/{created['id']}/approve", headers=auth_headers(hr))

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "APPROVED"
    absences = db.query(TimeRecord).filter(
        TimeRecord.user_id == employee.user_id,
        TimeRecord.type == "ABSENCE_JUSTIFIED"
    ).order_by(TimeRecord.timestamp).all()
    assert [a.timestamp for a in absences] == [
        datetime(2025, 3, 10, 8, 0),
        datetime(2025, 3, 11, 8, 0),
        datetime(2025, 3, 12, 8, 0),
    ]

    bank = client.get(
        "/api/time-records/my-records/bank-hours",
        headers=auth_headers(employee),
        params={"startDate": "2025-03-10", "endDate": "2025-03-12"},
    ).json()["data"]
    assert bank["totalOwedHours"] == 0


def test_reject_requires_reason(client, employee, hr, auth_headers):
    created = submit(client, auth_headers(employee)).json()["data"]

    assert client.put(f"/api/medical-certificates/{created['id']}/reject",
                      headers=auth_headers(hr), json={}).status_code == 400

    response = client.put(f"/api/medical-certificates/{created['id']}/reject",
                          headers=auth_headers(hr), json={"reason": "Illegible"})
    assert response.json()["data"]["status"] == "REJECTED"
    assert response.json()["data"]["rejectionReason"] == "Illegible"


def test_staff_lists_by_status(client, employee, hr, auth_headers):
    submit(client, auth_headers(employee))

    response = client.get("/api/medical-certificates", headers=auth_headers(hr), params={"status": "PENDING"})
    assert len(response.json()["data"]) == 1
    assert client.get("/api/medical-certificates", headers=auth_headers(employee)).status_code == 403
