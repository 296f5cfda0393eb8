from datetime import date, datetime, time

from ponto.models import TimeRecord

WEEK = {"startDate": "2025-03-03", "endDate": "2025-03-07"}


def add_full_day(db, employee, day, exit_hour=17):
    for type, hour in (("ENTRY", 7), ("LUNCH_START", 12), ("LUNCH_END", 13), ("EXIT", exit_hour)):
        db.add(TimeRecord(user_id=employee.user_id, employee_id=employee.id, type=type,
                          timestamp=datetime.combine(day, time(hour, 0)), is_valid=True))
    db.commit()


def test_employees_bank_hours(client, db, make_employee, hr, auth_headers):
    worker = make_employee(name="Ana Souza", department="Operations")
    for day in range(3, 8):
        add_full_day(db, worker, date(2025, 3, day), exit_hour=18)

    response = client.get("/api/bank-hours/employees", headers=auth_headers(hr), params=WEEK)

    assert response.status_code == 200
    rows = response.json()["data"]
    # HR staff are not part of the report
    assert [r["employeeName"] for r in rows] == ["Ana Souza"]
    row = rows[0]
    assert row["overtimeHours"] == 5.0
    assert row["pendingHours"] == 0.0
    assert row["bankHours"] == 5.0
    assert row["totalWorkedHours"] == 50.0
    assert row["totalExpectedHours"] == 45.0
    assert row["actualStartDate"] == "2025-03-03"


def test_actual_start_date_follows_hire_date(client, make_employee, hr, auth_headers):
    make_employee(hire_date=date(2025, 3, 5))

    row = client.get("/api/bank-hours/employees", headers=auth_headers(hr), params=WEEK).json()["data"][0]

    assert row["actualStartDate"] == "2025-03-05"
    assert row["pendingHours"] == 27.0


def test_status_and_text_filters(client, db, make_employee, hr, auth_headers):
    ahead = make_employee(name="Ahead", department="Operations", client="Acme")
    make_employee(name="Behind", department="Finance", client="Globex")
    for day in range(3, 8):
        add_full_day(db, ahead, date(2025, 3, day), exit_hour=18)

    headers = auth_headers(hr)

    def names(**params):
        rows = client.get("/api/bank-hours/employees", headers=headers, params={**WEEK, **params}).json()["data"]
        return [r["employeeName"] for r in rows]

    assert names(status="positive") == ["Ahead"]
    assert names(status="negative") == ["Behind"]
    assert names(status="neutral") == []
    assert names(department="fin") == ["Behind"]
    assert names(client="ACME") == ["Ahead"]
    assert names(department="all") == ["Ahead", "Behind"]


def test_inactive_employees_are_left_out(client, db, make_employee, hr, auth_headers):
    gone = make_employee()
    gone.user.is_active = False
    db.commit()

    assert client.get("/api/bank-hours/employees", headers=auth_headers(hr), params=WEEK).json()["data"] == []


def test_csv_report(client, make_employee, hr, auth_headers):
    make_employee(name="Ana Souza")

    response = client.get("/api/bank-hours/employees/report", headers=auth_headers(hr), params=WEEK)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("Employee ID,Name,CPF")
    assert "Ana Souza" in lines[1]


def test_employee_cannot_read_the_report(client, employee, auth_headers):
    assert client.get("/api/bank-hours/employees", headers=auth_headers(employee)).status_code == 403


def test_lone_start_date_runs_until_today(client, make_employee, hr, auth_headers):
    make_employee()

    row = client.get("/api/bank-hours/employees", headers=auth_headers(hr),
                     params={"startDate": "2025-02-03"}).json()["data"][0]

    assert row["actualStartDate"] == "2025-02-03"


def test_lone_end_date_starts_on_the_first_of_its_month(client, make_employee, hr, auth_headers):
    make_employee()

    row = client.get("/api/bank-hours/employees", headers=auth_headers(hr),
                     params={"endDate": "2025-03-07"}).json()["data"][0]

    assert row["actualStartDate"] == "2025-03-01"
    # Mon 3rd to Fri 7th, nothing punched
    assert row["pendingHours"] == 45.0
