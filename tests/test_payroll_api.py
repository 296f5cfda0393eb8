from datetime import date, datetime, time

from ponto.models import TimeRecord

MARCH = {"month": 3, "year": 2025}


def add_full_day(db, employee, day, exit_hour=17):
    for type, hour in (("ENTRY", 7), ("LUNCH_START", 12), ("LUNCH_END", 13), ("EXIT", exit_hour)):
        db.add(TimeRecord(user_id=employee.user_id, employee_id=employee.id, type=type,
                          timestamp=datetime.combine(day, time(hour, 0)), is_valid=True))
    db.commit()


def test_monthly_payroll(client, db, make_employee, hr, auth_headers):
    worker = make_employee(name="Ana Souza")
    worker.salary = 3500.0
    db.commit()
    for day in range(3, 8):
        add_full_day(db, worker, date(2025, 3, day), exit_hour=18)

    response = client.get("/api/payroll", headers=auth_headers(hr), params=MARCH)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["period"] == {"month": 3, "year": 2025, "monthName": "Março"}
    assert [row["name"] for row in data["employees"]] == ["Ana Souza"]
    row = data["employees"][0]
    assert row["salary"] == 3500.0
    assert row["daysWorked"] == 5
    # March 2025 has 21 weekdays
    assert row["totalWorkingDays"] == 21
    assert row["expectedHours"] == 189.0
    assert row["workedHours"] == 50.0
    assert row["overtimeHours"] == 5.0
    assert row["owedHours"] == 144.0
    assert row["bankHours"] == -139.0
    assert data["totals"] == {
        "totalEmployees": 1,
        "totalSalary": 3500.0,
        "totalWorkedHours": 50.0,
        "totalOvertimeHours": 5.0,
    }


def test_payroll_leaves_out_later_hires_and_filters_department(client, make_employee, hr, auth_headers):
    make_employee(name="Ops", department="Operations")
    make_employee(name="Finance", department="Finance")
    make_employee(name="Newcomer", hire_date=date(2025, 4, 1))

    headers = auth_headers(hr)

    def names(**params):
        data = client.get("/api/payroll", headers=headers, params={**MARCH, **params}).json()["data"]
        return [row["name"] for row in data["employees"]]

    assert names() == ["Finance", "Ops"]
    assert names(department="fin") == ["Finance"]
    assert names(department="all") == ["Finance", "Ops"]


def test_employee_payroll(client, db, employee, hr, auth_headers):
    add_full_day(db, employee, date(2025, 3, 3))

    response = client.get(f"/api/payroll/employees/{employee.id}", headers=auth_headers(hr), params=MARCH)

    assert response.status_code == 200
    row = response.json()["data"]
    assert row["employeeId"] == employee.employee_id
    assert row["daysWorked"] == 1
    assert row["workedHours"] == 9.0


def test_unknown_employee_payroll(client, hr, auth_headers):
    assert client.get("/api/payroll/employees/999", headers=auth_headers(hr), params=MARCH).status_code == 404


def test_invalid_or_future_month_is_rejected(client, hr, auth_headers):
    headers = auth_headers(hr)
    assert client.get("/api/payroll", headers=headers, params={"month": 13, "year": 2025}).status_code == 400
    assert client.get("/api/payroll", headers=headers, params={"month": 1, "year": 2999}).status_code == 400


def test_employee_cannot_read_payroll(client, employee, auth_headers):
    assert client.get("/api/payroll", headers=auth_headers(employee), params=MARCH).status_code == 403
