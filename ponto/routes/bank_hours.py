import csv
import io
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Employee, Role, User
from ..utils.bank_hours import BankHoursValidationError
from ..utils.clock import local_today, parse_date_param
from ..utils.records import employee_bank_hours, first_day_of_month, last_day_of_month

logger = logging.getLogger(__name__)

router = APIRouter()

REPORT_COLUMNS = [
    ("employeeId", "Employee ID"),
    ("employeeName", "Name"),
    ("employeeCpf", "CPF"),
    ("department", "Department"),
    ("position", "Position"),
    ("costCenter", "Cost Center"),
    ("client", "Client"),
    ("hireDate", "Hire Date"),
    ("actualStartDate", "Start Date"),
    ("totalWorkedHours", "Worked Hours"),
    ("totalExpectedHours", "Expected Hours"),
    ("overtimeHours", "Overtime Hours"),
    ("pendingHours", "Pending Hours"),
    ("bankHours", "Bank Hours"),
]


def _contains(column, value: Optional[str]):
    """Case-insensitive substring filter; empty and "all" mean no filter."""
    if not value or value == "all":
        return None
    return column.ilike(f"%{value}%")


def _period(startDate: Optional[str], endDate: Optional[str]):
    try:
        start = parse_date_param(startDate)
        end = parse_date_param(endDate)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid date format.")
    if start is None and end is None:
        today = local_today()
        return first_day_of_month(today), last_day_of_month(today)
    # Only the missing bound is filled in
    end = end or local_today()
    start = start or first_day_of_month(end)
    return start, end


def _matches_status(bank_hours: float, wanted: Optional[str]) -> bool:
    if wanted == "positive":
        return bank_hours > 0
    if wanted == "negative":
        return bank_hours < 0
    if wanted == "neutral":
        return bank_hours == 0
    return True


def collect_bank_hours(db: Session, start, end, department=None, costCenter=None, client=None, wanted_status=None):
    """One BankHoursData row per active employee, rounded to one decimal."""
    query = db.query(Employee).join(User, Employee.user_id == User.id).filter(
        User.is_active == True,
        User.role == Role.EMPLOYEE.value
    )
    for condition in (
        _contains(Employee.department, department),
        _contains(Employee.cost_center, costCenter),
        _contains(Employee.client, client),
    ):
        if condition is not None:
            query = query.filter(condition)

    today = local_today()
    rows = []
    for employee in query.order_by(User.name.asc()).all():
        try:
            summary, _ = employee_bank_hours(db, employee, start, end, today=today)
        except BankHoursValidationError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        row = {
            "employeeId": employee.employee_id,
            "employeeName": employee.user.name,
            "employeeCpf": employee.user.cpf,
            "department": employee.department,
            "position": employee.position,
            "costCenter": employee.cost_center,
            "client": employee.client,
            "hireDate": employee.hire_date.isoformat(),
            "actualStartDate": max(start, employee.hire_date).isoformat(),
            "totalWorkedHours": round(summary.total_worked_hours, 1),
            "totalExpectedHours": round(summary.total_expected_hours, 1),
            "bankHours": round(summary.balance_hours, 1),
            "overtimeHours": round(summary.total_overtime_hours, 1),
            "pendingHours": round(summary.total_owed_hours, 1),
            "lastUpdate": today.isoformat(),
        }
        if _matches_status(row["bankHours"], wanted_status):
            rows.append(row)
    return rows


# ------------------------------------------
# BANK OF HOURS PER EMPLOYEE
# ------------------------------------------
@router.get("/employees")
async def get_employees_bank_hours(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    department: Optional[str] = None,
    status: Optional[str] = None,
    costCenter: Optional[str] = None,
    client: Optional[str] = None,
    db: Session = Depends(get_db)
):
    start, end = _period(startDate, endDate)
    rows = collect_bank_hours(db, start, end, department, costCenter, client, status)
    logger.info(f"Bank of hours computed for {len(rows)} employees from {start} to {end}")
    return {"success": True, "data": rows}


# ------------------------------------------
# DOWNLOAD BANK OF HOURS REPORT
# ------------------------------------------
@router.get("/employees/report")
async def download_bank_hours_report(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    department: Optional[str] = None,
    status: Optional[str] = None,
    costCenter: Optional[str] = None,
    client: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Download a CSV report with the same rows as /employees."""
    start, end = _period(startDate, endDate)
    rows = collect_bank_hours(db, start, end, department, costCenter, client, status)

    def generate_csv():
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow([title for _, title in REPORT_COLUMNS])
        for row in rows:
            writer.writerow([row[key] for key, _ in REPORT_COLUMNS])
        yield buffer.getvalue()

    return StreamingResponse(
        generate_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=bank_hours_{start}_{end}.csv"}
    )
