import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Employee, Role, User
from ..utils.bank_hours import BankHoursValidationError, DayStatus
from ..utils.clock import local_today
from ..utils.records import employee_bank_hours, last_day_of_month
from ..utils.schedule import resolve_schedule

logger = logging.getLogger(__name__)

router = APIRouter()

MONTH_NAMES = (
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
)


def _month(month: Optional[int], year: Optional[int]):
    today = local_today()
    month = month or today.month
    year = year or today.year
    if month < 1 or month > 12:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Month must be between 1 and 12.")
    first = date(year, month, 1)
    if first > today:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payroll cannot be generated for a future month.")
    return first, last_day_of_month(first)


def payroll_row(db: Session, employee: Employee, first: date, last: date, today: date) -> dict:
    """Salary plus the month's hours for one employee."""
    try:
        summary, days = employee_bank_hours(db, employee, first, last, today=today)
    except BankHoursValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {
        "id": employee.id,
        "employeeId": employee.employee_id,
        "name": employee.user.name,
        "cpf": employee.user.cpf,
        "department": employee.department,
        "position": employee.position,
        "costCenter": employee.cost_center,
        "client": employee.client,
        "hireDate": employee.hire_date.isoformat(),
        "salary": float(employee.salary or 0),
        "daysWorked": sum(1 for day in days if day.status == DayStatus.WORKED),
        "totalWorkingDays": sum(1 for day in days if resolve_schedule(employee, day.day).is_work_day),
        "workedHours": round(summary.total_worked_hours, 1),
        "expectedHours": round(summary.total_expected_hours, 1),
        "overtimeHours": round(summary.total_overtime_hours, 1),
        "owedHours": round(summary.total_owed_hours, 1),
        "bankHours": round(summary.balance_hours, 1),
    }


# ------------------------------------------
# MONTHLY PAYROLL
# ------------------------------------------
@router.get("")
async def get_monthly_payroll(
    month: Optional[int] = None,
    year: Optional[int] = None,
    department: Optional[str] = None,
    db: Session = Depends(get_db)
):
    first, last = _month(month, year)
    query = db.query(Employee).join(User, Employee.user_id == User.id).filter(
        User.is_active == True,
        User.role == Role.EMPLOYEE.value,
        Employee.hire_date <= last
    )
    if department and department != "all":
        query = query.filter(Employee.department.ilike(f"%{department}%"))

    today = local_today()
    rows = [payroll_row(db, employee, first, last, today) for employee in query.order_by(User.name.asc()).all()]
    logger.info(f"Payroll for {first.month}/{first.year} generated for {len(rows)} employees")

    return {
        "success": True,
        "data": {
            "employees": rows,
            "period": {"month": first.month, "year": first.year, "monthName": MONTH_NAMES[first.month - 1]},
            "totals": {
                "totalEmployees": len(rows),
                "totalSalary": round(sum(r["salary"] for r in rows), 2),
                "totalWorkedHours": round(sum(r["workedHours"] for r in rows), 1),
                "totalOvertimeHours": round(sum(r["overtimeHours"] for r in rows), 1),
            },
        },
    }


@router.get("/employees/{employee_id}")
async def get_employee_payroll(
    employee_id: int,
    month: Optional[int] = None,
    year: Optional[int] = None,
    db: Session = Depends(get_db)
):
    first, last = _month(month, year)
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found.")
    return {"success": True, "data": payroll_row(db, employee, first, last, local_today())}
