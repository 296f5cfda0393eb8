import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Employee, User
from ..schemas import EmployeeCreate, EmployeeUpdate
from ..serializers import employee_to_dict, user_to_dict
from ..utils.auth import get_password_hash
from ..utils.schedule import WorkSchedule

logger = logging.getLogger(__name__)

router = APIRouter()


def _schedule_json(work_schedule):
    """Validated schedule JSON, or None when no schedule was sent."""
    if work_schedule is None:
        return None
    try:
        return WorkSchedule.from_json(work_schedule.model_dump()).to_json()
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid work schedule: {e}")


def _locations_json(locations):
    if locations is None:
        return None
    return [location.model_dump(exclude_none=True) for location in locations]


# ------------------------------------------
# VIEW EMPLOYEES
# ------------------------------------------
@router.get("")
async def get_employees(
    department: Optional[str] = None,
    isActive: Optional[bool] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    query = db.query(Employee).join(User, Employee.user_id == User.id)
    if department:
        query = query.filter(Employee.department.ilike(f"%{department}%"))
    if isActive is not None:
        query = query.filter(User.is_active == isActive)
    if search:
        query = query.filter(User.name.ilike(f"%{search}%") | Employee.employee_id.ilike(f"%{search}%"))

    employees = query.order_by(User.name.asc()).all()
    return {"success": True, "data": [user_to_dict(employee.user) for employee in employees]}


@router.get("/{employee_id}")
async def get_employee(employee_id: int, db: Session = Depends(get_db)):
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found.")
    return {"success": True, "data": user_to_dict(employee.user)}


# ------------------------------------------
# CREATE / UPDATE EMPLOYEES
# ------------------------------------------
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_employee(payload: EmployeeCreate, db: Session = Depends(get_db)):
    """Create the login user and its employee record together."""
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=400, detail="Email already registered.")
    if payload.cpf and db.query(User).filter(User.cpf == payload.cpf).first():
        raise HTTPException(status_code=400, detail="CPF already registered.")
    if db.query(Employee).filter(Employee.employee_id == payload.employeeId).first():
        raise HTTPException(status_code=400, detail="Employee ID already registered.")

    schedule = _schedule_json(payload.workSchedule)

    user = User(
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        name=payload.name,
        cpf=payload.cpf,
        role=payload.role.value,
        is_active=True,
        is_first_login=True,
    )
    db.add(user)
    db.flush()

    employee = Employee(
        user_id=user.id,
        employee_id=payload.employeeId,
        department=payload.department,
        position=payload.position,
        hire_date=payload.hireDate,
        salary=payload.salary,
        work_schedule=schedule,
        is_remote=payload.isRemote,
        allowed_locations=_locations_json(payload.allowedLocations),
        cost_center=payload.costCenter,
        client=payload.client,
    )
    db.add(employee)
    db.commit()
    db.refresh(user)
    logger.info(f"Employee {payload.employeeId} created for user {user.id}")

    return {"success": True, "data": user_to_dict(user), "message": "Employee created successfully"}


@router.put("/{employee_id}")
async def update_employee(employee_id: int, payload: EmployeeUpdate, db: Session = Depends(get_db)):
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found.")

    changes = payload.model_dump(exclude_unset=True)
    if "workSchedule" in changes:
        employee.work_schedule = _schedule_json(payload.workSchedule)
    if "allowedLocations" in changes:
        employee.allowed_locations = _locations_json(payload.allowedLocations)
    if "name" in changes:
        employee.user.name = payload.name
    if "isActive" in changes:
        employee.user.is_active = payload.isActive

    for field, column in (
        ("department", "department"),
        ("position", "position"),
        ("salary", "salary"),
        ("isRemote", "is_remote"),
        ("costCenter", "cost_center"),
        ("client", "client"),
    ):
        if field in changes:
            setattr(employee, column, changes[field])

    db.commit()
    db.refresh(employee)
    logger.info(f"Employee {employee.employee_id} updated")
    return {"success": True, "data": employee_to_dict(employee), "message": "Employee updated successfully"}
