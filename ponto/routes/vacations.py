import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Employee, RequestStatus, User, Vacation, VacationType
from ..schemas import ReasonRequest, VacationRequest
from ..serializers import vacation_to_dict
from ..utils.auth import STAFF_ROLES, get_current_employee, get_current_user, role_required
from ..utils.clock import local_now, local_today
from ..utils.vacations import business_days, vacation_balance

logger = logging.getLogger(__name__)

router = APIRouter()

OPEN_STATUSES = [RequestStatus.PENDING.value, RequestStatus.APPROVED.value]


def _get_vacation(db: Session, vacation_id: int) -> Vacation:
    vacation = db.query(Vacation).filter(Vacation.id == vacation_id).first()
    if not vacation:
        raise HTTPException(status_code=404, detail="Vacation not found.")
    return vacation


def _paginate(query, page: int, limit: int):
    page, limit = max(page, 1), max(limit, 1)
    total = query.count()
    items = query.order_by(Vacation.created_at.desc(), Vacation.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return items, {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": (total + limit - 1) // limit,
    }


# ------------------------------------------
# EMPLOYEE
# ------------------------------------------
@router.post("/request", status_code=status.HTTP_201_CREATED)
async def request_vacation(
    payload: VacationRequest,
    current_user: User = Depends(get_current_user),
    employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db)
):
    if payload.startDate > payload.endDate:
        raise HTTPException(status_code=400, detail="Start date must be before end date.")
    if payload.startDate <= local_today():
        raise HTTPException(status_code=400, detail="Vacation must start in the future.")

    overlapping = db.query(Vacation).filter(
        Vacation.user_id == current_user.id,
        Vacation.status.in_(OPEN_STATUSES),
        Vacation.start_date <= payload.endDate,
        Vacation.end_date >= payload.startDate
    ).first()
    if overlapping:
        raise HTTPException(status_code=400, detail="There is already a vacation request for this period.")

    days = business_days(payload.startDate, payload.endDate)
    if days == 0:
        raise HTTPException(status_code=400, detail="The period has no business days.")

    if payload.type == VacationType.ANNUAL:
        own = db.query(Vacation).filter(Vacation.user_id == current_user.id).all()
        balance = vacation_balance(employee.hire_date, own, local_today())
        if balance["availableDays"] < days:
            raise HTTPException(
                status_code=400,
                detail=f"Insufficient balance. Available: {balance['availableDays']} days, requested: {days} days."
            )

    vacation = Vacation(
        user_id=current_user.id,
        employee_id=employee.id,
        start_date=payload.startDate,
        end_date=payload.endDate,
        days=days,
        type=payload.type.value,
        status=RequestStatus.PENDING.value,
        reason=payload.reason,
    )
    db.add(vacation)
    db.commit()
    db.refresh(vacation)
    logger.info(f"User {current_user.id} requested {days} vacation days from {payload.startDate}")

    return {"success": True, "data": vacation_to_dict(vacation), "message": "Vacation requested successfully"}


@router.get("/my-vacations")
async def get_my_vacations(
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    year: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(Vacation).filter(Vacation.user_id == current_user.id)
    if status:
        query = query.filter(Vacation.status == status)
    if year:
        query = query.filter(Vacation.start_date >= date(year, 1, 1), Vacation.start_date <= date(year, 12, 31))

    vacations, pagination = _paginate(query, page, limit)
    return {"success": True, "data": [vacation_to_dict(v) for v in vacations], "pagination": pagination}


@router.get("/my-vacations/balance")
async def get_my_balance(
    employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db)
):
    vacations = db.query(Vacation).filter(Vacation.user_id == employee.user_id).all()
    return {"success": True, "data": vacation_balance(employee.hire_date, vacations, local_today())}


@router.put("/{vacation_id}/cancel")
async def cancel_vacation(
    vacation_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    vacation = _get_vacation(db, vacation_id)
    if vacation.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="You can only cancel your own requests.")
    if vacation.status != RequestStatus.PENDING.value:
        raise HTTPException(status_code=400, detail="Only pending requests can be cancelled.")
    if vacation.start_date <= local_today():
        raise HTTPException(status_code=400, detail="Vacations that already started cannot be cancelled.")

    vacation.status = RequestStatus.CANCELLED.value
    db.commit()
    logger.info(f"Vacation {vacation_id} cancelled by user {current_user.id}")
    return {"success": True, "data": vacation_to_dict(vacation), "message": "Vacation cancelled"}


# ------------------------------------------
# HR / ADMIN
# ------------------------------------------
@router.get("", dependencies=[Depends(role_required(STAFF_ROLES))])
async def get_all_vacations(
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    userId: Optional[int] = None,
    db: Session = Depends(get_db)
):
    query = db.query(Vacation)
    if status:
        query = query.filter(Vacation.status == status)
    if userId is not None:
        query = query.filter(Vacation.user_id == userId)

    vacations, pagination = _paginate(query, page, limit)
    return {"success": True, "data": [vacation_to_dict(v) for v in vacations], "pagination": pagination}


@router.get("/pending", dependencies=[Depends(role_required(STAFF_ROLES))])
async def get_pending_vacations(db: Session = Depends(get_db)):
    vacations = db.query(Vacation).filter(
        Vacation.status == RequestStatus.PENDING.value
    ).order_by(Vacation.start_date.asc()).all()
    return {"success": True, "data": [vacation_to_dict(v) for v in vacations]}


@router.put("/{vacation_id}/approve")
async def approve_vacation(
    vacation_id: int,
    current_user: User = Depends(role_required(STAFF_ROLES)),
    db: Session = Depends(get_db)
):
    vacation = _get_vacation(db, vacation_id)
    if vacation.status != RequestStatus.PENDING.value:
        raise HTTPException(status_code=400, detail="Only pending requests can be approved.")

    vacation.status = RequestStatus.APPROVED.value
    vacation.approved_by = current_user.id
    vacation.approved_at = local_now()
    db.commit()
    logger.info(f"Vacation {vacation_id} approved by user {current_user.id}")
    return {"success": True, "data": vacation_to_dict(vacation), "message": "Vacation approved"}


@router.put("/{vacation_id}/reject")
async def reject_vacation(
    vacation_id: int,
    payload: ReasonRequest,
    current_user: User = Depends(role_required(STAFF_ROLES)),
    db: Session = Depends(get_db)
):
    if not payload.reason:
        raise HTTPException(status_code=400, detail="A rejection reason is required.")

    vacation = _get_vacation(db, vacation_id)
    if vacation.status != RequestStatus.PENDING.value:
        raise HTTPException(status_code=400, detail="Only pending requests can be rejected.")

    vacation.status = RequestStatus.REJECTED.value
    vacation.rejection_reason = payload.reason
    vacation.approved_by = current_user.id
    vacation.approved_at = local_now()
    db.commit()
    logger.info(f"Vacation {vacation_id} rejected by user {current_user.id}")
    return {"success": True, "data": vacation_to_dict(vacation), "message": "Vacation rejected"}
