import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Employee, MedicalCertificate, TimeRecord, TimeRecordType, User, Vacation
from ..schemas import ReasonRequest
from ..serializers import time_record_to_dict
from ..utils.auth import STAFF_ROLES, get_current_employee, get_current_user, role_required
from ..utils.bank_hours import BankHoursValidationError, aggregate_day, compute_day, period_statistics
from ..utils.clock import local_now, local_today, parse_date_param, parse_datetime_param, parse_end_param
from ..utils.geofence import validate_location
from ..utils.records import approved_overlapping, employee_bank_hours, records_between, records_on
from ..utils.schedule import resolve_schedule
from ..utils.storage import save_upload

logger = logging.getLogger(__name__)

router = APIRouter()

PUNCH_TYPES = [
    TimeRecordType.ENTRY.value,
    TimeRecordType.LUNCH_START.value,
    TimeRecordType.LUNCH_END.value,
    TimeRecordType.EXIT.value,
    TimeRecordType.BREAK_START.value,
    TimeRecordType.BREAK_END.value,
]

# Punch that has to exist earlier the same day
REQUIRED_BEFORE = {
    TimeRecordType.LUNCH_START.value: (TimeRecordType.ENTRY.value, "Punch ENTRY before LUNCH_START."),
    TimeRecordType.LUNCH_END.value: (TimeRecordType.LUNCH_START.value, "Punch LUNCH_START before LUNCH_END."),
    TimeRecordType.EXIT.value: (TimeRecordType.LUNCH_END.value, "Punch LUNCH_END before EXIT."),
}


def _parse_coordinate(value: Optional[str]) -> Optional[float]:
    if value is None or str(value).strip() == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _day_entry(db: Session, employee: Employee, day):
    records = records_on(db, employee.user_id, day)
    vacations = approved_overlapping(db, Vacation, employee.user_id, day, day)
    certificates = approved_overlapping(db, MedicalCertificate, employee.user_id, day, day)
    classification = aggregate_day(records, day, vacations, certificates)
    return compute_day(classification, resolve_schedule(employee, day))


# ------------------------------------------
# PUNCH
# ------------------------------------------
@router.post("/punch", status_code=status.HTTP_201_CREATED)
async def punch(
    type: str = Form(...),
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    observation: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db)
):
    if type not in PUNCH_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid time record type.")

    now = local_now()
    today_records = records_on(db, current_user.id, now.date())
    today_types = {record.type for record in today_records}

    if type in today_types:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"A {type} record already exists for today."
        )

    if type in REQUIRED_BEFORE:
        required, message = REQUIRED_BEFORE[type]
        if required not in today_types:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    lat = _parse_coordinate(latitude)
    lng = _parse_coordinate(longitude)
    location_valid, location_reason = True, ""
    if lat is not None and lng is not None and not employee.is_remote:
        validation = validate_location(lat, lng, employee.allowed_locations)
        location_valid, location_reason = validation["isValid"], validation["reason"]

    photo_url = None
    if photo is not None and photo.filename:
        photo_url = save_upload(photo, "photos", f"user{current_user.id}")

    record = TimeRecord(
        user_id=current_user.id,
        employee_id=employee.id,
        type=type,
        timestamp=now,
        latitude=lat,
        longitude=lng,
        photo_url=photo_url,
        observation=observation or None,
        is_valid=location_valid,
        reason=None if location_valid else location_reason,
    )
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"A {type} record already exists for today."
        )
    db.refresh(record)
    logger.info(f"User {current_user.id} punched {type} at {now.isoformat()} (valid location: {location_valid})")

    work_hours = None
    if type == TimeRecordType.EXIT.value:
        work_hours = _day_entry(db, employee, now.date()).to_dict()

    return {
        "success": True,
        "data": {
            "timeRecord": time_record_to_dict(record),
            "workHours": work_hours,
            "locationValid": location_valid,
            "locationReason": location_reason,
        },
        "message": "Time record registered successfully",
    }


# ------------------------------------------
# OWN RECORDS
# ------------------------------------------
@router.get("/my-records/today")
async def get_today_records(
    current_user: User = Depends(get_current_user),
    employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db)
):
    today = local_today()
    records = records_on(db, current_user.id, today)
    return {
        "success": True,
        "data": {
            "records": [time_record_to_dict(r) for r in records],
            "summary": _day_entry(db, employee, today).to_dict(),
        },
    }


@router.get("/my-records/period")
async def get_records_by_period(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db)
):
    try:
        start = parse_datetime_param(startDate)
        end = parse_end_param(endDate)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid date format.")
    if start is None or end is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Start date and end date are required.")

    records = records_between(db, current_user.id, start, end)
    try:
        summary, days = employee_bank_hours(db, employee, start.date(), end.date())
    except BankHoursValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {
        "success": True,
        "data": {
            "records": [time_record_to_dict(r) for r in records],
            "summary": {**summary.to_dict(), **period_statistics(days)},
            "period": {"startDate": start.isoformat(), "endDate": end.isoformat()},
        },
    }


@router.get("/my-records/bank-hours")
async def get_bank_hours(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    detailed: bool = False,
    employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db)
):
    """Bank of hours since the hire date, or for the requested period."""
    try:
        start = parse_date_param(startDate) or employee.hire_date
        end = parse_date_param(endDate) or local_today()
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid date format.")

    try:
        summary, days = employee_bank_hours(db, employee, start, end)
    except BankHoursValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    data = summary.to_dict()
    data["startDate"] = start.isoformat()
    data["endDate"] = end.isoformat()
    if detailed:
        data["days"] = [day.to_dict() for day in days]
    return {"success": True, "data": data}


# ------------------------------------------
# HR / ADMIN
# ------------------------------------------
@router.get("", dependencies=[Depends(role_required(STAFF_ROLES))])
async def get_all_records(
    page: int = 1,
    limit: int = 20,
    userId: Optional[int] = None,
    employeeId: Optional[int] = None,
    type: Optional[str] = None,
    isValid: Optional[bool] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    db: Session = Depends(get_db)
):
    query = db.query(TimeRecord)
    if userId is not None:
        query = query.filter(TimeRecord.user_id == userId)
    if employeeId is not None:
        query = query.filter(TimeRecord.employee_id == employeeId)
    if type:
        query = query.filter(TimeRecord.type == type)
    if isValid is not None:
        query = query.filter(TimeRecord.is_valid == isValid)
    try:
        start = parse_datetime_param(startDate)
        end = parse_end_param(endDate)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid date format.")
    if start is not None:
        query = query.filter(TimeRecord.timestamp >= start)
    if end is not None:
        query = query.filter(TimeRecord.timestamp <= end)

    page, limit = max(page, 1), max(limit, 1)
    total = query.count()
    records = query.order_by(TimeRecord.timestamp.desc()).offset((page - 1) * limit).limit(limit).all()

    return {
        "success": True,
        "data": [time_record_to_dict(r) for r in records],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit,
        },
    }


@router.get("/{record_id}", dependencies=[Depends(role_required(STAFF_ROLES))])
async def get_record(record_id: int, db: Session = Depends(get_db)):
    record = db.query(TimeRecord).filter(TimeRecord.id == record_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Time record not found.")
    return {"success": True, "data": time_record_to_dict(record)}


@router.put("/{record_id}/validate")
async def validate_record(
    record_id: int,
    current_user: User = Depends(role_required(STAFF_ROLES)),
    db: Session = Depends(get_db)
):
    record = db.query(TimeRecord).filter(TimeRecord.id == record_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Time record not found.")

    record.is_valid = True
    record.reason = None
    record.approved_by = current_user.id
    record.approved_at = local_now()
    db.commit()
    logger.info(f"Time record {record_id} validated by user {current_user.id}")

    return {"success": True, "data": time_record_to_dict(record), "message": "Time record validated"}


@router.put("/{record_id}/invalidate")
async def invalidate_record(
    record_id: int,
    payload: ReasonRequest,
    current_user: User = Depends(role_required(STAFF_ROLES)),
    db: Session = Depends(get_db)
):
    if not payload.reason:
        raise HTTPException(status_code=400, detail="A reason is required to invalidate a record.")

    record = db.query(TimeRecord).filter(TimeRecord.id == record_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Time record not found.")

    record.is_valid = False
    record.reason = payload.reason
    record.approved_by = current_user.id
    record.approved_at = local_now()
    db.commit()
    logger.info(f"Time record {record_id} invalidated by user {current_user.id}")

    return {"success": True, "data": time_record_to_dict(record), "message": "Time record invalidated"}
