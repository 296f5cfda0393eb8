from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..models import MedicalCertificate, RequestStatus, TimeRecord, Vacation
from .bank_hours import compute_bank_hours
from .clock import day_bounds, local_today


def records_between(db: Session, user_id: int, start: datetime, end: datetime):
    return db.query(TimeRecord).filter(
        TimeRecord.user_id == user_id,
        TimeRecord.timestamp >= start,
        TimeRecord.timestamp <= end
    ).order_by(TimeRecord.timestamp.asc()).all()


def records_on(db: Session, user_id: int, day: date):
    start, end = day_bounds(day)
    return records_between(db, user_id, start, end)


def approved_overlapping(db: Session, model, user_id: int, start: date, end: date):
    return db.query(model).filter(
        model.user_id == user_id,
        model.status == RequestStatus.APPROVED.value,
        model.start_date <= end,
        model.end_date >= start
    ).all()


def employee_bank_hours(db: Session, employee, start: Optional[date], end: Optional[date], today: Optional[date] = None):
    """
    Fetch everything the bank of hours needs for ``employee`` and compute it.

    ``start`` defaults to the hire date and ``end`` to today.
    """
    today = today or local_today()
    start = start or employee.hire_date
    end = end or today

    if start is not None and end is not None and start <= end:
        first, _ = day_bounds(start)
        _, last = day_bounds(end)
        records = records_between(db, employee.user_id, first, last)
        vacations = approved_overlapping(db, Vacation, employee.user_id, start, end)
        certificates = approved_overlapping(db, MedicalCertificate, employee.user_id, start, end)
    else:
        records, vacations, certificates = [], [], []

    return compute_bank_hours(employee, records, vacations, certificates, start, end, today=today)


def first_day_of_month(day: date) -> date:
    return day.replace(day=1)


def last_day_of_month(day: date) -> date:
    next_month = (day.replace(day=28) + timedelta(days=4)).replace(day=1)
    return next_month - timedelta(days=1)
