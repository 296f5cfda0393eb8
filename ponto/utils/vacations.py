from datetime import date, timedelta
from typing import Iterable, Optional

from ..config import VACATION_DAYS_PER_YEAR
from ..models import RequestStatus, VacationType


def add_years(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # 29 February on a non-leap year
        return day.replace(year=day.year + years, day=28)


def full_years_between(start: date, end: date) -> int:
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return max(0, years)


def business_days(start: date, end: date) -> int:
    """Monday to Friday days between two dates, both included."""
    days = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            days += 1
        current += timedelta(days=1)
    return days


def vacation_balance(hire_date: date, vacations: Iterable, today: date,
                     days_per_year: int = VACATION_DAYS_PER_YEAR) -> dict:
    """
    Annual vacation balance.

    Every completed year of service (acquisition period) grants
    ``days_per_year`` days, capped at two periods. Only ANNUAL requests
    consume the balance. The concession period, in which the days must
    be taken, ends one year after the acquisition period.
    """
    years_worked = full_years_between(hire_date, today)
    total_days = min(years_worked * days_per_year, days_per_year * 2)

    used_days = pending_days = 0
    for vacation in vacations:
        if vacation.type != VacationType.ANNUAL.value:
            continue
        if vacation.status == RequestStatus.APPROVED.value:
            used_days += vacation.days
        elif vacation.status == RequestStatus.PENDING.value:
            pending_days += vacation.days

    aquisitive_start = add_years(hire_date, years_worked)
    aquisitive_end = add_years(hire_date, years_worked + 1)
    expires_at: Optional[date] = add_years(hire_date, years_worked + 1) if years_worked >= 1 else None

    return {
        "totalDays": total_days,
        "usedDays": used_days,
        "availableDays": max(0, total_days - used_days),
        "pendingDays": pending_days,
        "nextVacationDate": add_years(hire_date, years_worked + 1).isoformat(),
        "expiresAt": expires_at.isoformat() if expires_at else None,
        "aquisitiveStart": aquisitive_start.isoformat(),
        "aquisitiveEnd": aquisitive_end.isoformat(),
        "concessiveEnd": add_years(aquisitive_end, 1).isoformat(),
    }
