"""
Work schedule resolution.

An employee's ``work_schedule`` is stored as JSON::

    {"startTime": "08:00", "endTime": "17:00",
     "lunchStartTime": "12:00", "lunchEndTime": "13:00",
     "workDays": [1, 2, 3, 4, 5], "toleranceMinutes": 10}

``workDays`` counts from 0 = Sunday to 6 = Saturday.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import FrozenSet, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkSchedule:
    start_time: time
    end_time: time
    lunch_start_time: Optional[time]
    lunch_end_time: Optional[time]
    work_days: FrozenSet[int]
    tolerance_minutes: int = 0

    @classmethod
    def from_json(cls, data) -> "WorkSchedule":
        """Build a schedule from its stored JSON form. Raises ValueError on bad input."""
        if not isinstance(data, dict):
            raise ValueError("work schedule must be an object")
        try:
            start = _parse_time(data["startTime"])
            end = _parse_time(data["endTime"])
            work_days = frozenset(int(d) for d in data.get("workDays") or [])
            tolerance = int(data.get("toleranceMinutes") or 0)
        except (KeyError, TypeError) as e:
            raise ValueError(f"invalid work schedule: {e}") from e

        lunch_start = _parse_time(data["lunchStartTime"]) if data.get("lunchStartTime") else None
        lunch_end = _parse_time(data["lunchEndTime"]) if data.get("lunchEndTime") else None
        if (lunch_start is None) != (lunch_end is None):
            raise ValueError("lunch start and end must be given together")

        if end <= start:
            raise ValueError("endTime must be after startTime")
        if lunch_start and not (start <= lunch_start <= lunch_end <= end):
            raise ValueError("lunch break must fall inside the work day")
        if any(d < 0 or d > 6 for d in work_days):
            raise ValueError("workDays must be between 0 (Sunday) and 6 (Saturday)")
        if tolerance < 0:
            raise ValueError("toleranceMinutes cannot be negative")

        return cls(start, end, lunch_start, lunch_end, work_days, tolerance)

    def to_json(self) -> dict:
        return {
            "startTime": self.start_time.strftime("%H:%M"),
            "endTime": self.end_time.strftime("%H:%M"),
            "lunchStartTime": self.lunch_start_time.strftime("%H:%M") if self.lunch_start_time else None,
            "lunchEndTime": self.lunch_end_time.strftime("%H:%M") if self.lunch_end_time else None,
            "workDays": sorted(self.work_days),
            "toleranceMinutes": self.tolerance_minutes,
        }

    @property
    def full_day_seconds(self) -> int:
        """Scheduled day length with the lunch break taken out."""
        total = _seconds_between(self.start_time, self.end_time)
        if self.lunch_start_time and self.lunch_end_time:
            total -= _seconds_between(self.lunch_start_time, self.lunch_end_time)
        return total


@dataclass(frozen=True)
class ResolvedSchedule:
    day: date
    is_work_day: bool
    expected_start: Optional[datetime] = None
    expected_end: Optional[datetime] = None
    lunch_start: Optional[datetime] = None
    lunch_end: Optional[datetime] = None
    tolerance_minutes: int = 0
    expected_seconds: int = 0

    @property
    def tolerance_seconds(self) -> int:
        return self.tolerance_minutes * 60


def js_weekday(day: date) -> int:
    """Weekday number with 0 = Sunday, as used by ``workDays``."""
    return day.isoweekday() % 7


def load_schedule(employee) -> Optional[WorkSchedule]:
    """Return the employee's schedule, or None when it is missing or malformed."""
    data = getattr(employee, "work_schedule", None) if employee is not None else None
    if not data:
        return None
    if isinstance(data, WorkSchedule):
        return data
    try:
        return WorkSchedule.from_json(data)
    except ValueError as e:
        logger.warning(f"Ignoring malformed work schedule for employee {getattr(employee, 'employee_id', '?')}: {e}")
        return None


def resolve_schedule(employee, day: date) -> ResolvedSchedule:
    """
    Expected times for ``employee`` on ``day``.

    Without a usable schedule every day is a non-work day, so no expected
    hours (and therefore no owed hours) are ever produced for the employee.
    """
    schedule = load_schedule(employee)
    if schedule is None or js_weekday(day) not in schedule.work_days:
        return ResolvedSchedule(
            day=day,
            is_work_day=False,
            tolerance_minutes=schedule.tolerance_minutes if schedule else 0,
        )

    return ResolvedSchedule(
        day=day,
        is_work_day=True,
        expected_start=datetime.combine(day, schedule.start_time),
        expected_end=datetime.combine(day, schedule.end_time),
        lunch_start=datetime.combine(day, schedule.lunch_start_time) if schedule.lunch_start_time else None,
        lunch_end=datetime.combine(day, schedule.lunch_end_time) if schedule.lunch_end_time else None,
        tolerance_minutes=schedule.tolerance_minutes,
        expected_seconds=schedule.full_day_seconds,
    )


def _parse_time(value) -> time:
    if isinstance(value, time):
        return value
    return datetime.strptime(str(value).strip(), "%H:%M").time()


def _seconds_between(start: time, end: time) -> int:
    return (end.hour * 3600 + end.minute * 60 + end.second) - (start.hour * 3600 + start.minute * 60 + start.second)
