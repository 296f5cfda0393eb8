"""
Bank of hours.

Punches, approved vacations and approved medical certificates are turned
into one entry per calendar day (expected, worked, overtime and owed
hours), and the entries are summed into a balance. Everything here is a
pure function of its arguments; the callers fetch the rows.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import CREDIT_OFF_DAY_WORK
from ..models import RequestStatus, TimeRecordType
from .schedule import ResolvedSchedule, resolve_schedule

logger = logging.getLogger(__name__)

# Day notes are shown verbatim by the web client
NOTE_JUSTIFIED = "Ausência Justificada"
NOTE_VACATION = "Férias"
NOTE_MEDICAL_CERTIFICATE = "Atestado Médico"
NOTE_ABSENT = "Falta"
NOTE_NON_WORK_DAY = "Dia não útil"
NOTE_INCOMPLETE = "Registro incompleto"
NOTE_PUNCHES_IGNORED = "Batidas desconsideradas"
NOTE_INVALID_IGNORED = "Registro inválido desconsiderado"
NOTE_MISSING = {
    TimeRecordType.ENTRY: "Entrada não registrada",
    TimeRecordType.LUNCH_START: "Saída para almoço não registrada",
    TimeRecordType.LUNCH_END: "Retorno do almoço não registrado",
    TimeRecordType.EXIT: "Saída não registrada",
}

WORK_PUNCHES = (
    TimeRecordType.ENTRY,
    TimeRecordType.LUNCH_START,
    TimeRecordType.LUNCH_END,
    TimeRecordType.EXIT,
)


class BankHoursValidationError(ValueError):
    pass


class DayStatus(str, Enum):
    WORKED = "worked"
    ABSENT = "absent"
    JUSTIFIED = "justified"
    VACATION = "vacation"


@dataclass
class DayClassification:
    day: date
    status: DayStatus
    punches: Dict[TimeRecordType, datetime] = field(default_factory=dict)
    segments: List[Tuple[datetime, datetime]] = field(default_factory=list)
    is_complete: bool = True
    notes: List[str] = field(default_factory=list)
    # Set when a lunch was taken but only one of its punches exists
    deduct_lunch: bool = False


@dataclass(frozen=True)
class DailyEntry:
    day: date
    status: DayStatus
    expected_seconds: int = 0
    worked_seconds: int = 0
    overtime_seconds: int = 0
    owed_seconds: int = 0
    is_complete: bool = True
    notes: Tuple[str, ...] = ()
    late_arrival: bool = False
    early_departure: bool = False

    @property
    def expected_hours(self) -> float:
        return self.expected_seconds / 3600

    @property
    def worked_hours(self) -> float:
        return self.worked_seconds / 3600

    @property
    def overtime_hours(self) -> float:
        return self.overtime_seconds / 3600

    @property
    def owed_hours(self) -> float:
        return self.owed_seconds / 3600

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "status": self.status.value,
            "expectedHours": self.expected_hours,
            "workedHours": self.worked_hours,
            "overtimeHours": self.overtime_hours,
            "owedHours": self.owed_hours,
            "isComplete": self.is_complete,
            "lateArrival": self.late_arrival,
            "earlyDeparture": self.early_departure,
            "notes": list(self.notes),
        }


@dataclass(frozen=True)
class BalanceSummary:
    total_expected_seconds: int = 0
    total_worked_seconds: int = 0
    total_overtime_seconds: int = 0
    total_owed_seconds: int = 0

    @property
    def total_overtime_hours(self) -> float:
        return self.total_overtime_seconds / 3600

    @property
    def total_owed_hours(self) -> float:
        return self.total_owed_seconds / 3600

    @property
    def balance_hours(self) -> float:
        return self.total_overtime_hours - self.total_owed_hours

    @property
    def total_expected_hours(self) -> float:
        return self.total_expected_seconds / 3600

    @property
    def total_worked_hours(self) -> float:
        return self.total_worked_seconds / 3600

    def to_dict(self) -> dict:
        return {
            "totalOvertimeHours": self.total_overtime_hours,
            "totalOwedHours": self.total_owed_hours,
            "balanceHours": self.balance_hours,
            "totalExpectedHours": self.total_expected_hours,
            "totalWorkedHours": self.total_worked_hours,
        }


# ------------------------------------------
# DAILY PUNCH AGGREGATOR
# ------------------------------------------
def group_by_day(records: Iterable) -> Dict[date, list]:
    """Bucket records by the calendar date shown on their (local) timestamp."""
    days = defaultdict(list)
    for record in records:
        days[record.timestamp.date()].append(record)
    return days


def covers(period, day: date) -> bool:
    """True when an APPROVED vacation or certificate includes ``day``."""
    if _value(period.status) != RequestStatus.APPROVED.value:
        return False
    return _as_date(period.start_date) <= day <= _as_date(period.end_date)


def aggregate_day(records: Iterable, day: date, vacations: Iterable = (), certificates: Iterable = ()) -> DayClassification:
    notes = []
    valid = []
    for record in records:
        if record.timestamp.date() != day:
            continue
        if record.is_valid is False:
            if NOTE_INVALID_IGNORED not in notes:
                notes.append(NOTE_INVALID_IGNORED)
            continue
        valid.append(record)
    valid.sort(key=lambda r: r.timestamp)

    # Earliest record of each type wins
    punches = {}
    for record in valid:
        try:
            record_type = TimeRecordType(_value(record.type))
        except ValueError:
            logger.warning(f"Unknown time record type {record.type!r} on {day}")
            continue
        punches.setdefault(record_type, record.timestamp)

    has_work_punches = any(t in punches for t in WORK_PUNCHES)

    if TimeRecordType.ABSENCE_JUSTIFIED in punches:
        status = DayStatus.JUSTIFIED
        notes.append(NOTE_JUSTIFIED)
    elif any(covers(v, day) for v in vacations):
        status = DayStatus.VACATION
        notes.append(NOTE_VACATION)
    elif any(covers(c, day) for c in certificates):
        status = DayStatus.JUSTIFIED
        notes.extend([NOTE_JUSTIFIED, NOTE_MEDICAL_CERTIFICATE])
    elif TimeRecordType.ENTRY in punches:
        return _worked_day(day, punches, notes)
    else:
        status = DayStatus.ABSENT
        if has_work_punches:
            notes.append(NOTE_MISSING[TimeRecordType.ENTRY])
        return DayClassification(day, status, punches=punches, is_complete=not has_work_punches, notes=notes)

    if has_work_punches:
        notes.append(NOTE_PUNCHES_IGNORED)
    return DayClassification(day, status, punches=punches, notes=notes)


def _worked_day(day: date, punches: Dict[TimeRecordType, datetime], notes: List[str]) -> DayClassification:
    entry = punches.get(TimeRecordType.ENTRY)
    lunch_start = punches.get(TimeRecordType.LUNCH_START)
    lunch_end = punches.get(TimeRecordType.LUNCH_END)
    exit_ = punches.get(TimeRecordType.EXIT)

    segments = []
    deduct_lunch = False
    if lunch_start is None and lunch_end is None and exit_ is not None:
        # No lunch registered at all: the day is one stretch
        segments.append((entry, exit_))
    elif (lunch_start is None or lunch_end is None) and exit_ is not None:
        # Half a lunch pair: ENTRY to EXIT less the scheduled lunch
        segments.append((entry, exit_))
        deduct_lunch = True
    else:
        if lunch_start is not None:
            segments.append((entry, lunch_start))
        if lunch_end is not None and exit_ is not None:
            segments.append((lunch_end, exit_))

    missing = [t for t in WORK_PUNCHES if t not in punches]
    for punch_type in missing:
        notes.append(NOTE_MISSING[punch_type])
    if missing:
        notes.append(NOTE_INCOMPLETE)

    return DayClassification(
        day,
        DayStatus.WORKED,
        punches=punches,
        segments=[(s, e) for s, e in segments if e > s],
        is_complete=not missing,
        notes=notes,
        deduct_lunch=deduct_lunch,
    )


# ------------------------------------------
# HOURS CALCULATOR
# ------------------------------------------
def compute_day(classification: DayClassification, schedule: ResolvedSchedule,
                credit_off_day_work: bool = CREDIT_OFF_DAY_WORK) -> DailyEntry:
    notes = tuple(classification.notes)
    status = classification.status

    if status in (DayStatus.JUSTIFIED, DayStatus.VACATION):
        return DailyEntry(classification.day, status, is_complete=classification.is_complete, notes=notes)

    worked = sum(_seconds(end - start) for start, end in classification.segments)
    if classification.deduct_lunch and schedule.lunch_start and schedule.lunch_end:
        worked = max(0, worked - _seconds(schedule.lunch_end - schedule.lunch_start))

    if not schedule.is_work_day:
        notes += (NOTE_NON_WORK_DAY,)
        if credit_off_day_work and worked:
            return DailyEntry(
                classification.day, status,
                worked_seconds=worked, overtime_seconds=worked,
                is_complete=classification.is_complete, notes=notes,
            )
        return DailyEntry(classification.day, status, is_complete=classification.is_complete, notes=notes)

    expected = schedule.expected_seconds

    if status == DayStatus.ABSENT:
        return DailyEntry(
            classification.day, status,
            expected_seconds=expected, owed_seconds=expected,
            is_complete=classification.is_complete, notes=notes + (NOTE_ABSENT,),
        )

    overtime = owed = 0
    tolerance = schedule.tolerance_seconds
    if worked > expected + tolerance:
        overtime = worked - expected
    elif worked < expected - tolerance:
        owed = expected - worked

    entry_at = classification.punches.get(TimeRecordType.ENTRY)
    exit_at = classification.punches.get(TimeRecordType.EXIT)
    late = bool(entry_at and schedule.expected_start and _seconds(entry_at - schedule.expected_start) > tolerance)
    early = bool(exit_at and schedule.expected_end and _seconds(schedule.expected_end - exit_at) > tolerance)

    return DailyEntry(
        classification.day, status,
        expected_seconds=expected,
        worked_seconds=worked,
        overtime_seconds=overtime,
        owed_seconds=owed,
        is_complete=classification.is_complete,
        notes=notes,
        late_arrival=late,
        early_departure=early,
    )


# ------------------------------------------
# BALANCE ACCUMULATOR
# ------------------------------------------
def accumulate(entries: Iterable[DailyEntry]) -> BalanceSummary:
    expected = worked = overtime = owed = 0
    for entry in entries:
        expected += entry.expected_seconds
        worked += entry.worked_seconds
        overtime += entry.overtime_seconds
        owed += entry.owed_seconds
    return BalanceSummary(expected, worked, overtime, owed)


def period_statistics(entries: Iterable[DailyEntry]) -> dict:
    """Attendance counters for a run of daily entries."""
    entries = list(entries)
    present = [e for e in entries if e.status == DayStatus.WORKED]
    absent = [e for e in entries if e.status == DayStatus.ABSENT and e.expected_seconds > 0]
    worked = sum(e.worked_seconds for e in present)
    return {
        "totalDays": len(entries),
        "presentDays": len(present),
        "absentDays": len(absent),
        "lateArrivals": sum(1 for e in present if e.late_arrival),
        "earlyDepartures": sum(1 for e in present if e.early_departure),
        "averageHoursPerDay": round(worked / len(present) / 3600, 2) if present else 0,
    }


# ------------------------------------------
# PERIOD
# ------------------------------------------
def compute_bank_hours(employee, records: Iterable, vacations: Iterable, certificates: Iterable,
                       start_date: Optional[date], end_date: Optional[date],
                       today: Optional[date] = None,
                       credit_off_day_work: bool = CREDIT_OFF_DAY_WORK) -> Tuple[BalanceSummary, List[DailyEntry]]:
    """
    Daily entries and their totals for ``employee`` between two dates (inclusive).

    The period never starts before the hire date and never runs past
    ``today``; an empty period yields zero totals.
    """
    if employee is None:
        raise BankHoursValidationError("Employee is required")
    if start_date is None or end_date is None:
        raise BankHoursValidationError("Start date and end date are required")
    start_date, end_date = _as_date(start_date), _as_date(end_date)
    if start_date > end_date:
        raise BankHoursValidationError("Start date must not be after end date")

    hire_date = getattr(employee, "hire_date", None)
    if hire_date is not None:
        start_date = max(start_date, _as_date(hire_date))
    if today is not None:
        end_date = min(end_date, today)

    vacations = list(vacations)
    certificates = list(certificates)
    by_day = group_by_day(records)

    entries = []
    day = start_date
    while day <= end_date:
        classification = aggregate_day(by_day.get(day, ()), day, vacations, certificates)
        entries.append(compute_day(classification, resolve_schedule(employee, day), credit_off_day_work))
        day += timedelta(days=1)

    return accumulate(entries), entries


def _seconds(delta: timedelta) -> int:
    return int(round(delta.total_seconds()))


def _as_date(value) -> date:
    return value.date() if isinstance(value, datetime) else value


def _value(value):
    return value.value if isinstance(value, Enum) else value
