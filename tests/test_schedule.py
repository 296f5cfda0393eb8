from datetime import date, datetime
from types import SimpleNamespace

import pytest

from ponto.utils.schedule import WorkSchedule, js_weekday, load_schedule, resolve_schedule

SCHEDULE = {
    "startTime": "07:00",
    "endTime": "17:00",
    "lunchStartTime": "12:00",
    "lunchEndTime": "13:00",
    "workDays": [1, 2, 3, 4, 5],
    "toleranceMinutes": 10,
}


def test_full_day_excludes_lunch():
    schedule = WorkSchedule.from_json(SCHEDULE)
    assert schedule.full_day_seconds == 9 * 3600


def test_schedule_without_lunch():
    schedule = WorkSchedule.from_json({"startTime": "09:00", "endTime": "15:00", "workDays": [1]})
    assert schedule.full_day_seconds == 6 * 3600
    assert schedule.tolerance_minutes == 0


def test_to_json_round_trips():
    assert WorkSchedule.from_json(SCHEDULE).to_json() == SCHEDULE


@pytest.mark.parametrize("changes", [
    {"endTime": "06:00"},
    {"lunchEndTime": None},
    {"lunchStartTime": "06:00"},
    {"workDays": [7]},
    {"toleranceMinutes": -5},
    {"startTime": "7h"},
])
def test_invalid_schedules_are_rejected(changes):
    with pytest.raises(ValueError):
        WorkSchedule.from_json({**SCHEDULE, **changes})


def test_weekday_numbering_starts_on_sunday():
    assert js_weekday(date(2025, 3, 2)) == 0
    assert js_weekday(date(2025, 3, 3)) == 1
    assert js_weekday(date(2025, 3, 8)) == 6


def test_resolve_work_day():
    employee = SimpleNamespace(employee_id="E1", work_schedule=SCHEDULE)
    resolved = resolve_schedule(employee, date(2025, 3, 3))

    assert resolved.is_work_day
    assert resolved.expected_start == datetime(2025, 3, 3, 7, 0)
    assert resolved.expected_end == datetime(2025, 3, 3, 17, 0)
    assert resolved.expected_seconds == 9 * 3600
    assert resolved.tolerance_seconds == 600


def test_resolve_weekend():
    employee = SimpleNamespace(employee_id="E1", work_schedule=SCHEDULE)
    resolved = resolve_schedule(employee, date(2025, 3, 8))

    assert not resolved.is_work_day
    assert resolved.expected_seconds == 0


def test_malformed_schedule_resolves_to_non_work_day():
    employee = SimpleNamespace(employee_id="E1", work_schedule={"startTime": "bad"})

    assert load_schedule(employee) is None
    assert not resolve_schedule(employee, date(2025, 3, 3)).is_work_day
