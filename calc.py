"""Work-hours accounting: leave policy, working days, daily and monthly totals.

Everything here is pure. Holidays, records and "today" are always passed in.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import date

from models import CalculationResult, LeaveType, MonthlySummary, NO_LEAVE, WorkRecord
from utils import (
    date_key,
    format_seconds_to_clock,
    month_days,
    normalize_clock,
    parse_time_to_seconds,
)

LEAVE_HOURS: dict[LeaveType, int] = {
    LeaveType.NONE: 0,
    LeaveType.FULL_DAY: 8,
    LeaveType.SIX_HOURS: 6,
    LeaveType.FOUR_HOURS: 4,
    LeaveType.TWO_HOURS: 2,
    LeaveType.HALF_DAY: 4,
}

MAX_LEAVE_HOURS = 8
REQUIRED_DAY_SECONDS = 8 * 3600

# Unpaid lunch window, seconds of day [12:00:00, 13:00:00)
LUNCH_START = 12 * 3600
LUNCH_END = 13 * 3600


# --- Leave policy ---


def _leave_sum(tags: Iterable[LeaveType]) -> int:
    return sum(LEAVE_HOURS[t] for t in set(tags))


def total_leave_hours(tags: Iterable[LeaveType]) -> int:
    """Hours of leave for a day, capped at MAX_LEAVE_HOURS."""
    return min(MAX_LEAVE_HOURS, _leave_sum(tags))


def can_add_leave(current: Iterable[LeaveType], tag: LeaveType) -> bool:
    """Whether selecting `tag` keeps the day within the leave cap."""
    if tag is LeaveType.NONE:
        return True
    selected = {t for t in current if t is not LeaveType.NONE}
    if tag in selected:
        return True
    return _leave_sum(selected) + LEAVE_HOURS[tag] <= MAX_LEAVE_HOURS


def toggle_leave(current: tuple[LeaveType, ...], tag: LeaveType) -> tuple[LeaveType, ...]:
    """Selection after the user presses `tag`. Over-cap additions are ignored."""
    if tag is LeaveType.NONE:
        return NO_LEAVE

    selected = [t for t in current if t is not LeaveType.NONE]
    if tag in selected:
        selected.remove(tag)
        return tuple(selected) if selected else NO_LEAVE

    if not can_add_leave(selected, tag):
        return current
    return tuple(selected + [tag])


# --- Working days ---


def is_working_day(day: date, holidays: Mapping[str, str]) -> bool:
    """Weekdays that are not in the holiday map."""
    if day.weekday() >= 5:
        return False
    return date_key(day) not in holidays


# --- Daily ---


def daily_worked_seconds(check_in: str, check_out: str, leave_types: Iterable[LeaveType]) -> int:
    """Worked seconds for one day: leave plus attendance minus the lunch overlap.

    Attendance only counts when both times are present; a day with just a
    check-in is still in progress and contributes its leave only. Times given
    in the wrong order are swapped.
    """
    worked = total_leave_hours(leave_types) * 3600

    if check_in and check_out:
        start = parse_time_to_seconds(check_in)
        end = parse_time_to_seconds(check_out)
        if start > end:
            start, end = end, start

        duration = end - start
        overlap = min(end, LUNCH_END) - max(start, LUNCH_START)
        if overlap > 0:
            duration -= overlap
        worked += max(0, duration)

    return worked


def finalize_record(record: WorkRecord) -> WorkRecord:
    """Apply the commit rules to an edited record.

    A day with leave drops its check-in/check-out; otherwise the times are
    zero-padded. The cached result_time is recomputed either way.
    """
    if record.has_leave:
        check_in, check_out = "", ""
    else:
        check_in, check_out = normalize_clock(record.check_in), normalize_clock(record.check_out)

    leave_types = record.leave_types or NO_LEAVE
    seconds = daily_worked_seconds(check_in, check_out, leave_types)
    return replace(
        record,
        check_in=check_in,
        check_out=check_out,
        leave_types=leave_types,
        result_time=format_seconds_to_clock(seconds),
    )


# --- Monthly ---


def monthly_stats(
    year: int,
    month: int,
    records: Mapping[str, WorkRecord],
    holidays: Mapping[str, str],
    today: date,
) -> CalculationResult:
    """Aggregate a month of records against its working days.

    Only working days on or after `today` count as remaining.
    """
    today_key = date_key(today)

    total_required = 0
    total_worked = 0
    working_days = 0
    remaining_days = 0

    for day in month_days(year, month):
        key = date_key(day)

        if is_working_day(day, holidays):
            working_days += 1
            total_required += REQUIRED_DAY_SECONDS
            if key >= today_key:
                remaining_days += 1

        record = records.get(key)
        if record is not None:
            leave_types = record.leave_types or NO_LEAVE
            total_worked += daily_worked_seconds(record.check_in, record.check_out, leave_types)

    deficit = max(0, total_required - total_worked)
    avg = deficit // remaining_days if remaining_days > 0 else 0

    return CalculationResult(
        total_required_seconds=total_required,
        total_worked_seconds=total_worked,
        total_working_days=working_days,
        remaining_working_days=remaining_days,
        avg_daily_required_seconds=avg,
    )


def build_summary(result: CalculationResult, updated_at: int) -> MonthlySummary:
    """Formatted snapshot of a month's stats for backups."""
    return MonthlySummary(
        total_working_days=result.total_working_days,
        remaining_working_days=result.remaining_working_days,
        required_time=format_seconds_to_clock(result.total_required_seconds),
        worked_time=format_seconds_to_clock(result.total_worked_seconds),
        avg_target_time=format_seconds_to_clock(result.avg_daily_required_seconds),
        updated_at=updated_at,
    )
