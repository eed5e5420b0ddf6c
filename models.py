from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class LeaveType(str, Enum):
    NONE = "none"
    FULL_DAY = "8H"
    SIX_HOURS = "6H"
    FOUR_HOURS = "4H"
    TWO_HOURS = "2H"
    HALF_DAY = "halfday"

    @property
    def label(self) -> str:
        return LEAVE_LABELS[self]


LEAVE_LABELS = {
    LeaveType.NONE: "None",
    LeaveType.FULL_DAY: "Annual",
    LeaveType.SIX_HOURS: "6h",
    LeaveType.FOUR_HOURS: "4h",
    LeaveType.TWO_HOURS: "2h",
    LeaveType.HALF_DAY: "Half",
}

NO_LEAVE = (LeaveType.NONE,)


def _text_field(value: Any) -> str:
    # Times are strings; anything else in stored data is treated as unset.
    return value if isinstance(value, str) else ""


def coerce_leave_types(data: dict[str, Any]) -> tuple[LeaveType, ...]:
    """Read leave tags from a stored record, accepting the legacy single-tag shape."""
    raw = data.get("leaveTypes")
    if not isinstance(raw, list) or not raw:
        legacy = data.get("leaveType")
        raw = [legacy] if legacy else []

    tags: list[LeaveType] = []
    for value in raw:
        try:
            tag = LeaveType(value)
        except ValueError:
            continue
        if tag not in tags:
            tags.append(tag)

    real = [t for t in tags if t is not LeaveType.NONE]
    return tuple(real) if real else NO_LEAVE


@dataclass(frozen=True)
class WorkRecord:
    check_in: str = ""
    check_out: str = ""
    leave_types: tuple[LeaveType, ...] = NO_LEAVE
    result_time: str | None = None

    @property
    def has_leave(self) -> bool:
        return any(t is not LeaveType.NONE for t in self.leave_types)

    @property
    def is_blank(self) -> bool:
        return not self.check_in and not self.check_out and not self.has_leave

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "checkIn": self.check_in,
            "checkOut": self.check_out,
            "leaveTypes": [t.value for t in self.leave_types],
        }
        if self.result_time is not None:
            data["resultTime"] = self.result_time
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkRecord:
        result_time = data.get("resultTime")
        return cls(
            check_in=_text_field(data.get("checkIn")),
            check_out=_text_field(data.get("checkOut")),
            leave_types=coerce_leave_types(data),
            result_time=result_time if isinstance(result_time, str) else None,
        )


@dataclass(frozen=True)
class CalculationResult:
    total_required_seconds: int
    total_worked_seconds: int
    total_working_days: int
    remaining_working_days: int
    avg_daily_required_seconds: int

    @property
    def deficit_seconds(self) -> int:
        """Seconds still needed to reach the month's requirement."""
        return max(0, self.total_required_seconds - self.total_worked_seconds)


@dataclass(frozen=True)
class MonthlySummary:
    total_working_days: int
    remaining_working_days: int
    required_time: str
    worked_time: str
    avg_target_time: str
    updated_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalWorkingDays": self.total_working_days,
            "remainingWorkingDays": self.remaining_working_days,
            "requiredTime": self.required_time,
            "workedTime": self.worked_time,
            "avgTargetTime": self.avg_target_time,
            "updatedAt": self.updated_at,
        }


@dataclass
class Config:
    holiday_country: str = "KR"
    cloud_url: str = ""
    cloud_user: str = ""
    cloud_passphrase: str = ""
    cloud_auth_token: str = ""

    @property
    def cloud_enabled(self) -> bool:
        return bool(self.cloud_url and self.cloud_user and self.cloud_passphrase)
