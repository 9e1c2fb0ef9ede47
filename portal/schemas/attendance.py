from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime, date
from datetime import date as _date


class AttendanceRecord(BaseModel):
    check_in_at: Optional[datetime] = None
    check_out_at: Optional[datetime] = None
    status: Optional[str] = None

    class Config:
        extra = "ignore"


class AttendanceStatus(BaseModel):
    has_checked_in: bool
    has_checked_out: bool
    has_leave: bool


class AttendanceActions(BaseModel):
    can_check_in: bool
    can_check_out: bool
    can_apply_leave: bool


class LastAction(BaseModel):
    status: str  # "Present" or "Check-Out"
    at: datetime


class AttendanceSummary(BaseModel):
    total_days: int
    present: int
    leave: int
    check_outs: int


class CalendarDay(BaseModel):
    day: int
    date: date
    state: str  # checked_in, checked_out, leave, none


class ReportRow(BaseModel):
    date: Optional[_date] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    label: str


class MonthReport(BaseModel):
    year: int
    month: int
    summary: AttendanceSummary
    calendar: List[CalendarDay]
    rows: List[ReportRow]


class AttendanceView(BaseModel):
    today: date
    status: AttendanceStatus
    actions: AttendanceActions
    lifecycle: str
    last_action: Optional[LastAction] = None
    records: List[AttendanceRecord]
    report: MonthReport


class EmployeeAttendanceRollup(BaseModel):
    id: int
    name: str
    present: int = 0
    absent: int = 0
    onLeave: int = 0
    totalDays: int = 0


class RollupRow(EmployeeAttendanceRollup):
    attendance_rate: float


class MonthSummaryStats(BaseModel):
    total_employees: int
    average_attendance: float
    high_performers: int


class MonthSummaryView(BaseModel):
    month: str
    date_from: date
    date_to: date
    stats: MonthSummaryStats
    rows: List[RollupRow]
