import calendar
import enum
import logging
import threading
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from portal.core.exceptions import (
    ActionInFlightError, ActionNotPermittedError, PortalError, SessionExpiredError
)
from portal.schemas.attendance import (
    AttendanceActions, AttendanceRecord, AttendanceStatus, AttendanceSummary,
    AttendanceView, CalendarDay, LastAction, MonthReport, ReportRow
)
from portal.schemas.auth import SessionContext
from portal.services.backend_client import BackendClient, UploadedDocument

logger = logging.getLogger(__name__)

PRESENT = "Present"
CHECK_OUT = "Check-Out"
LEAVE = "Leave"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def falls_on(timestamp: Optional[datetime], day: date) -> bool:
    """True when the timestamp's own calendar date (its ISO date prefix) is ``day``."""
    return timestamp is not None and timestamp.date() == day


def is_leave(record: AttendanceRecord) -> bool:
    return bool(record.status) and LEAVE in record.status


def derive_status(records: Iterable[AttendanceRecord], today: date) -> AttendanceStatus:
    """Work out what the user has already done today from their attendance records."""
    records = list(records)
    return AttendanceStatus(
        has_checked_in=any(falls_on(r.check_in_at, today) for r in records),
        has_checked_out=any(falls_on(r.check_out_at, today) for r in records),
        has_leave=any(is_leave(r) and falls_on(r.check_in_at, today) for r in records),
    )


class DailyLocks:
    """One-shot check-in/check-out locks that reset when the calendar day changes."""

    def __init__(self, day: Optional[date] = None):
        self.day = day
        self.checked_in = False
        self.checked_out = False

    def roll_over(self, today: date):
        if self.day != today:
            self.day = today
            self.checked_in = False
            self.checked_out = False


def permitted_actions(
    status: AttendanceStatus,
    in_flight: bool = False,
    locks: Optional[DailyLocks] = None
) -> AttendanceActions:
    check_in_locked = bool(locks and locks.checked_in)
    check_out_locked = bool(locks and locks.checked_out)
    return AttendanceActions(
        can_check_in=not (status.has_checked_in or status.has_leave or in_flight or check_in_locked),
        can_check_out=status.has_checked_in and not (
            status.has_checked_out or status.has_leave or in_flight or check_out_locked
        ),
        can_apply_leave=not (status.has_checked_in or status.has_checked_out or in_flight),
    )


class LifecycleState(str, enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    SETTLED = "settled"


class RequestLifecycle:
    """Idle -> Pending -> Settled gate for one user's attendance actions.

    ``begin`` is atomic, so two overlapping requests cannot both get past it.
    """

    def __init__(self):
        self.state = LifecycleState.IDLE
        self._lock = threading.Lock()

    @property
    def in_flight(self) -> bool:
        return self.state == LifecycleState.PENDING

    def begin(self):
        with self._lock:
            if self.state == LifecycleState.PENDING:
                raise ActionInFlightError()
            self.state = LifecycleState.PENDING

    def settle(self):
        with self._lock:
            self.state = LifecycleState.SETTLED


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def _clock_time(timestamp: Optional[datetime]) -> Optional[str]:
    if timestamp is None:
        return None
    return timestamp.strftime("%I:%M %p")


def _row_label(record: AttendanceRecord) -> str:
    # detail rows only show Leave for an exact status match
    if record.status == LEAVE:
        return LEAVE
    if record.check_out_at:
        return CHECK_OUT
    if record.check_in_at:
        return PRESENT
    return "-"


def month_report(records: List[AttendanceRecord], year: int, month: int) -> MonthReport:
    """Summary cards, day calendar and detailed rows for one month."""
    first, last = month_bounds(year, month)

    summary = AttendanceSummary(
        total_days=last.day,
        present=sum(1 for r in records if r.check_in_at),
        leave=sum(1 for r in records if is_leave(r)),
        check_outs=sum(1 for r in records if r.check_out_at),
    )

    days = []
    for day_number in range(1, last.day + 1):
        day = date(year, month, day_number)
        record = next((r for r in records if falls_on(r.check_in_at, day)), None)
        if record is None:
            state = "none"
        elif is_leave(record):
            state = "leave"
        elif record.check_out_at:
            state = "checked_out"
        else:
            state = "checked_in"
        days.append(CalendarDay(day=day_number, date=day, state=state))

    rows = [
        ReportRow(
            date=r.check_in_at.date() if r.check_in_at else None,
            check_in_time=_clock_time(r.check_in_at),
            check_out_time=_clock_time(r.check_out_at),
            label=_row_label(r),
        )
        for r in records
    ]

    return MonthReport(year=year, month=month, summary=summary, calendar=days, rows=rows)


class AttendanceTracker:
    """Per-session attendance state: cached records, daily locks and the request gate.

    Check-in and check-out are two-phase: the tentative change is applied to the
    local list, the request is sent, and on success the list is replaced by a
    fresh fetch from the backend. A failed request restores the previous list.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock
        self.records: List[AttendanceRecord] = []
        self.locks = DailyLocks()
        self.lifecycle = RequestLifecycle()
        self.last_action: Optional[LastAction] = None

    def today(self) -> date:
        return self.clock().date()

    def refresh(self, client: BackendClient, session: SessionContext):
        today = self.today()
        date_from, date_to = month_bounds(today.year, today.month)
        data = client.list_attendance(session, date_from, date_to)
        self.records = [AttendanceRecord.model_validate(item) for item in data]

    def status(self) -> AttendanceStatus:
        return derive_status(self.records, self.today())

    def actions(self) -> AttendanceActions:
        self.locks.roll_over(self.today())
        return permitted_actions(self.status(), self.lifecycle.in_flight, self.locks)

    def view(self) -> AttendanceView:
        today = self.today()
        return AttendanceView(
            today=today,
            status=self.status(),
            actions=self.actions(),
            lifecycle=self.lifecycle.state.value,
            last_action=self.last_action,
            records=self.records,
            report=month_report(self.records, today.year, today.month),
        )

    def check_in(self, client: BackendClient, session: SessionContext) -> AttendanceView:
        return self._mark(PRESENT, client, session)

    def check_out(self, client: BackendClient, session: SessionContext) -> AttendanceView:
        return self._mark(CHECK_OUT, client, session)

    def _apply_tentative(self, action: str, now: datetime):
        if action == PRESENT:
            self.records = self.records + [
                AttendanceRecord(check_in_at=now, check_out_at=None, status=PRESENT)
            ]
        else:
            today = now.date()
            self.records = [
                r.model_copy(update={"check_out_at": now}) if falls_on(r.check_in_at, today) else r
                for r in self.records
            ]

    def _mark(self, action: str, client: BackendClient, session: SessionContext) -> AttendanceView:
        self.lifecycle.begin()
        try:
            self.refresh(client, session)
            now = self.clock()
            self.locks.roll_over(now.date())
            actions = permitted_actions(derive_status(self.records, now.date()), False, self.locks)
            allowed = actions.can_check_in if action == PRESENT else actions.can_check_out
            if not allowed:
                raise ActionNotPermittedError(f"{action} is not permitted right now")

            snapshot = self.records
            self._apply_tentative(action, now)
            try:
                if action == PRESENT:
                    client.check_in(session)
                else:
                    client.check_out(session)
            except PortalError:
                self.records = snapshot
                raise

            if action == PRESENT:
                self.locks.checked_in = True
            else:
                self.locks.checked_out = True
            self.last_action = LastAction(status=action, at=now)
            logger.info(f"{action} recorded for {session.name or session.role}")

            self._reconcile(client, session)
        finally:
            self.lifecycle.settle()
        return self.view()

    def apply_leave(
        self,
        client: BackendClient,
        session: SessionContext,
        start_date: date,
        end_date: date,
        reason: str,
        document: Optional[UploadedDocument] = None
    ) -> Optional[Dict]:
        """Submit a leave application; a range covering today needs the leave permission."""
        self.lifecycle.begin()
        try:
            self.refresh(client, session)
            today = self.today()
            if start_date <= today <= end_date:
                status = derive_status(self.records, today)
                if not permitted_actions(status, False, self.locks).can_apply_leave:
                    raise ActionNotPermittedError("Leave is not permitted after checking in today")
            result = client.apply_leave(session, start_date, end_date, reason, document)
            logger.info(f"Leave applied for {start_date} - {end_date}")
            self._reconcile(client, session)
        finally:
            self.lifecycle.settle()
        return result

    def _reconcile(self, client: BackendClient, session: SessionContext):
        try:
            self.refresh(client, session)
        except SessionExpiredError:
            raise
        except PortalError as e:
            logger.warning(f"Attendance re-fetch failed, keeping local state: {e.message}")


class TrackerRegistry:
    """In-process map of session token to its AttendanceTracker."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock
        self._trackers: Dict[str, AttendanceTracker] = {}
        self._lock = threading.Lock()

    def get(self, token: str) -> AttendanceTracker:
        with self._lock:
            tracker = self._trackers.get(token)
            if tracker is None:
                tracker = AttendanceTracker(clock=self.clock)
                self._trackers[token] = tracker
            return tracker

    def discard(self, token: str):
        with self._lock:
            self._trackers.pop(token, None)

    def today(self) -> date:
        return self.clock().date()

    def __contains__(self, token: str) -> bool:
        return token in self._trackers


# Global instance
attendance_trackers = TrackerRegistry()
