from fastapi import APIRouter, Depends, Query
from typing import Optional
from portal.api.deps import get_backend_client, get_current_session, get_trackers
from portal.schemas.attendance import AttendanceRecord, AttendanceView, MonthReport
from portal.schemas.auth import SessionContext
from portal.services.attendance_service import TrackerRegistry, month_bounds, month_report
from portal.services.backend_client import BackendClient

router = APIRouter(prefix="/attendance", tags=["Attendance"])


@router.get("", response_model=AttendanceView)
def get_attendance(
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_current_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Today's status, permitted actions and this month's report."""
    tracker = trackers.get(session.token)
    tracker.refresh(client, session)
    return tracker.view()


@router.post("/check-in", response_model=AttendanceView)
def check_in(
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_current_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Check in (mark entry time)."""
    return trackers.get(session.token).check_in(client, session)


@router.post("/check-out", response_model=AttendanceView)
def check_out(
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_current_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Check out (mark exit time)."""
    return trackers.get(session.token).check_out(client, session)


@router.get("/report", response_model=MonthReport)
def get_month_report(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_current_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Calendar and detailed report for any month (defaults to the current one)."""
    today = trackers.today()
    year = year or today.year
    month = month or today.month
    date_from, date_to = month_bounds(year, month)
    records = [
        AttendanceRecord.model_validate(item)
        for item in client.list_attendance(session, date_from, date_to)
    ]
    return month_report(records, year, month)
