from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import List, Optional
from datetime import date
from portal.api.deps import (
    get_admin_or_hr_session, get_backend_client, get_current_session, get_trackers
)
from portal.core.exceptions import ValidationFailedError
from portal.schemas.auth import SessionContext
from portal.schemas.leave import LeaveApplication, LeaveDecision
from portal.services.attendance_service import TrackerRegistry
from portal.services.backend_client import BackendClient
from portal.services.leave_service import as_document, leave_service

router = APIRouter(prefix="/leaves", tags=["Leaves"])


@router.post("/apply")
def apply_leave(
    start_date: date = Form(...),
    end_date: date = Form(...),
    reason: str = Form(...),
    document: Optional[UploadFile] = File(None),
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_current_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Apply for leave with an optional supporting document."""
    if end_date < start_date:
        raise ValidationFailedError("End date must be on or after start date")
    if not reason.strip():
        raise ValidationFailedError("Reason is required")

    upload = None
    if document is not None and document.filename:
        upload = as_document(document.filename, document.file.read(), document.content_type)

    result = trackers.get(session.token).apply_leave(client, session, start_date, end_date, reason, upload)
    response = {"message": "Leave submitted!", "status": "PENDING"}
    if isinstance(result, dict):
        response.update(result)
    return response


@router.get("/mine", response_model=List[LeaveApplication])
def my_leaves(
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_current_session)
):
    """Leave applications of the current user."""
    return leave_service.my_leaves(client, session)


@router.get("/admin", response_model=List[LeaveApplication])
def list_leaves_for_review(
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_admin_or_hr_session)
):
    """All leave applications (Admin/HR)."""
    return leave_service.pending_review(client, session)


@router.put("/admin/{leave_id}/status", response_model=List[LeaveApplication])
def decide_leave(
    leave_id: int,
    decision: LeaveDecision,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_admin_or_hr_session)
):
    """Approve or reject a pending leave application."""
    return leave_service.decide(client, session, leave_id, decision.status)
