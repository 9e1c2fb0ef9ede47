from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from typing import Optional
from portal.api.deps import get_admin_or_hr_session, get_admin_session, get_backend_client
from portal.schemas.attendance import MonthSummaryView
from portal.schemas.auth import SessionContext
from portal.schemas.employee import (
    Employee, EmployeeCreate, EmployeeDirectory, EmployeeStatus, EmployeeUpdate
)
from portal.services.attendance_summary_service import (
    attendance_summary_service, export_filename
)
from portal.services.backend_client import BackendClient
from portal.services.employee_service import DEPARTMENTS, employee_service

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/employees", response_model=EmployeeDirectory)
def list_employees(
    search: Optional[str] = None,
    department: Optional[str] = None,
    status: Optional[str] = None,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_admin_session)
):
    """Employee directory with search, filters and headcount stats."""
    return employee_service.directory(client, session, search, department, status)


@router.get("/employees/options")
def employee_form_options(session: SessionContext = Depends(get_admin_session)):
    """Departments and statuses offered by the employee form."""
    return {
        "departments": DEPARTMENTS,
        "statuses": [s.value for s in EmployeeStatus],
    }


@router.post("/employees", response_model=Employee, status_code=status.HTTP_201_CREATED)
def create_employee(
    data: EmployeeCreate,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_admin_session)
):
    """Add an employee."""
    return employee_service.create_employee(client, session, data)


@router.put("/employees/{employee_id}", response_model=Employee)
def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_admin_session)
):
    """Edit an employee."""
    return employee_service.update_employee(client, session, employee_id, data)


@router.delete("/employees/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee(
    employee_id: int,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_admin_session)
):
    """Remove an employee."""
    employee_service.delete_employee(client, session, employee_id)


@router.get("/attendance-summary", response_model=MonthSummaryView)
def attendance_summary(
    month: str = Query(..., description="YYYY-MM"),
    search: Optional[str] = None,
    tier: str = "all",
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_admin_or_hr_session)
):
    """Monthly attendance rollup for all employees."""
    return attendance_summary_service.summary(client, session, month, search, tier)


@router.get("/attendance-summary/export")
def export_attendance_summary(
    month: str = Query(..., description="YYYY-MM"),
    search: Optional[str] = None,
    tier: str = "all",
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_admin_or_hr_session)
):
    """Download the filtered monthly rollup as CSV."""
    view = attendance_summary_service.summary(client, session, month, search, tier)
    buffer = attendance_summary_service.export_csv(view.rows)
    return StreamingResponse(
        buffer,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={export_filename(month)}"}
    )
