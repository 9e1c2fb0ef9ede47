from fastapi import APIRouter, Depends, status
from typing import List, Optional
from portal.api.deps import (
    get_backend_client, get_current_session, get_management_session, get_trackers
)
from portal.schemas.auth import SessionContext
from portal.schemas.project import (
    BudgetUpdate, Member, PhasesUpdate, ProjectCreate, ProjectDashboard, TaskCreate
)
from portal.services.attendance_service import TrackerRegistry
from portal.services.backend_client import BackendClient
from portal.services.project_service import project_service

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.get("", response_model=ProjectDashboard)
def get_dashboard(
    member: Optional[str] = None,
    project_id: Optional[int] = None,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_current_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Visible projects plus workload, overdue and burndown of the selected one."""
    today = trackers.today()
    return project_service.dashboard(client, session, today, member_name=member, selected_id=project_id)


@router.get("/assignable-users", response_model=List[Member])
def assignable_users(
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_current_session)
):
    """Users that can be put on a project team."""
    return project_service.assignable_users(client, session)


@router.post("", response_model=ProjectDashboard, status_code=status.HTTP_201_CREATED)
def create_project(
    data: ProjectCreate,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_management_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Create a new project and select it."""
    today = trackers.today()
    return project_service.create_project(client, session, data, today)


@router.put("/{project_id}", response_model=ProjectDashboard)
def update_project(
    project_id: int,
    data: ProjectCreate,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_management_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Update project details and team."""
    today = trackers.today()
    return project_service.update_project(client, session, project_id, data, today)


@router.delete("/{project_id}", response_model=ProjectDashboard)
def delete_project(
    project_id: int,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_management_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Delete a project."""
    today = trackers.today()
    return project_service.delete_project(client, session, project_id, today)


@router.put("/{project_id}/budget", response_model=ProjectDashboard)
def update_budget(
    project_id: int,
    data: BudgetUpdate,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_management_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Update budget figures and the step-wise distribution."""
    today = trackers.today()
    return project_service.update_budget(client, session, project_id, data, today)


@router.put("/{project_id}/phases", response_model=ProjectDashboard)
def update_phases(
    project_id: int,
    data: PhasesUpdate,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_management_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Update phase statuses and progress."""
    today = trackers.today()
    return project_service.update_phases(client, session, project_id, data, today)


@router.post("/{project_id}/tasks", response_model=ProjectDashboard, status_code=status.HTTP_201_CREATED)
def add_task(
    project_id: int,
    data: TaskCreate,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_management_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Add a task and return the recomputed dashboard."""
    today = trackers.today()
    return project_service.add_task(client, session, project_id, data, today)


@router.delete("/{project_id}/tasks/{task_id}", response_model=ProjectDashboard)
def complete_task(
    project_id: int,
    task_id: int,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_current_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Mark a task as done (it is removed) and return the recomputed dashboard."""
    today = trackers.today()
    return project_service.complete_task(client, session, project_id, task_id, today)
