import logging
from datetime import date
from typing import Dict, List, Optional

from portal.core.exceptions import BackendError
from portal.schemas.auth import SessionContext, UserRole
from portal.schemas.project import (
    BudgetUpdate, BurndownPoint, Member, OverdueTask, Phase, PhaseStatus,
    PhasesUpdate, Project, ProjectCreate, ProjectDashboard, ProjectMetrics,
    Task, TaskCreate, WorkloadEntry
)
from portal.services.backend_client import BackendClient

logger = logging.getLogger(__name__)


def days_overdue(due_date: date, reference_date: date) -> int:
    """Whole days between the due date and the reference date (0 when not past due)."""
    return max((reference_date - due_date).days, 0)


def _days_label(days: int) -> str:
    return f"{days} Day{'s' if days > 1 else ''}"


class ProjectMetricsAggregator:
    """Derive the project dashboard's workload, overdue and burndown figures.

    Workload is matched on the assignee's display name by default, which is how
    the dashboard has always counted it; two members sharing a name are
    counted as one. Pass ``match_by="id"`` to match ``assigned_user_id``
    against member ids instead.
    """

    def __init__(self, match_by: str = "name"):
        if match_by not in ("name", "id"):
            raise ValueError("match_by must be 'name' or 'id'")
        self.match_by = match_by

    def workload(self, tasks: List[Task], team: Optional[List[Member]]) -> List[WorkloadEntry]:
        entries: Dict[object, WorkloadEntry] = {}
        for member in team or []:
            key = member.name if self.match_by == "name" else member.id
            if key not in entries:
                entries[key] = WorkloadEntry(member_id=member.id, name=member.name, tasks=0)

        for task in tasks:
            key = task.assigned_user_name if self.match_by == "name" else task.assigned_user_id
            if key in entries:
                entries[key].tasks += 1
        return list(entries.values())

    def overdue(self, tasks: List[Task], reference_date: date) -> List[OverdueTask]:
        result = []
        for task in tasks:
            if task.due_date is None or task.due_date >= reference_date:
                continue
            days = days_overdue(task.due_date, reference_date)
            result.append(OverdueTask(task=task, days_overdue=days, label=_days_label(days)))
        return result

    def burndown(self, tasks: List[Task]) -> List[BurndownPoint]:
        # Two-point approximation; no task completion history is kept.
        if not tasks:
            return []
        return [
            BurndownPoint(label="Start", remaining=len(tasks) + 1),
            BurndownPoint(label="Current", remaining=len(tasks)),
        ]

    def aggregate(
        self,
        tasks: Optional[List[Task]],
        team: Optional[List[Member]],
        reference_date: date
    ) -> ProjectMetrics:
        tasks = tasks or []
        return ProjectMetrics(
            workload=self.workload(tasks, team),
            overdue=self.overdue(tasks, reference_date),
            burndown=self.burndown(tasks),
        )


def visible_projects(
    projects: List[Project],
    session: SessionContext,
    member_name: Optional[str] = None
) -> List[Project]:
    """Employees get the backend's own filtered list; managers may filter by member."""
    if session.role == UserRole.EMPLOYEE.value or not member_name:
        return projects
    return [p for p in projects if any(m.name == member_name for m in p.team)]


def select_project(projects: List[Project], selected_id: Optional[int]) -> Optional[int]:
    if selected_id is not None and any(p.id == selected_id for p in projects):
        return selected_id
    return projects[0].id if projects else None


def normalize_phases(current: Dict[str, Phase], update: PhasesUpdate) -> Dict[str, Dict]:
    """Apply status changes; Completed pins progress to 100 and Waiting to 0."""
    phases = {}
    for name, phase in current.items():
        change = update.phases.get(name)
        status = change.status if change else phase.status
        progress = phase.progress
        if status == PhaseStatus.COMPLETED:
            progress = 100
        elif status == PhaseStatus.WAITING:
            progress = 0
        elif change and change.progress is not None:
            progress = min(max(change.progress, 0), 100)
        phases[name] = {"status": status.value, "progress": progress}
    return phases


def budget_payload(project: Project, update: BudgetUpdate) -> Dict:
    distribution = []
    for i, step in enumerate(project.budget_distribution):
        amount = update.distribution[i] if i < len(update.distribution) else step.amount
        distribution.append({"step": step.step, "amount": amount})
    return {
        "totalBudget": update.total_budget,
        "usedBudget": update.used_budget,
        "amountReceived": update.amount_received,
        "targetBudget": update.target_budget,
        "budget_distribution": distribution,
    }


def launch_countdown(launch_date: Optional[date], today: date) -> Optional[str]:
    """E.g. ``+3 Days - Wed, September 10`` or ``+Today - ...``."""
    if launch_date is None:
        return None
    diff = (launch_date - today).days
    day_string = "Today" if diff == 0 else f"{diff} Day{'' if diff == 1 else 's'}"
    formatted = f"{launch_date.strftime('%a, %B')} {launch_date.day}"
    return f"{'+' if diff >= 0 else ''}{day_string} - {formatted}"


class ProjectService:
    def __init__(self, aggregator: Optional[ProjectMetricsAggregator] = None):
        self.aggregator = aggregator or ProjectMetricsAggregator()

    def list_projects(self, client: BackendClient, session: SessionContext) -> List[Project]:
        return [Project.model_validate(p) for p in client.list_projects(session)]

    def get_project(self, client: BackendClient, session: SessionContext, project_id: int) -> Project:
        try:
            return Project.model_validate(client.get_project(session, project_id))
        except BackendError as e:
            if e.status_code == 403 and not session.is_management:
                raise BackendError(
                    "Access denied. You are not assigned to this project.", status_code=403
                ) from e
            raise

    def dashboard(
        self,
        client: BackendClient,
        session: SessionContext,
        today: date,
        member_name: Optional[str] = None,
        selected_id: Optional[int] = None
    ) -> ProjectDashboard:
        """Project list, selected project details and its derived metrics."""
        projects = visible_projects(self.list_projects(client, session), session, member_name)
        selected_id = select_project(projects, selected_id)
        if selected_id is None:
            return ProjectDashboard(projects=projects)

        project = self.get_project(client, session, selected_id)
        summary = next(p for p in projects if p.id == selected_id)
        if not project.team:
            project = project.model_copy(update={"team": summary.team})

        metrics = self.aggregator.aggregate(project.tasklist, project.team, today)
        return ProjectDashboard(
            projects=projects,
            selected_project_id=selected_id,
            project=project,
            metrics=metrics,
            launch_countdown=launch_countdown(project.launch_date, today),
        )

    def create_project(
        self, client: BackendClient, session: SessionContext, data: ProjectCreate, today: date
    ) -> ProjectDashboard:
        created = client.create_project(session, {
            "name": data.name,
            "description": data.description,
            "launch_date": data.launch_date.isoformat(),
            "teamMemberIds": data.team_member_ids,
        })
        project = Project.model_validate(created)
        logger.info(f"Project '{project.name}' created")
        return self.dashboard(client, session, today, selected_id=project.id)

    def update_project(
        self, client: BackendClient, session: SessionContext, project_id: int, data: ProjectCreate, today: date
    ) -> ProjectDashboard:
        client.update_project(session, project_id, {
            "name": data.name,
            "description": data.description,
            "launch_date": data.launch_date.isoformat(),
            "teamMemberIds": data.team_member_ids,
        })
        return self.dashboard(client, session, today, selected_id=project_id)

    def update_budget(
        self, client: BackendClient, session: SessionContext, project_id: int, data: BudgetUpdate, today: date
    ) -> ProjectDashboard:
        project = self.get_project(client, session, project_id)
        client.update_budget(session, project_id, budget_payload(project, data))
        return self.dashboard(client, session, today, selected_id=project_id)

    def update_phases(
        self, client: BackendClient, session: SessionContext, project_id: int, data: PhasesUpdate, today: date
    ) -> ProjectDashboard:
        project = self.get_project(client, session, project_id)
        client.update_phases(session, project_id, normalize_phases(project.phases, data))
        return self.dashboard(client, session, today, selected_id=project_id)

    def add_task(
        self, client: BackendClient, session: SessionContext, project_id: int, data: TaskCreate, today: date
    ) -> ProjectDashboard:
        client.add_task(session, project_id, {
            "title": data.title,
            "description": data.description,
            "dueDate": data.due_date.isoformat(),
            "userId": data.user_id,
            "category": data.category,
            "priority": data.priority,
        })
        logger.info(f"Task '{data.title}' added to project {project_id}")
        return self.dashboard(client, session, today, selected_id=project_id)

    def complete_task(
        self, client: BackendClient, session: SessionContext, project_id: int, task_id: int, today: date
    ) -> ProjectDashboard:
        """Mark a task done; done tasks are removed from the project."""
        client.delete_task(session, project_id, task_id)
        logger.info(f"Task {task_id} of project {project_id} marked as done")
        return self.dashboard(client, session, today, selected_id=project_id)

    def delete_project(
        self, client: BackendClient, session: SessionContext, project_id: int, today: date
    ) -> ProjectDashboard:
        client.delete_project(session, project_id)
        logger.info(f"Project {project_id} deleted")
        return self.dashboard(client, session, today)

    def assignable_users(self, client: BackendClient, session: SessionContext) -> List[Member]:
        return [Member.model_validate(u) for u in client.assignable_users(session)]


# Singleton instance
project_service = ProjectService()
