from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Union
from datetime import datetime, date
import enum


class PhaseStatus(str, enum.Enum):
    COMPLETED = "Completed"
    IN_PROGRESS = "In Progress"
    WAITING = "Waiting"


def parse_date(value):
    """Parse a calendar date from the formats the backend and forms send."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        # ISO timestamps keep the date they were written with
        if "T" in value:
            value = value.split("T")[0]
        formats = [
            '%Y-%m-%d',
            '%Y-%m-%d %H:%M:%S',
            '%d/%m/%Y',
            '%d-%m-%Y',
        ]
        for fmt in formats:
            try:
                return datetime.strptime(value, fmt).date()
            except ValueError:
                continue
    raise ValueError('Invalid date format')


class Member(BaseModel):
    id: int
    name: str


class Task(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    assigned_user_name: Optional[str] = None
    assigned_user_id: Optional[int] = None
    category: Optional[str] = None
    priority: Optional[str] = None

    @field_validator('due_date', mode='before')
    @classmethod
    def parse_due_date(cls, v):
        return parse_date(v)


class Phase(BaseModel):
    status: PhaseStatus = PhaseStatus.WAITING
    progress: float = Field(0, ge=0, le=100)


class BudgetStep(BaseModel):
    step: str
    amount: float = 0


class Project(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    launch_date: Optional[date] = None
    team: List[Member] = []
    phases: Dict[str, Phase] = {}
    total_budget: Optional[float] = None
    used_budget: Optional[float] = None
    amount_received: Optional[float] = None
    target_budget: Optional[float] = None
    budget_distribution: List[BudgetStep] = []
    tasklist: List[Task] = []

    @field_validator('launch_date', mode='before')
    @classmethod
    def parse_launch_date(cls, v):
        return parse_date(v)

    @field_validator('team', 'budget_distribution', 'tasklist', mode='before')
    @classmethod
    def none_as_empty(cls, v):
        return v or []

    @field_validator('phases', mode='before')
    @classmethod
    def none_as_empty_map(cls, v):
        return v or {}


class ProjectCreate(BaseModel):
    name: str
    description: str
    launch_date: Union[date, str]
    team_member_ids: List[int] = []

    @field_validator('launch_date', mode='before')
    @classmethod
    def parse_project_launch(cls, v):
        return parse_date(v)


class TaskCreate(BaseModel):
    title: str
    due_date: Union[date, str]
    user_id: int
    description: str = "N/A"
    category: str = "General"
    priority: str = "Medium"

    @field_validator('due_date', mode='before')
    @classmethod
    def parse_task_due(cls, v):
        return parse_date(v)


class BudgetUpdate(BaseModel):
    total_budget: float
    used_budget: float
    amount_received: float
    target_budget: float
    distribution: List[float] = []


class PhaseUpdate(BaseModel):
    status: PhaseStatus
    progress: Optional[float] = None


class PhasesUpdate(BaseModel):
    phases: Dict[str, PhaseUpdate]


class WorkloadEntry(BaseModel):
    member_id: int
    name: str
    tasks: int


class OverdueTask(BaseModel):
    task: Task
    days_overdue: int
    label: str


class BurndownPoint(BaseModel):
    label: str
    remaining: int


class ProjectMetrics(BaseModel):
    workload: List[WorkloadEntry]
    overdue: List[OverdueTask]
    burndown: List[BurndownPoint]

    def workload_by_name(self) -> Dict[str, int]:
        return {entry.name: entry.tasks for entry in self.workload}


class ProjectDashboard(BaseModel):
    projects: List[Project]
    selected_project_id: Optional[int] = None
    project: Optional[Project] = None
    metrics: Optional[ProjectMetrics] = None
    launch_countdown: Optional[str] = None
