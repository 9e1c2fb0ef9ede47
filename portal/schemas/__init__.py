from portal.schemas.auth import (
    UserRole, SessionContext, LoginRequest, LoginResponse, MeResponse, MenuItem
)
from portal.schemas.attendance import (
    AttendanceRecord, AttendanceStatus, AttendanceActions, AttendanceView, MonthReport,
    EmployeeAttendanceRollup, MonthSummaryView
)
from portal.schemas.project import (
    Member, Task, Phase, PhaseStatus, Project, ProjectCreate, TaskCreate,
    ProjectMetrics, ProjectDashboard
)
from portal.schemas.leave import LeaveApplication, LeaveStatus, LeaveDecision
from portal.schemas.employee import Employee, EmployeeCreate, EmployeeUpdate, EmployeeStatus
from portal.schemas.financial import FinancialEntry, FinancialEntryCreate, FinancialSummary

__all__ = [
    "UserRole", "SessionContext", "LoginRequest", "LoginResponse", "MeResponse", "MenuItem",
    "AttendanceRecord", "AttendanceStatus", "AttendanceActions", "AttendanceView", "MonthReport",
    "EmployeeAttendanceRollup", "MonthSummaryView",
    "Member", "Task", "Phase", "PhaseStatus", "Project", "ProjectCreate", "TaskCreate",
    "ProjectMetrics", "ProjectDashboard",
    "LeaveApplication", "LeaveStatus", "LeaveDecision",
    "Employee", "EmployeeCreate", "EmployeeUpdate", "EmployeeStatus",
    "FinancialEntry", "FinancialEntryCreate", "FinancialSummary",
]
