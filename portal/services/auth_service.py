import logging
from typing import List

from portal.core.exceptions import PortalError, SessionExpiredError, ValidationFailedError
from portal.core.redis import SessionStore
from portal.schemas.auth import (
    LoginRequest, MenuItem, ResetPasswordRequest, SessionContext, UserRole
)
from portal.services.attendance_service import TrackerRegistry
from portal.services.backend_client import BackendClient

logger = logging.getLogger(__name__)

ADMIN = UserRole.ADMIN.value
HR = UserRole.HR.value
EMPLOYEE = UserRole.EMPLOYEE.value

# (label, path, roles allowed; None means every role)
MENU = [
    ("Employee Management", "/employee-dashboard", {ADMIN}),
    ("Attendance", "/employee-dashboard/attendance", {HR, EMPLOYEE}),
    ("Leave Approval", "/employee-dashboard/leaveapprovalpage", {ADMIN, HR}),
    ("Financial", "/employee-dashboard/FinancialDashboard", {ADMIN, HR}),
    ("Attendance Summary", "/employee-dashboard/MonthSummary", {ADMIN, HR}),
    ("Projects", "/employee-dashboard/projects", None),
    ("To-Do List", "/employee-dashboard/todo", None),
]


def menu_for(role: str) -> List[MenuItem]:
    return [
        MenuItem(label=label, path=path)
        for label, path, roles in MENU
        if roles is None or role in roles
    ]


class AuthService:
    async def login(
        self,
        client: BackendClient,
        store: SessionStore,
        data: LoginRequest
    ) -> SessionContext:
        """Sign in against the backend and keep the resulting session."""
        result = client.login(data.employee_id, data.password)
        token = (result or {}).get("token")
        if not token:
            raise PortalError("Login failed. Please check your credentials.", status_code=401)

        session = SessionContext(
            token=token,
            role=result.get("role") or EMPLOYEE,
            remember_me=data.remember_me,
        )
        try:
            profile = client.me(session) or {}
            session.name = profile.get("name")
            session.user_id = profile.get("id")
            session.role = profile.get("role") or session.role
        except SessionExpiredError:
            raise
        except PortalError as e:
            logger.warning(f"Could not load profile after login: {e.message}")

        await store.create_session(session)
        logger.info(f"Login successful for employee {data.employee_id} ({session.role})")
        return session

    async def logout(self, store: SessionStore, trackers: TrackerRegistry, session: SessionContext):
        session.destroy()
        await store.delete_session(session.token)
        trackers.discard(session.token)

    def forgot_password(self, client: BackendClient, email: str) -> str:
        client.forgot_password(email)
        return "Check your email for reset instructions."

    def reset_password(self, client: BackendClient, token: str, data: ResetPasswordRequest) -> str:
        if data.password != data.confirm_password:
            raise ValidationFailedError("Passwords do not match.")
        client.reset_password(token, data.password)
        return "Password reset successful! Redirecting to login..."


# Singleton instance
auth_service = AuthService()
