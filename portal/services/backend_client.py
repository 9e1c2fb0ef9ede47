import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import requests

from portal.core.config import settings
from portal.core.exceptions import (
    BackendError, BackendUnavailableError, SessionExpiredError
)
from portal.schemas.auth import SessionContext

logger = logging.getLogger(__name__)

# (filename, content, content_type)
UploadedDocument = Tuple[str, bytes, str]


def _error_message(response: requests.Response, fallback: str) -> str:
    """Pull the ``error`` field out of a JSON error body."""
    try:
        body = response.json()
    except ValueError:
        return response.reason or fallback
    if isinstance(body, dict):
        return body.get("error") or body.get("message") or fallback
    return fallback


class BackendClient:
    """HTTP client for the HR backend REST API.

    Every authenticated call takes the caller's ``SessionContext``. A 401 on
    an authenticated call destroys that context before raising
    ``SessionExpiredError``.
    """

    def __init__(self, base_url: Optional[str] = None, http: Optional[requests.Session] = None):
        self.base_url = (base_url or settings.BACKEND_URL).rstrip("/")
        self.http = http or requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        session: Optional[SessionContext] = None,
        **kwargs
    ) -> Any:
        url = f"{self.base_url}/api{path}"
        headers = kwargs.pop("headers", {})

        if session is not None:
            if not session.active:
                raise SessionExpiredError()
            headers["Authorization"] = f"Bearer {session.token}"

        try:
            response = self.http.request(method, url, headers=headers, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Backend request {method} {path} failed: {e}")
            raise BackendUnavailableError() from e

        if response.status_code == 401 and session is not None:
            logger.warning(f"Backend rejected credential on {method} {path}")
            session.destroy()
            raise SessionExpiredError()

        if not response.ok:
            message = _error_message(response, "Unknown error")
            logger.error(f"Backend {method} {path} returned {response.status_code}: {message}")
            raise BackendError(message, status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    # Auth

    def login(self, employee_id: str, password: str) -> Dict:
        return self._request("POST", "/auth/login", json={
            "employeeId": employee_id,
            "password": password
        })

    def forgot_password(self, email: str) -> Dict:
        return self._request("POST", "/auth/forgot-password", json={"email": email})

    def reset_password(self, token: str, password: str) -> Dict:
        return self._request("POST", f"/auth/reset-password/{token}", json={"password": password})

    def me(self, session: SessionContext) -> Dict:
        return self._request("GET", "/me", session)

    # Attendance

    def list_attendance(self, session: SessionContext, date_from: date, date_to: date) -> List[Dict]:
        params = {"from": date_from.isoformat(), "to": date_to.isoformat()}
        return self._request("GET", "/attendance/me", session, params=params) or []

    def check_in(self, session: SessionContext) -> Optional[Dict]:
        return self._request("POST", "/attendance/check-in", session)

    def check_out(self, session: SessionContext) -> Optional[Dict]:
        return self._request("POST", "/attendance/check-out", session)

    def admin_attendance(self, session: SessionContext, date_from: date, date_to: date) -> List[Dict]:
        params = {"from": date_from.isoformat(), "to": date_to.isoformat()}
        return self._request("GET", "/admin/attendance/", session, params=params) or []

    # Leaves

    def apply_leave(
        self,
        session: SessionContext,
        start_date: date,
        end_date: date,
        reason: str,
        document: Optional[UploadedDocument] = None
    ) -> Optional[Dict]:
        data = {
            "startDate": start_date.isoformat(),
            "endDate": end_date.isoformat(),
            "reason": reason,
        }
        files = {"document": document} if document else None
        return self._request("POST", "/leaves/apply", session, data=data, files=files)

    def my_leaves(self, session: SessionContext) -> List[Dict]:
        return self._request("GET", "/leaves/apply", session) or []

    def admin_leaves(self, session: SessionContext) -> List[Dict]:
        return self._request("GET", "/leaves/admin", session) or []

    def set_leave_status(self, session: SessionContext, leave_id: int, status: str) -> Optional[Dict]:
        return self._request("PUT", f"/leaves/admin/{leave_id}/status", session, json={"status": status})

    # Projects

    def assignable_users(self, session: SessionContext) -> List[Dict]:
        return self._request("GET", "/projects/assignable-users", session) or []

    def list_projects(self, session: SessionContext) -> List[Dict]:
        path = "/projects" if session.is_management else "/projects/team"
        return self._request("GET", path, session) or []

    def get_project(self, session: SessionContext, project_id: int) -> Dict:
        path = f"/projects/{project_id}" if session.is_management else f"/projects/team/{project_id}"
        return self._request("GET", path, session)

    def create_project(self, session: SessionContext, payload: Dict) -> Dict:
        return self._request("POST", "/projects", session, json=payload)

    def update_project(self, session: SessionContext, project_id: int, payload: Dict) -> Dict:
        return self._request("PUT", f"/projects/{project_id}", session, json=payload)

    def delete_project(self, session: SessionContext, project_id: int):
        return self._request("DELETE", f"/projects/{project_id}", session)

    def update_budget(self, session: SessionContext, project_id: int, payload: Dict) -> Dict:
        return self._request("PUT", f"/projects/{project_id}/budget", session, json=payload)

    def update_phases(self, session: SessionContext, project_id: int, phases: Dict) -> Dict:
        return self._request("PUT", f"/projects/{project_id}/phases", session, json={"phases": phases})

    def add_task(self, session: SessionContext, project_id: int, payload: Dict) -> Optional[Dict]:
        return self._request("POST", f"/projects/{project_id}/tasks", session, json=payload)

    def delete_task(self, session: SessionContext, project_id: int, task_id: int):
        return self._request("DELETE", f"/projects/{project_id}/tasks/{task_id}", session)

    # Employee management

    def list_employees(self, session: SessionContext) -> List[Dict]:
        return self._request("GET", "/admin", session) or []

    def create_employee(self, session: SessionContext, payload: Dict) -> Dict:
        return self._request("POST", "/admin", session, json=payload)

    def update_employee(self, session: SessionContext, employee_id: int, payload: Dict) -> Dict:
        return self._request("PUT", f"/admin/{employee_id}", session, json=payload)

    def delete_employee(self, session: SessionContext, employee_id: int):
        return self._request("DELETE", f"/admin/{employee_id}", session)

    # Financial

    def financial_entries(self, session: SessionContext) -> List[Dict]:
        return self._request("GET", "/financial/entries", session) or []

    def add_financial_entry(self, session: SessionContext, payload: Dict) -> Dict:
        return self._request("POST", "/financial/entries", session, json=payload)


# Singleton instance
backend_client = BackendClient()
