"""In-memory stand-in for the HR backend, reachable through ``requests``."""
from datetime import datetime, timezone
from typing import Dict, List, Optional
from urllib.parse import urlsplit

import requests
from fastapi import Depends, FastAPI, File, Form, Header, UploadFile
from fastapi.responses import JSONResponse, Response
from fastapi.testclient import TestClient
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict


class BackendFailure(Exception):
    def __init__(self, status_code: int, error: str):
        self.status_code = status_code
        self.error = error


class FakeHRBackend:
    def __init__(self, now: datetime):
        self.now = now
        self.users = {
            "E001": {"id": 1, "name": "Alice", "role": "EMPLOYEE", "password": "secret", "token": "tok-alice",
                     "email": "alice@example.com"},
            "E002": {"id": 2, "name": "Bob", "role": "EMPLOYEE", "password": "secret", "token": "tok-bob",
                     "email": "bob@example.com"},
            "A001": {"id": 10, "name": "Root", "role": "ADMIN", "password": "admin", "token": "tok-admin",
                     "email": "root@example.com"},
            "H001": {"id": 11, "name": "Hana", "role": "HR", "password": "hr", "token": "tok-hr",
                     "email": "hana@example.com"},
            "T001": {"id": 12, "name": "Tess", "role": "TEAM LEADER", "password": "lead", "token": "tok-lead",
                     "email": "tess@example.com"},
        }
        self.revoked = set()
        self.failures: Dict[str, BackendFailure] = {}
        self.calls: List[str] = []
        self.attendance: Dict[str, List[dict]] = {}
        self.reset_requests: List[dict] = []
        self.leaves: List[dict] = [
            {"id": 1, "employee_id": "E002", "employee_name": "Bob", "start_date": "2025-09-15",
             "end_date": "2025-09-16", "reason": "Family", "document_path": None, "status": "PENDING"},
            {"id": 2, "employee_id": "E001", "employee_name": "Alice", "start_date": "2025-08-01",
             "end_date": "2025-08-01", "reason": "Doctor", "document_path": "uploads/note.pdf",
             "status": "APPROVED"},
        ]
        self.uploaded: List[dict] = []
        self.projects: Dict[int, dict] = {
            1: {
                "id": 1, "name": "Apollo", "description": "Client portal", "launch_date": "2025-09-20T00:00:00.000Z",
                "team": [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}],
                "phases": {
                    "design": {"status": "Completed", "progress": 100},
                    "development": {"status": "In Progress", "progress": 40},
                    "testing": {"status": "Waiting", "progress": 0},
                },
                "total_budget": 10000, "used_budget": 2500, "amount_received": 5000, "target_budget": 12000,
                "budget_distribution": [{"step": "Design", "amount": 1000}, {"step": "Build", "amount": 4000}],
                "tasklist": [
                    {"id": 11, "title": "Wireframes", "due_date": "2025-09-01", "assigned_user_name": "Alice",
                     "assigned_user_id": 1},
                    {"id": 12, "title": "API", "due_date": "2025-09-10", "assigned_user_name": "Bob",
                     "assigned_user_id": 2},
                    {"id": 13, "title": "Docs", "due_date": "2025-09-20", "assigned_user_name": "Carol",
                     "assigned_user_id": 99},
                ],
            },
            2: {
                "id": 2, "name": "Zephyr", "description": "Internal tools", "launch_date": None,
                "team": [{"id": 2, "name": "Bob"}], "phases": {}, "budget_distribution": [], "tasklist": [],
            },
        }
        self.employees: Dict[int, dict] = {
            1: {"id": 1, "name": "Vikas", "email": "vikas@example.com", "phone": "+917404145341",
                "position": "Full Stack Developer", "department": "Engineering", "salary": 7000,
                "hire_date": "2025-08-25", "status": "Active", "location": "Hisar"},
            2: {"id": 2, "name": "Meera", "email": "meera@example.com", "position": "Designer",
                "department": "Design", "salary": 5000, "status": "On Leave"},
            3: {"id": 3, "name": "Arjun", "email": "arjun@example.com", "position": "Recruiter",
                "department": "HR", "salary": 4000, "status": "Active"},
        }
        self.rollups: List[dict] = [
            {"id": 1, "name": "Alice", "present": 28, "absent": 1, "onLeave": 1, "totalDays": 30},
            {"id": 2, "name": "Bob", "present": 24, "absent": 4, "onLeave": 2, "totalDays": 30},
            {"id": 3, "name": "Carol", "present": 15, "absent": 15, "onLeave": 0, "totalDays": 30},
        ]
        self.financial_entries: List[dict] = [
            {"id": 1, "date": "2025-07-05", "kind": "revenue", "amount": 45000, "category": None},
            {"id": 2, "date": "2025-07-20", "kind": "spending", "amount": 12000, "category": "Marketing"},
            {"id": 3, "date": "2025-09-01", "kind": "revenue", "amount": 30000, "category": None},
            {"id": 4, "date": "2025-09-02", "kind": "spending", "amount": 8000, "category": "Personnel"},
            {"id": 5, "date": "2025-09-08", "kind": "spending", "amount": 2000, "category": "Marketing"},
        ]
        self.app = self._build_app()

    # Helpers

    def fail(self, key: str, status_code: int, error: str = "Injected failure"):
        """Make the next call matching ``"METHOD /path"`` fail."""
        self.failures[key] = BackendFailure(status_code, error)

    def user_by_token(self, token: str) -> Optional[dict]:
        return next((u for u in self.users.values() if u["token"] == token), None)

    def _build_app(self) -> FastAPI:
        backend = self
        app = FastAPI()

        @app.exception_handler(BackendFailure)
        async def failure_handler(request, exc: BackendFailure):
            return JSONResponse(status_code=exc.status_code, content={"error": exc.error})

        @app.middleware("http")
        async def record_and_inject(request, call_next):
            key = f"{request.method} {request.url.path}"
            backend.calls.append(key)
            failure = backend.failures.pop(key, None)
            if failure:
                return JSONResponse(status_code=failure.status_code, content={"error": failure.error})
            return await call_next(request)

        def current_user(authorization: Optional[str] = Header(None)) -> dict:
            token = (authorization or "").replace("Bearer ", "")
            user = backend.user_by_token(token)
            if user is None or token in backend.revoked:
                raise BackendFailure(401, "Unauthorized")
            return user

        def management(user: dict = Depends(current_user)) -> dict:
            if user["role"] not in ("ADMIN", "TEAM LEADER"):
                raise BackendFailure(403, "Forbidden")
            return user

        @app.post("/api/auth/login")
        def login(body: dict):
            user = backend.users.get(body.get("employeeId"))
            if user is None or user["password"] != body.get("password"):
                raise BackendFailure(401, "Invalid credentials")
            return {"token": user["token"], "role": user["role"]}

        @app.post("/api/auth/forgot-password")
        def forgot(body: dict):
            if not any(u["email"] == body.get("email") for u in backend.users.values()):
                raise BackendFailure(404, "No account with that email")
            return {"message": "sent"}

        @app.post("/api/auth/reset-password/{token}")
        def reset(token: str, body: dict):
            if token != "valid-reset-token":
                raise BackendFailure(400, "Reset link is invalid or has expired")
            backend.reset_requests.append({"token": token, "password": body["password"]})
            return {"message": "ok"}

        @app.get("/api/me")
        def me(user: dict = Depends(current_user)):
            return {"id": user["id"], "name": user["name"], "role": user["role"]}

        @app.get("/api/attendance/me")
        def my_attendance(user: dict = Depends(current_user)):
            return backend.attendance.get(user["token"], [])

        @app.post("/api/attendance/check-in")
        def check_in(user: dict = Depends(current_user)):
            records = backend.attendance.setdefault(user["token"], [])
            today = backend.now.date().isoformat()
            if any((r.get("check_in_at") or "").startswith(today) for r in records):
                raise BackendFailure(400, "Already checked in today")
            record = {"check_in_at": backend.now.isoformat(), "check_out_at": None, "status": "Present"}
            records.append(record)
            return record

        @app.post("/api/attendance/check-out")
        def check_out(user: dict = Depends(current_user)):
            today = backend.now.date().isoformat()
            for r in backend.attendance.get(user["token"], []):
                if (r.get("check_in_at") or "").startswith(today) and not r.get("check_out_at"):
                    r["check_out_at"] = backend.now.isoformat()
                    return r
            raise BackendFailure(400, "No active check-in found")

        @app.get("/api/admin/attendance/")
        def admin_attendance(user: dict = Depends(current_user)):
            return backend.rollups

        @app.post("/api/leaves/apply")
        async def apply_leave(
            startDate: str = Form(...),
            endDate: str = Form(...),
            reason: str = Form(...),
            document: Optional[UploadFile] = File(None),
            user: dict = Depends(current_user)
        ):
            path = None
            if document is not None:
                content = await document.read()
                path = f"uploads/{document.filename}"
                backend.uploaded.append({"filename": document.filename, "size": len(content)})
            leave = {
                "id": len(backend.leaves) + 1, "employee_id": [k for k, u in backend.users.items() if u is user][0],
                "employee_name": user["name"], "start_date": startDate, "end_date": endDate,
                "reason": reason, "document_path": path, "status": "PENDING",
            }
            backend.leaves.append(leave)
            return leave

        @app.get("/api/leaves/apply")
        def my_leaves(user: dict = Depends(current_user)):
            return [leave for leave in backend.leaves if leave["employee_name"] == user["name"]]

        @app.get("/api/leaves/admin")
        def all_leaves(user: dict = Depends(current_user)):
            return backend.leaves

        @app.put("/api/leaves/admin/{leave_id}/status")
        def set_status(leave_id: int, body: dict, user: dict = Depends(current_user)):
            for leave in backend.leaves:
                if leave["id"] == leave_id:
                    leave["status"] = body["status"]
                    return leave
            raise BackendFailure(404, "Leave not found")

        @app.get("/api/projects/assignable-users")
        def assignable(user: dict = Depends(current_user)):
            return [{"id": u["id"], "name": u["name"]} for u in backend.users.values()]

        @app.get("/api/projects/team")
        def team_projects(user: dict = Depends(current_user)):
            return [p for p in backend.projects.values() if any(m["id"] == user["id"] for m in p["team"])]

        @app.get("/api/projects/team/{project_id}")
        def team_project(project_id: int, user: dict = Depends(current_user)):
            project = backend.projects.get(project_id)
            if project is None:
                raise BackendFailure(404, "Project not found")
            if not any(m["id"] == user["id"] for m in project["team"]):
                raise BackendFailure(403, "Not a member")
            return project

        @app.get("/api/projects")
        def all_projects(user: dict = Depends(management)):
            return list(backend.projects.values())

        @app.post("/api/projects")
        def create_project(body: dict, user: dict = Depends(management)):
            new_id = max(backend.projects) + 1
            team = [{"id": u["id"], "name": u["name"]} for u in backend.users.values()
                    if u["id"] in body.get("teamMemberIds", [])]
            project = {
                "id": new_id, "name": body["name"], "description": body["description"],
                "launch_date": body["launch_date"], "team": team, "phases": {},
                "budget_distribution": [], "tasklist": [],
            }
            backend.projects[new_id] = project
            return project

        @app.get("/api/projects/{project_id}")
        def get_project(project_id: int, user: dict = Depends(management)):
            if project_id not in backend.projects:
                raise BackendFailure(404, "Project not found")
            return backend.projects[project_id]

        @app.put("/api/projects/{project_id}")
        def update_project(project_id: int, body: dict, user: dict = Depends(management)):
            project = backend.projects[project_id]
            project.update({k: body[k] for k in ("name", "description", "launch_date") if k in body})
            return project

        @app.delete("/api/projects/{project_id}")
        def delete_project(project_id: int, user: dict = Depends(management)):
            backend.projects.pop(project_id, None)
            return {"message": "deleted"}

        @app.put("/api/projects/{project_id}/budget")
        def update_budget(project_id: int, body: dict, user: dict = Depends(management)):
            project = backend.projects[project_id]
            project["total_budget"] = body["totalBudget"]
            project["used_budget"] = body["usedBudget"]
            project["amount_received"] = body["amountReceived"]
            project["target_budget"] = body["targetBudget"]
            project["budget_distribution"] = body["budget_distribution"]
            return project

        @app.put("/api/projects/{project_id}/phases")
        def update_phases(project_id: int, body: dict, user: dict = Depends(management)):
            project = backend.projects[project_id]
            project["phases"] = body["phases"]
            return project

        @app.post("/api/projects/{project_id}/tasks")
        def add_task(project_id: int, body: dict, user: dict = Depends(management)):
            project = backend.projects[project_id]
            assignee = next((u for u in backend.users.values() if u["id"] == body["userId"]), None)
            task = {
                "id": 100 + len(project["tasklist"]), "title": body["title"], "due_date": body["dueDate"],
                "assigned_user_name": assignee["name"] if assignee else None, "assigned_user_id": body["userId"],
                "category": body.get("category"), "priority": body.get("priority"),
            }
            project["tasklist"].append(task)
            return task

        @app.delete("/api/projects/{project_id}/tasks/{task_id}")
        def delete_task(project_id: int, task_id: int, user: dict = Depends(current_user)):
            project = backend.projects[project_id]
            project["tasklist"] = [t for t in project["tasklist"] if t["id"] != task_id]
            return Response(status_code=204)

        @app.get("/api/admin")
        def list_employees(user: dict = Depends(current_user)):
            return list(backend.employees.values())

        @app.post("/api/admin")
        def create_employee(body: dict, user: dict = Depends(current_user)):
            new_id = max(backend.employees) + 1
            employee = dict(body, id=new_id)
            backend.employees[new_id] = employee
            return employee

        @app.put("/api/admin/{employee_id}")
        def update_employee(employee_id: int, body: dict, user: dict = Depends(current_user)):
            if employee_id not in backend.employees:
                raise BackendFailure(404, "Employee not found")
            backend.employees[employee_id].update(body)
            return backend.employees[employee_id]

        @app.delete("/api/admin/{employee_id}")
        def delete_employee(employee_id: int, user: dict = Depends(current_user)):
            backend.employees.pop(employee_id, None)
            return {"message": "deleted"}

        @app.get("/api/financial/entries")
        def entries(user: dict = Depends(current_user)):
            return backend.financial_entries

        @app.post("/api/financial/entries")
        def add_entry(body: dict, user: dict = Depends(current_user)):
            entry = dict(body, id=len(backend.financial_entries) + 1)
            backend.financial_entries.append(entry)
            return entry

        return app


class ASGIBackendAdapter(BaseAdapter):
    """requests transport adapter that hands requests to an ASGI app."""

    def __init__(self, app: FastAPI):
        super().__init__()
        self.client = TestClient(app)
        self.offline = False

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        if self.offline:
            raise requests.ConnectionError("Connection refused", request=request)

        parts = urlsplit(request.url)
        path = parts.path + (f"?{parts.query}" if parts.query else "")
        body = request.body.encode() if isinstance(request.body, str) else request.body
        upstream = self.client.request(
            request.method, path, content=body, headers=dict(request.headers)
        )

        response = requests.Response()
        response.status_code = upstream.status_code
        response._content = upstream.content
        response.headers = CaseInsensitiveDict(upstream.headers)
        response.reason = upstream.reason_phrase
        response.encoding = "utf-8"
        response.url = request.url
        response.request = request
        return response

    def close(self):
        self.client.close()


def utc(year, month, day, hour=9, minute=0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)
