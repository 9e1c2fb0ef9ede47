import pytest
import requests
from fastapi.testclient import TestClient
from typing import Dict, Optional

from portal.api.deps import get_backend_client, get_session_store, get_trackers
from portal.schemas.auth import SessionContext
from portal.services.attendance_service import TrackerRegistry
from portal.services.backend_client import BackendClient
from main import app
from fake_backend import ASGIBackendAdapter, FakeHRBackend, utc

BACKEND_URL = "http://hr-backend.test"
API = "/api/portal"


class InMemorySessionStore:
    """Same interface as the Redis SessionStore; values round-trip through JSON."""

    def __init__(self):
        self.sessions: Dict[str, str] = {}

    async def create_session(self, session: SessionContext):
        self.sessions[session.token] = session.model_dump_json()

    async def get_session(self, token: str) -> Optional[SessionContext]:
        value = self.sessions.get(token)
        if not value:
            return None
        return SessionContext.model_validate_json(value)

    async def delete_session(self, token: str):
        self.sessions.pop(token, None)


@pytest.fixture
def backend():
    """Fake HR backend, with the clock on Wednesday 2025-09-10 09:00 UTC."""
    return FakeHRBackend(now=utc(2025, 9, 10))


@pytest.fixture
def adapter(backend):
    adapter = ASGIBackendAdapter(backend.app)
    yield adapter
    adapter.close()


@pytest.fixture
def backend_client(adapter):
    http = requests.Session()
    http.mount(BACKEND_URL, adapter)
    return BackendClient(base_url=BACKEND_URL, http=http)


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def trackers(backend):
    return TrackerRegistry(clock=lambda: backend.now)


@pytest.fixture
def client(backend_client, store, trackers):
    app.dependency_overrides[get_backend_client] = lambda: backend_client
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_trackers] = lambda: trackers
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Sign in through the portal and return the auth headers."""

    def _login(employee_id: str = "E001", password: str = "secret", remember_me: bool = False):
        response = client.post(f"{API}/auth/login", json={
            "employee_id": employee_id,
            "password": password,
            "remember_me": remember_me
        })
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _login
