from typing import AsyncGenerator, Optional
from fastapi import Depends, Header, HTTPException, status
from portal.core.exceptions import SessionExpiredError
from portal.core.redis import SessionStore, session_store
from portal.schemas.auth import SessionContext, UserRole
from portal.services.attendance_service import TrackerRegistry, attendance_trackers
from portal.services.backend_client import BackendClient, backend_client


def get_backend_client() -> BackendClient:
    return backend_client


def get_session_store() -> SessionStore:
    return session_store


def get_trackers() -> TrackerRegistry:
    return attendance_trackers


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def get_current_session(
    authorization: Optional[str] = Header(None),
    store: SessionStore = Depends(get_session_store),
    trackers: TrackerRegistry = Depends(get_trackers)
) -> AsyncGenerator[SessionContext, None]:
    """Resolve the caller's session; forget it if the backend rejects its token."""
    token = _bearer_token(authorization)
    if not token:
        raise SessionExpiredError("Login required!")

    session = await store.get_session(token)
    if session is None:
        trackers.discard(token)
        raise SessionExpiredError()

    try:
        yield session
    finally:
        if not session.active:
            await store.delete_session(token)
            trackers.discard(token)


def require_roles(*roles: UserRole):
    allowed = {role.value for role in roles}

    def checker(session: SessionContext = Depends(get_current_session)) -> SessionContext:
        if session.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")
        return session

    return checker


get_management_session = require_roles(UserRole.ADMIN, UserRole.TEAM_LEADER)
get_admin_session = require_roles(UserRole.ADMIN)
get_admin_or_hr_session = require_roles(UserRole.ADMIN, UserRole.HR)
