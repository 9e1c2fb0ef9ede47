from fastapi import APIRouter, Depends
from portal.api.deps import (
    get_backend_client, get_current_session, get_session_store, get_trackers
)
from portal.core.redis import SessionStore
from portal.schemas.auth import (
    ForgotPasswordRequest, LoginRequest, LoginResponse, MeResponse,
    MessageResponse, ResetPasswordRequest, SessionContext
)
from portal.services.attendance_service import TrackerRegistry
from portal.services.auth_service import auth_service, menu_for
from portal.services.backend_client import BackendClient

router = APIRouter(tags=["Authentication"])


@router.post("/auth/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    client: BackendClient = Depends(get_backend_client),
    store: SessionStore = Depends(get_session_store)
):
    """Sign in with employee id and password."""
    session = await auth_service.login(client, store, data)
    return LoginResponse(token=session.token, role=session.role, name=session.name)


@router.post("/auth/logout", response_model=MessageResponse)
async def logout(
    session: SessionContext = Depends(get_current_session),
    store: SessionStore = Depends(get_session_store),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """End the current session."""
    await auth_service.logout(store, trackers, session)
    return MessageResponse(message="Logged out")


@router.post("/auth/forgot-password", response_model=MessageResponse)
def forgot_password(
    data: ForgotPasswordRequest,
    client: BackendClient = Depends(get_backend_client)
):
    """Ask the backend to email reset instructions."""
    return MessageResponse(message=auth_service.forgot_password(client, data.email))


@router.post("/auth/reset-password/{token}", response_model=MessageResponse)
def reset_password(
    token: str,
    data: ResetPasswordRequest,
    client: BackendClient = Depends(get_backend_client)
):
    """Set a new password using the emailed reset token."""
    return MessageResponse(message=auth_service.reset_password(client, token, data))


@router.get("/me", response_model=MeResponse)
def me(session: SessionContext = Depends(get_current_session)):
    """Current user and the menu their role can see."""
    return MeResponse(name=session.name, role=session.role, menu=menu_for(session.role))
