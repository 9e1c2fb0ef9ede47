from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime, timezone
import enum


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    HR = "HR"
    EMPLOYEE = "EMPLOYEE"
    TEAM_LEADER = "TEAM LEADER"


MANAGEMENT_ROLES = {UserRole.ADMIN.value, UserRole.TEAM_LEADER.value}


class SessionContext(BaseModel):
    """Credential and identity of one signed-in user.

    Created at login and destroyed at logout or when the backend rejects the
    token. Every backend call receives the context explicitly.
    """
    token: str
    role: str
    name: Optional[str] = None
    user_id: Optional[int] = None
    remember_me: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    active: bool = True

    def destroy(self):
        self.active = False

    @property
    def is_management(self) -> bool:
        return self.role in MANAGEMENT_ROLES


class LoginRequest(BaseModel):
    employee_id: str
    password: str
    remember_me: bool = False


class LoginResponse(BaseModel):
    token: str
    role: str
    name: Optional[str] = None
    redirect: str = "/employee-dashboard/attendance"


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=1)
    confirm_password: str


class MessageResponse(BaseModel):
    message: str


class MenuItem(BaseModel):
    label: str
    path: str


class MeResponse(BaseModel):
    name: Optional[str] = None
    role: str
    menu: List[MenuItem]
